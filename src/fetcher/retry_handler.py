"""Per-identifier retry policy with exponential backoff and jitter."""

import asyncio
import random
from typing import Any, Awaitable, Callable


def calculate_backoff_delay(
    attempt: int,
    base_delay: float = 0.5,
    max_delay: float = 4.0,
    jitter_max: float = 0.0
) -> float:
    """
    Calculate exponential backoff delay with jitter.

    Formula: min(max_delay, (base_delay * (2 ** attempt)) + random_jitter)

    Args:
        attempt: Retry attempt number (0-indexed)
        base_delay: Base delay in seconds
        max_delay: Maximum delay cap in seconds
        jitter_max: Maximum jitter to add in seconds

    Returns:
        Delay in seconds
    """
    exponential_delay = base_delay * (2 ** attempt)
    jitter = random.uniform(0, jitter_max) if jitter_max > 0 else 0.0
    return min(max_delay, exponential_delay + jitter)


class RetryPolicy:
    """
    Retry policy for a single identifier lookup.

    The default of one attempt means lookups are not retried: a failure goes
    straight to the engine's default-value substitution. Cancellation is
    never retried.
    """

    def __init__(
        self,
        max_attempts: int = 1,
        base_delay: float = 0.5,
        max_delay: float = 4.0,
        jitter_max: float = 0.0
    ):
        """
        Initialize retry policy.

        Args:
            max_attempts: Total attempts per call, including the first one
            base_delay: Base delay for exponential backoff
            max_delay: Maximum delay cap
            jitter_max: Maximum jitter to add
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got: {max_attempts}")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter_max = jitter_max

    def backoff(self, attempt: int) -> float:
        return calculate_backoff_delay(
            attempt,
            self.base_delay,
            self.max_delay,
            self.jitter_max
        )

    async def execute(
        self,
        func: Callable[[], Awaitable[Any]],
        sleeper: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> Any:
        """
        Execute a coroutine function under this policy.

        Args:
            func: Zero-argument coroutine function to call
            sleeper: Async sleep function used between attempts

        Returns:
            Result from the first successful attempt

        Raises:
            Exception: The last error once all attempts are exhausted
        """
        for attempt in range(self.max_attempts):
            try:
                return await func()
            except Exception:
                if attempt >= self.max_attempts - 1:
                    raise
                await sleeper(self.backoff(attempt))
