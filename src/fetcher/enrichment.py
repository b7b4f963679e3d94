"""Batch enrichment engine with bounded concurrency and failure isolation."""

import asyncio
from functools import partial
from typing import Any, Awaitable, Callable, Dict, Generic, Hashable, Iterable, List, Optional, Tuple, TypeVar

from src.fetcher.commerce_api import (
    default_inventory,
    fetch_category,
    fetch_stock_item,
    placeholder_category,
)
from src.fetcher.http_client import AuthenticatedClient
from src.fetcher.retry_handler import RetryPolicy
from src.models.data_models import Category, InventoryRecord
from src.monitoring.logger import StructuredLogger
from src.monitoring.performance import Dataset, PerformanceTracker


K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


def partition(items: List[Any], size: int) -> List[List[Any]]:
    """Split a list into consecutive slices of at most ``size`` items."""
    if size <= 0:
        raise ValueError(f"size must be positive, got: {size}")
    return [items[i:i + size] for i in range(0, len(items), size)]


class BatchEnrichmentEngine(Generic[K, V]):
    """
    Fetches per-identifier data for one dataset.

    Identifiers are split into sequential batches, and each batch into
    chunks of at most ``max_concurrent``. All lookups of a chunk run
    concurrently and the engine waits for every one of them before moving
    on, so no more than ``max_concurrent`` requests are ever in flight.
    Every chunk after the first is preceded by the inter-chunk delay.

    A failed lookup is logged and replaced by the dataset's default value;
    the result always has one entry per input identifier.
    """

    def __init__(
        self,
        dataset: Dataset,
        fetch_one: Callable[[K], Awaitable[V]],
        default_factory: Callable[[K], V],
        retry_policy: Optional[RetryPolicy] = None,
        tracker: Optional[PerformanceTracker] = None,
        logger: Optional[StructuredLogger] = None,
        sleeper: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize engine.

        Args:
            dataset: Dataset the lookups belong to (counters, logs)
            fetch_one: Coroutine function fetching data for one identifier
            default_factory: Builds the fallback value for a failed identifier
            retry_policy: Per-identifier retry policy (default: single attempt)
            tracker: Optional performance tracker (one count per attempt)
            logger: Optional structured logger for telemetry
            sleeper: Async sleep function (default: asyncio.sleep)
        """
        self.dataset = dataset
        self.fetch_one = fetch_one
        self.default_factory = default_factory
        self.retry_policy = retry_policy or RetryPolicy()
        self.tracker = tracker
        self.logger = logger
        self._sleep = sleeper

    async def enrich(
        self,
        ids: Iterable[K],
        batch_size: int,
        max_concurrent: int,
        inter_chunk_delay_ms: float = 0,
    ) -> Dict[K, V]:
        """
        Fetch data for every identifier.

        Args:
            ids: Identifiers to look up (duplicates are collapsed)
            batch_size: Identifiers per sequential batch
            max_concurrent: Maximum lookups in flight at once
            inter_chunk_delay_ms: Sleep between consecutive chunks

        Returns:
            Mapping covering every input identifier
        """
        ordered = list(dict.fromkeys(ids))
        results: Dict[K, V] = {}
        if not ordered:
            return results

        batches = partition(ordered, batch_size)
        delay = inter_chunk_delay_ms / 1000.0
        loop = asyncio.get_running_loop()
        started = loop.time()
        failures = 0
        chunk_index = 0

        if self.logger:
            self.logger.enrichment_start(
                dataset=self.dataset.value,
                identifiers=len(ordered),
                batches=len(batches)
            )

        for batch_no, batch in enumerate(batches, start=1):
            for chunk_no, chunk in enumerate(partition(batch, max_concurrent), start=1):
                if chunk_index > 0 and delay > 0:
                    await self._sleep(delay)
                chunk_index += 1

                chunk_start = loop.time()
                outcomes = await asyncio.gather(
                    *(self._fetch_with_default(identifier) for identifier in chunk)
                )
                for identifier, (value, failed) in zip(chunk, outcomes):
                    results[identifier] = value
                    failures += failed

                if self.logger:
                    self.logger.chunk_complete(
                        dataset=self.dataset.value,
                        batch=batch_no,
                        chunk=chunk_no,
                        chunk_size=len(chunk),
                        elapsed_ms=(loop.time() - chunk_start) * 1000
                    )

        if self.logger:
            self.logger.enrichment_complete(
                dataset=self.dataset.value,
                identifiers=len(results),
                failures=failures,
                elapsed_ms=(loop.time() - started) * 1000
            )

        return results

    async def _fetch_with_default(self, identifier: K) -> Tuple[V, bool]:
        """
        Look up one identifier, substituting the default on failure.

        Returns:
            Tuple of (value, failed)
        """
        async def attempt() -> V:
            if self.tracker:
                self.tracker.record_api_call(self.dataset)
            return await self.fetch_one(identifier)

        try:
            value = await self.retry_policy.execute(attempt, sleeper=self._sleep)
            return value, False
        except Exception as e:
            if self.logger:
                self.logger.enrichment_failure(
                    dataset=self.dataset.value,
                    identifier=identifier,
                    error=str(e) or type(e).__name__,
                    status=getattr(e, "status_code", None)
                )
            if self.tracker:
                self.tracker.record_failure(self.dataset)
            return self.default_factory(identifier), True


def build_category_engine(
    client: AuthenticatedClient,
    retry_policy: Optional[RetryPolicy] = None,
    tracker: Optional[PerformanceTracker] = None,
    logger: Optional[StructuredLogger] = None,
    sleeper: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> BatchEnrichmentEngine[int, Category]:
    """Engine for ``GET /categories/{id}`` with the Unknown Category placeholder."""
    return BatchEnrichmentEngine(
        Dataset.CATEGORIES,
        partial(fetch_category, client),
        placeholder_category,
        retry_policy=retry_policy,
        tracker=tracker,
        logger=logger,
        sleeper=sleeper,
    )


def build_inventory_engine(
    client: AuthenticatedClient,
    retry_policy: Optional[RetryPolicy] = None,
    tracker: Optional[PerformanceTracker] = None,
    logger: Optional[StructuredLogger] = None,
    sleeper: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> BatchEnrichmentEngine[str, InventoryRecord]:
    """Engine for ``GET /stockItems/{sku}`` with zero-stock defaults."""
    return BatchEnrichmentEngine(
        Dataset.INVENTORY,
        partial(fetch_stock_item, client),
        default_inventory,
        retry_policy=retry_policy,
        tracker=tracker,
        logger=logger,
        sleeper=sleeper,
    )
