"""Pytest configuration and shared fixtures."""

from typing import List

import pytest

from src.models.config import PipelineConfig
from src.monitoring.performance import PerformanceTracker


class RecordingSleeper:
    """Async sleep replacement that records requested delays without waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleeper():
    return RecordingSleeper()


@pytest.fixture
def tracker():
    return PerformanceTracker()


@pytest.fixture
def sample_config():
    """Provide a sample configuration for testing."""
    return PipelineConfig(
        commerce_base_url="http://commerce.test/rest/V1",
        commerce_access_token="test-token",
        page_size=10,
        max_pages=5,
        category_batch_size=4,
        inventory_batch_size=6,
        max_concurrent=3,
        inter_chunk_delay_ms=50,
        total_timeout=10.0,
        log_level="WARNING",
    )
