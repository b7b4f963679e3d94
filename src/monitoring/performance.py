"""Thread-safe performance tracker for pipeline runs."""

import threading
import time
from enum import Enum
from typing import Dict, Iterable

from src.models.data_models import PerformanceMetrics


class Dataset(Enum):
    """Upstream datasets the pipeline issues requests against."""
    PRODUCTS = "products"
    CATEGORIES = "categories"
    INVENTORY = "inventory"


class PerformanceTracker:
    """
    Accumulates API call counts and timing for one pipeline run.

    Every in-flight request increments a counter, so all mutation goes
    through a lock to keep increments atomic even when callers run on
    worker threads.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._api_calls: Dict[Dataset, int] = {dataset: 0 for dataset in Dataset}
        self._failures: Dict[Dataset, int] = {dataset: 0 for dataset in Dataset}
        self._processed_products = 0
        self._unique_categories = 0
        self._sku_count = 0
        self._start_time: float = 0.0
        self._end_time: float = 0.0

    def start_timer(self) -> None:
        """Start timing the pipeline execution."""
        self._start_time = time.perf_counter()
        self._end_time = 0.0

    def stop_timer(self) -> None:
        """Stop timing the pipeline execution."""
        self._end_time = time.perf_counter()

    def record_api_call(self, dataset: Dataset, count: int = 1) -> None:
        """
        Count upstream requests for a dataset.

        Args:
            dataset: Dataset the request was issued against
            count: Number of requests to add
        """
        with self._lock:
            self._api_calls[dataset] += count

    def record_failure(self, dataset: Dataset) -> None:
        """Count an identifier lookup that fell back to its default value."""
        with self._lock:
            self._failures[dataset] += 1

    def set_processed_products(self, count: int) -> None:
        with self._lock:
            self._processed_products = count

    def set_identifier_counts(self, category_ids: Iterable, skus: Iterable) -> None:
        with self._lock:
            self._unique_categories = len(set(category_ids))
            self._sku_count = len(set(skus))

    def api_calls(self, dataset: Dataset) -> int:
        with self._lock:
            return self._api_calls[dataset]

    @property
    def total_api_calls(self) -> int:
        with self._lock:
            return sum(self._api_calls.values())

    def snapshot(self) -> PerformanceMetrics:
        """
        Build the metrics view of the current counters.

        Returns:
            PerformanceMetrics; elapsed time runs up to now if the timer
            was not stopped yet
        """
        with self._lock:
            if self._start_time == 0.0:
                elapsed = 0.0
            else:
                end = self._end_time if self._end_time > 0 else time.perf_counter()
                elapsed = (end - self._start_time) * 1000

            total = sum(self._api_calls.values())
            return PerformanceMetrics(
                api_calls={dataset.value: calls for dataset, calls in self._api_calls.items()},
                total_api_calls=total,
                failed_lookups={dataset.value: count for dataset, count in self._failures.items()},
                processed_products=self._processed_products,
                unique_categories=self._unique_categories,
                sku_count=self._sku_count,
                elapsed_ms=elapsed,
                data_sources_used=sum(1 for calls in self._api_calls.values() if calls > 0),
                query_consolidation=f"{total}:1",
            )
