"""Async commerce API fetching with bounded concurrency and failure isolation."""

from .enrichment import BatchEnrichmentEngine
from .product_fetcher import ProductFetcher, fetch_products
from .retry_handler import RetryPolicy

__all__ = ["BatchEnrichmentEngine", "ProductFetcher", "RetryPolicy", "fetch_products"]
