"""Paginated product fetcher for the commerce catalog."""

import asyncio
import math
from typing import List, Optional

from src.fetcher.commerce_api import PRODUCTS_PATH, build_products_params
from src.fetcher.http_client import AuthenticatedClient
from src.models.data_models import Product
from src.models.errors import ProductFetchError
from src.monitoring.logger import StructuredLogger
from src.monitoring.performance import Dataset, PerformanceTracker
from src.processor.normalizer import normalize_page


class ProductFetcher:
    """
    Fetches the full product catalog page by page.

    Pagination terminates when:
    - A page has no items (upstream returned fewer pages than advertised)
    - A page is shorter than the requested page size
    - The last page computed from ``total_count`` was fetched
    - ``max_pages`` pages were fetched

    There is no retry here: without the base product list nothing else is
    meaningful, so the first failed page aborts the fetch.
    """

    def __init__(
        self,
        client: AuthenticatedClient,
        tracker: Optional[PerformanceTracker] = None,
        logger: Optional[StructuredLogger] = None
    ):
        """
        Initialize fetcher.

        Args:
            client: Authenticated request client
            tracker: Optional performance tracker (one count per page request)
            logger: Optional structured logger for telemetry
        """
        self.client = client
        self.tracker = tracker
        self.logger = logger

    async def fetch_products(self, page_size: int, max_pages: int) -> List[Product]:
        """
        Fetch all products up to ``max_pages`` pages.

        Args:
            page_size: Products per page
            max_pages: Maximum number of pages to request

        Returns:
            Products in page order, deduplicated by SKU

        Raises:
            ProductFetchError: If any page request fails
        """
        products: List[Product] = []
        seen_skus: set = set()
        current_page = 1

        while True:
            start = asyncio.get_running_loop().time()
            body = await self._fetch_page(current_page, page_size)
            elapsed_ms = (asyncio.get_running_loop().time() - start) * 1000

            page = normalize_page(body, current_page, seen_skus)
            raw_items = len(page.products) + page.skipped_items

            if self.logger:
                self.logger.page_fetched(
                    page=current_page,
                    items=raw_items,
                    total_count=page.total_count,
                    elapsed_ms=elapsed_ms
                )

            if raw_items == 0:
                self._stop(current_page, "empty_page", products)
                break

            products.extend(page.products)

            total_pages = math.ceil(page.total_count / page_size)
            if raw_items < page_size:
                self._stop(current_page, "short_page", products)
                break
            if current_page >= total_pages:
                self._stop(current_page, "last_page", products)
                break
            if current_page >= max_pages:
                self._stop(current_page, "max_pages", products)
                break

            current_page += 1

        return products

    async def _fetch_page(self, page: int, page_size: int):
        """
        Request one page and return its decoded body.

        Raises:
            ProductFetchError: On any client failure or non-2xx status
        """
        if self.tracker:
            self.tracker.record_api_call(Dataset.PRODUCTS)

        try:
            response = await self.client.get(
                PRODUCTS_PATH,
                params=build_products_params(page_size, page)
            )
        except Exception as e:
            raise ProductFetchError(page, str(e) or type(e).__name__) from e

        if not response.ok:
            raise ProductFetchError(page, f"HTTP {response.status}", status_code=response.status)

        return response.body

    def _stop(self, page: int, reason: str, products: List[Product]) -> None:
        if self.logger:
            self.logger.pagination_stop(page=page, reason=reason, products=len(products))


async def fetch_products(
    client: AuthenticatedClient,
    page_size: int,
    max_pages: int,
    tracker: Optional[PerformanceTracker] = None,
    logger: Optional[StructuredLogger] = None
) -> List[Product]:
    """Fetch all catalog products; see ``ProductFetcher.fetch_products``."""
    fetcher = ProductFetcher(client, tracker=tracker, logger=logger)
    return await fetcher.fetch_products(page_size, max_pages)
