"""Commerce REST endpoints and per-identifier lookups."""

from typing import Dict, Union
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from src.fetcher.http_client import AuthenticatedClient
from src.models.data_models import UNKNOWN_CATEGORY_NAME, Category, InventoryRecord
from src.models.errors import EnrichmentFetchError
from src.processor.normalizer import normalize_category, normalize_stock_item


PRODUCTS_PATH = "/products"

PRODUCT_FIELDS = (
    "items[id,sku,name,price,status,type_id,attribute_set_id,created_at,updated_at,weight,"
    "categories,media_gallery_entries[file,url,position,types],custom_attributes,"
    "extension_attributes],total_count"
)


def build_products_params(page_size: int, current_page: int) -> Dict[str, Union[int, str]]:
    """Query parameters for one page of ``GET /products``."""
    return {
        "searchCriteria[pageSize]": page_size,
        "searchCriteria[currentPage]": current_page,
        "fields": PRODUCT_FIELDS,
    }


def category_path(category_id: int) -> str:
    return f"/categories/{category_id}"


def stock_item_path(sku: str) -> str:
    # SKUs may contain slashes and spaces
    return f"/stockItems/{quote(sku, safe='')}"


def placeholder_category(category_id: int) -> Category:
    """Degraded value for a category whose detail lookup failed."""
    return Category(id=category_id, name=UNKNOWN_CATEGORY_NAME)


def default_inventory(sku: str) -> InventoryRecord:
    """Degraded value for a SKU whose stock lookup failed."""
    return InventoryRecord(sku=sku, qty=0.0, is_in_stock=False)


async def fetch_category(client: AuthenticatedClient, category_id: int) -> Category:
    """
    Fetch category metadata by id.

    Args:
        client: Authenticated request client
        category_id: Category identifier

    Returns:
        Category built from the response

    Raises:
        EnrichmentFetchError: On transport failure, non-2xx status or an
            unusable body
    """
    try:
        response = await client.get(category_path(category_id))
    except httpx.HTTPError as e:
        raise EnrichmentFetchError("categories", category_id, str(e) or type(e).__name__) from e

    if not response.ok:
        raise EnrichmentFetchError(
            "categories", category_id, f"HTTP {response.status}", status_code=response.status
        )

    try:
        return normalize_category(response.body)
    except ValidationError as e:
        raise EnrichmentFetchError("categories", category_id, "invalid category body") from e


async def fetch_stock_item(client: AuthenticatedClient, sku: str) -> InventoryRecord:
    """
    Fetch the stock item for a SKU.

    Args:
        client: Authenticated request client
        sku: Product SKU

    Returns:
        InventoryRecord built from the response

    Raises:
        EnrichmentFetchError: On transport failure, non-2xx status (404
            included) or an unusable body
    """
    try:
        response = await client.get(stock_item_path(sku))
    except httpx.HTTPError as e:
        raise EnrichmentFetchError("inventory", sku, str(e) or type(e).__name__) from e

    if not response.ok:
        raise EnrichmentFetchError(
            "inventory", sku, f"HTTP {response.status}", status_code=response.status
        )

    try:
        return normalize_stock_item(response.body, sku)
    except ValidationError as e:
        raise EnrichmentFetchError("inventory", sku, "invalid stock item body") from e
