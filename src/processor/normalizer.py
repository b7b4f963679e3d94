"""Conversion of commerce API payloads into pipeline entities.

Raw JSON is validated through the DTOs in ``src.models.api_models`` first;
only validated data reaches ``Product``, ``Category`` and ``InventoryRecord``.
"""

from typing import Any, Dict, List, Optional, Set, Tuple

from pydantic import ValidationError

from src.models.api_models import CategoryDTO, ProductItemDTO, ProductPageDTO, StockItemDTO
from src.models.data_models import Category, InventoryRecord, Product, ProductPage


def _category_refs(dto: ProductItemDTO) -> List[Any]:
    """
    Collect direct category references from both places the API puts them.

    Handles:
    - ``categories``: list of ids or of objects with an ``id``
    - ``extension_attributes.category_links``: objects with a ``category_id``
    """
    refs = list(dto.categories)
    links = dto.extension_attributes.get("category_links") or []
    if isinstance(links, list):
        for link in links:
            if isinstance(link, dict) and link.get("category_id") is not None:
                refs.append({"category_id": link["category_id"]})
    return refs


def normalize_product(raw_product: Dict[str, Any]) -> Product:
    """
    Validate one raw product item and build a Product.

    Args:
        raw_product: Item from the ``items`` list of ``GET /products``

    Returns:
        Unenriched Product

    Raises:
        pydantic.ValidationError: If the item has no usable SKU or bad types
    """
    dto = ProductItemDTO.model_validate(raw_product)
    return Product(
        id=dto.id,
        sku=dto.sku,
        name=dto.name,
        price=dto.price,
        status=dto.status,
        type_id=dto.type_id,
        weight=dto.weight,
        created_at=dto.created_at,
        updated_at=dto.updated_at,
        raw_category_refs=_category_refs(dto),
        media_entries=list(dto.media_gallery_entries),
        custom_attributes=[attr.model_dump() for attr in dto.custom_attributes],
    )


def normalize_batch(
    raw_products: List[Dict[str, Any]],
    seen_skus: Optional[Set[str]] = None
) -> Tuple[List[Product], int]:
    """
    Normalize a list of raw items with SKU deduplication.

    Args:
        raw_products: Raw product items
        seen_skus: SKUs already produced by earlier pages

    Returns:
        Tuple of (products, skipped) where skipped counts malformed
        items and duplicate SKUs
    """
    products = []
    skipped = 0

    for raw in raw_products:
        if not isinstance(raw, dict):
            skipped += 1
            continue
        try:
            product = normalize_product(raw)
        except ValidationError:
            skipped += 1
            continue

        if seen_skus is not None:
            if product.sku in seen_skus:
                skipped += 1
                continue
            seen_skus.add(product.sku)

        products.append(product)

    return products, skipped


def normalize_page(
    body: Any,
    page: int,
    seen_skus: Optional[Set[str]] = None
) -> ProductPage:
    """
    Convert a ``GET /products`` body into a ProductPage.

    A body that is not an object, or whose ``items`` is missing, yields an
    empty page so that pagination stops instead of failing.
    """
    if not isinstance(body, dict):
        return ProductPage(page=page, products=[], total_count=0)

    try:
        envelope = ProductPageDTO.model_validate(body)
    except ValidationError:
        return ProductPage(page=page, products=[], total_count=0)

    products, skipped = normalize_batch(envelope.items or [], seen_skus)
    return ProductPage(
        page=page,
        products=products,
        total_count=envelope.total_count,
        skipped_items=skipped,
    )


def normalize_category(body: Any) -> Category:
    """
    Build a Category from ``GET /categories/{id}``.

    Raises:
        pydantic.ValidationError: If the body lacks an id or name
    """
    dto = CategoryDTO.model_validate(body)
    return Category(id=dto.id, name=dto.name, parent_id=dto.parent_id, level=dto.level)


def normalize_stock_item(body: Any, sku: str) -> InventoryRecord:
    """
    Build an InventoryRecord from ``GET /stockItems/{sku}``.

    Missing quantities read as zero and a missing stock flag as out of stock.

    Raises:
        pydantic.ValidationError: If the body is not an object or has bad types
    """
    dto = StockItemDTO.model_validate(body)
    return InventoryRecord(
        sku=sku,
        qty=dto.qty or 0.0,
        is_in_stock=bool(dto.is_in_stock),
    )
