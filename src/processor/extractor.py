"""Identifier extraction from fetched products."""

import math
from typing import Any, Iterable, List, Optional

from src.models.data_models import IdentifierSet, Product


CATEGORY_IDS_ATTRIBUTE = "category_ids"


def _coerce_category_id(value: Any) -> Optional[int]:
    """
    Convert a raw category reference to a positive integer id.

    Returns None for anything that is not a usable id (empty strings,
    non-numeric text, NaN, booleans, zero or negatives).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float):
        if math.isnan(value) or not value.is_integer():
            return None
        return int(value) if value > 0 else None
    if isinstance(value, str):
        text = value.strip()
        if not text.isdigit():
            return None
        number = int(text)
        return number if number > 0 else None
    return None


def _direct_category_refs(product: Product) -> Iterable[Any]:
    for ref in product.raw_category_refs:
        if isinstance(ref, dict):
            yield ref.get("id", ref.get("category_id"))
        else:
            yield ref


def _attribute_category_refs(product: Product) -> Iterable[Any]:
    for attr in product.custom_attributes:
        if attr.get("attribute_code") != CATEGORY_IDS_ATTRIBUTE:
            continue
        value = attr.get("value")
        if isinstance(value, str):
            yield from value.split(",")
        elif isinstance(value, (list, tuple)):
            yield from value


def get_category_ids(product: Product) -> List[int]:
    """
    Category ids referenced by a single product, in first-seen order.

    Direct category references win; the ``category_ids`` custom attribute
    (a list or a comma-separated string) is only consulted when the product
    carries no usable direct reference.
    """
    ids: List[int] = []
    for source in (_direct_category_refs, _attribute_category_refs):
        for raw in source(product):
            category_id = _coerce_category_id(raw)
            if category_id is not None and category_id not in ids:
                ids.append(category_id)
        if ids:
            break
    return ids


def extract_identifiers(products: Iterable[Product]) -> IdentifierSet:
    """
    Collect the category ids and SKUs a batch of products refers to.

    Pure and idempotent. Products without category or SKU data simply
    contribute nothing.
    """
    identifiers = IdentifierSet()
    for product in products:
        identifiers.category_ids.update(get_category_ids(product))
        sku = product.sku.strip() if isinstance(product.sku, str) else ""
        if sku:
            identifiers.skus.add(sku)
    return identifiers
