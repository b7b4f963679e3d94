"""Merge fetched category and inventory data onto products."""

from dataclasses import replace
from typing import Dict, List, Mapping

from src.models.data_models import Category, InventoryRecord, Product
from src.processor.extractor import get_category_ids


def merge_enrichment(
    products: List[Product],
    category_map: Mapping[int, Category],
    inventory_map: Mapping[str, InventoryRecord],
) -> List[Product]:
    """
    Attach categories and stock levels to every product.

    Categories missing from ``category_map`` are left out; placeholder
    categories are kept. A SKU missing from ``inventory_map`` gets zero
    quantity and is marked out of stock.

    Args:
        products: Unenriched products (left untouched)
        category_map: Category id to Category
        inventory_map: SKU to InventoryRecord

    Returns:
        New list of enriched product copies, in input order
    """
    enriched = []
    for product in products:
        categories = [
            category_map[category_id]
            for category_id in get_category_ids(product)
            if category_id in category_map
        ]
        inventory = inventory_map.get(product.sku) or InventoryRecord(sku=product.sku)
        enriched.append(replace(
            product,
            categories=categories,
            qty=inventory.qty,
            is_in_stock=inventory.is_in_stock,
        ))
    return enriched


def count_enriched(products: List[Product]) -> Dict[str, int]:
    """Count products that received real (non-default) enrichment data."""
    return {
        "categories": sum(
            1 for p in products
            if p.categories and any(not c.is_placeholder for c in p.categories)
        ),
        "inventory": sum(1 for p in products if p.is_in_stock or (p.qty or 0) > 0),
    }
