"""Test fixtures with deterministic commerce payloads."""

import random
from typing import Any, Dict, Iterable, List, Optional

from src.models.data_models import Category, InventoryRecord, Product


def make_raw_product(
    index: int,
    category_ids: Iterable[Any] = (),
    via: str = "categories",
    sku: Optional[str] = None,
    seed: int = 42,
) -> Dict[str, Any]:
    """
    Build one raw ``GET /products`` item.

    Args:
        index: Product number, used for id, SKU and name
        category_ids: Category references to embed
        via: Where the references go: "categories", "links" or "attribute"
        sku: SKU override
        seed: Random seed for the price
    """
    rng = random.Random(seed + index)
    item = {
        "id": index,
        "sku": sku if sku is not None else f"SKU-{index:04d}",
        "name": f"Product {index}",
        "price": round(rng.uniform(10.0, 500.0), 2),
        "status": 1,
        "type_id": "simple",
        "weight": 1.0,
        "created_at": "2024-01-01 00:00:00",
        "updated_at": "2024-01-02 00:00:00",
        "media_gallery_entries": [{"file": f"/p/{index}.jpg", "position": 1, "types": ["image"]}],
        "custom_attributes": [],
    }
    category_ids = list(category_ids)
    if via == "categories":
        item["categories"] = [{"id": category_id} for category_id in category_ids]
    elif via == "links":
        item["extension_attributes"] = {
            "category_links": [{"category_id": str(c)} for c in category_ids]
        }
    elif via == "attribute":
        item["custom_attributes"] = [
            {"attribute_code": "category_ids", "value": ",".join(str(c) for c in category_ids)}
        ]
    else:
        raise ValueError(f"unknown reference style: {via}")
    return item


def make_catalog(count: int, category_cycle: Iterable[int] = (3, 4, 5)) -> List[Dict[str, Any]]:
    """Raw items whose single category cycles through ``category_cycle``."""
    cycle = list(category_cycle)
    return [
        make_raw_product(i, category_ids=[cycle[(i - 1) % len(cycle)]] if cycle else [])
        for i in range(1, count + 1)
    ]


def make_product(sku: str, category_ids: Iterable[int] = (), **kwargs) -> Product:
    """Unenriched Product with direct category references."""
    return Product(
        id=kwargs.pop("id", None),
        sku=sku,
        name=kwargs.pop("name", f"Product {sku}"),
        raw_category_refs=[{"id": c} for c in category_ids],
        **kwargs,
    )


def make_category(category_id: int, name: Optional[str] = None) -> Category:
    return Category(id=category_id, name=name or f"Category {category_id}", parent_id=2, level=2)


def make_inventory(sku: str, qty: float = 10.0, is_in_stock: bool = True) -> InventoryRecord:
    return InventoryRecord(sku=sku, qty=qty, is_in_stock=is_in_stock)
