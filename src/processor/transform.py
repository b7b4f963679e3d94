"""Output row building for enriched products.

Each supported output field is a ``ProductField`` member resolved through a
table of pure extractor functions.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from src.models.data_models import Product


class ProductField(Enum):
    """Fields available in an output row."""
    SKU = "sku"
    NAME = "name"
    PRICE = "price"
    QTY = "qty"
    IS_IN_STOCK = "is_in_stock"
    CATEGORIES = "categories"
    IMAGES = "images"
    IMAGE_URL = "image_url"


DEFAULT_FIELDS = (
    ProductField.SKU,
    ProductField.NAME,
    ProductField.PRICE,
    ProductField.QTY,
    ProductField.IS_IN_STOCK,
    ProductField.CATEGORIES,
    ProductField.IMAGES,
)


def transform_image_entry(entry: Dict[str, Any]) -> Dict[str, Any]:
    """
    Simplify a media gallery entry.

    URL resolution order: explicit ``url``, then ``file`` when it is already
    absolute, then the relative catalog path built from ``file``.
    """
    file = entry.get("file") or ""
    if entry.get("url"):
        url = entry["url"]
    elif file.startswith("http"):
        url = file
    else:
        url = f"catalog/product{file}"

    image = {
        "filename": file,
        "url": url,
        "position": entry.get("position", 0),
    }
    if entry.get("types"):
        image["roles"] = list(entry["types"])
    return image


def primary_image_url(images: Optional[Sequence[Dict[str, Any]]]) -> str:
    """URL of the first image, or an empty string."""
    if not images:
        return ""
    return images[0].get("url") or images[0].get("filename") or ""


def _categories(product: Product) -> List[str]:
    return [category.name for category in product.categories or []]


def _images(product: Product) -> List[Dict[str, Any]]:
    return [transform_image_entry(entry) for entry in product.media_entries]


FIELD_EXTRACTORS: Dict[ProductField, Callable[[Product], Any]] = {
    ProductField.SKU: lambda p: p.sku,
    ProductField.NAME: lambda p: p.name,
    ProductField.PRICE: lambda p: p.price,
    ProductField.QTY: lambda p: p.qty or 0,
    ProductField.IS_IN_STOCK: lambda p: bool(p.is_in_stock),
    ProductField.CATEGORIES: _categories,
    ProductField.IMAGES: _images,
    ProductField.IMAGE_URL: lambda p: primary_image_url(_images(p)),
}


def build_product_row(
    product: Product,
    fields: Sequence[ProductField] = DEFAULT_FIELDS
) -> Dict[str, Any]:
    """
    Build one output row with the requested fields, in order.

    Args:
        product: Enriched product
        fields: Fields to include

    Returns:
        Dict keyed by field value
    """
    return {field.value: FIELD_EXTRACTORS[field](product) for field in fields}


def build_product_rows(
    products: List[Product],
    fields: Sequence[ProductField] = DEFAULT_FIELDS
) -> List[Dict[str, Any]]:
    return [build_product_row(product, fields) for product in products]


def parse_fields(names: Optional[Sequence[str]]) -> Sequence[ProductField]:
    """
    Resolve field names to ProductField members.

    Raises:
        ValueError: If any name is not a supported field
    """
    if not names:
        return DEFAULT_FIELDS

    available = {field.value: field for field in ProductField}
    invalid = [name for name in names if name not in available]
    if invalid:
        raise ValueError(
            f"Invalid fields requested: {', '.join(invalid)}. "
            f"Available fields are: {', '.join(available)}"
        )
    return tuple(available[name] for name in names)
