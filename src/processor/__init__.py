"""Product data processing module."""

from .extractor import extract_identifiers, get_category_ids
from .merger import merge_enrichment
from .normalizer import normalize_batch, normalize_product

__all__ = [
    "extract_identifiers",
    "get_category_ids",
    "merge_enrichment",
    "normalize_batch",
    "normalize_product",
]
