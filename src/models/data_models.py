"""Core data models for the product enrichment pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set


UNKNOWN_CATEGORY_NAME = "Unknown Category"


class PipelineStage(Enum):
    """Per-run pipeline states."""
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    ENRICHING = "enriching"
    MERGING = "merging"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class Category:
    """Category metadata fetched from the category detail endpoint."""
    id: int
    name: str
    parent_id: Optional[int] = None
    level: Optional[int] = None

    @property
    def is_placeholder(self) -> bool:
        return self.name == UNKNOWN_CATEGORY_NAME


@dataclass(frozen=True)
class InventoryRecord:
    """Stock level for a single SKU."""
    sku: str
    qty: float = 0.0
    is_in_stock: bool = False


@dataclass
class Product:
    """Catalog product. Enrichment fields stay None until merged."""
    id: Optional[int]
    sku: str
    name: str
    price: Optional[float] = None
    status: Optional[int] = None
    type_id: Optional[str] = None
    weight: Optional[float] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    raw_category_refs: List[Any] = field(default_factory=list)
    media_entries: List[Dict[str, Any]] = field(default_factory=list)
    custom_attributes: List[Dict[str, Any]] = field(default_factory=list)
    categories: Optional[List[Category]] = None
    qty: Optional[float] = None
    is_in_stock: Optional[bool] = None

    @property
    def is_enriched(self) -> bool:
        return (
            self.categories is not None
            and self.qty is not None
            and self.is_in_stock is not None
        )


@dataclass
class IdentifierSet:
    """Identifiers referenced by a batch of products."""
    category_ids: Set[int] = field(default_factory=set)
    skus: Set[str] = field(default_factory=set)


@dataclass
class ProductPage:
    """One page of products as returned by the catalog endpoint."""
    page: int
    products: List[Product]
    total_count: int
    skipped_items: int = 0


@dataclass
class PerformanceMetrics:
    """Snapshot of the performance tracker at the end of a run."""
    api_calls: Dict[str, int]
    total_api_calls: int
    failed_lookups: Dict[str, int]
    processed_products: int
    unique_categories: int
    sku_count: int
    elapsed_ms: float
    data_sources_used: int
    query_consolidation: str


@dataclass
class PipelineResult:
    """Complete pipeline execution result."""
    products: List[Product]
    metrics: Optional[PerformanceMetrics]
    stage: PipelineStage = PipelineStage.DONE
