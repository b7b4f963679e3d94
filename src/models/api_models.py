"""Response DTOs for the commerce REST endpoints.

Raw JSON is validated into these models at the API boundary and then
converted into the entities in ``src.models.data_models``.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class CustomAttributeDTO(BaseModel):
    """A single ``custom_attributes`` entry."""
    model_config = ConfigDict(extra="ignore")

    attribute_code: str
    value: Any = None


class ProductItemDTO(BaseModel):
    """A single product item from ``GET /products``."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    sku: str = Field(min_length=1)
    name: str = ""
    price: Optional[float] = None
    status: Optional[int] = None
    type_id: Optional[str] = None
    weight: Optional[float] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    categories: List[Any] = Field(default_factory=list)
    media_gallery_entries: List[Dict[str, Any]] = Field(default_factory=list)
    custom_attributes: List[CustomAttributeDTO] = Field(default_factory=list)
    extension_attributes: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('sku')
    @classmethod
    def strip_sku(cls, v: str) -> str:
        """Reject whitespace-only SKUs."""
        v = v.strip()
        if not v:
            raise ValueError("sku must not be blank")
        return v

    @field_validator('price', 'weight', 'status', mode='before')
    @classmethod
    def unparseable_to_none(cls, v: Any, info: ValidationInfo) -> Any:
        """Blank or non-numeric optional numbers read as missing, not as a bad item."""
        if v is None or isinstance(v, bool):
            return v
        convert = int if info.field_name == 'status' else float
        if isinstance(v, (int, float)):
            return v if convert is float or float(v).is_integer() else None
        if isinstance(v, str):
            try:
                convert(v.strip())
            except ValueError:
                return None
            return v.strip()
        return None

    @field_validator('name', mode='before')
    @classmethod
    def default_name(cls, v: Any) -> str:
        return "" if v is None else v

    @field_validator('categories', 'media_gallery_entries', 'custom_attributes', mode='before')
    @classmethod
    def default_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator('extension_attributes', mode='before')
    @classmethod
    def default_dict(cls, v: Any) -> Any:
        return {} if v is None else v


class ProductPageDTO(BaseModel):
    """Envelope of ``GET /products``.

    Items stay as raw dicts here so that one malformed item can be skipped
    without discarding the whole page.
    """
    model_config = ConfigDict(extra="ignore")

    items: Optional[List[Any]] = None
    total_count: int = 0

    @field_validator('total_count', mode='before')
    @classmethod
    def default_total(cls, v: Any) -> Any:
        return 0 if v is None else v


class CategoryDTO(BaseModel):
    """Body of ``GET /categories/{id}``."""
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    parent_id: Optional[int] = None
    level: Optional[int] = None
    is_active: Optional[bool] = None


class StockItemDTO(BaseModel):
    """Body of ``GET /stockItems/{sku}``."""
    model_config = ConfigDict(extra="ignore")

    item_id: Optional[int] = None
    product_id: Optional[int] = None
    stock_id: Optional[int] = None
    qty: Optional[float] = None
    is_in_stock: Optional[bool] = None
