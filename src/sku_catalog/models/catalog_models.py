"""
# SKU Family Models

Pydantic models for the two-level SKU catalog: **families** (parents) and
**sub-families** (variants). It also holds the form drafts that save operations consume
and the paged views the caches hold.

## Wire names

The admin API speaks camelCase and Mongo ids. Server-facing models accept both the wire
names (aliases) and the Python field names:

| field | family alias | sub-family alias |
|-------|--------------|------------------|
| `id` | `_id` | `_id` |
| `brand_ref` | `brand` | |
| `product_category_ref` | `productcategoriesId` | |
| `condition_category_ref` | `conditionCategoryId` | |
| `parent_id` | | `skuFamilyId` |
| `name` | `name` | `subName` |
| `storage_ref` / `ram_ref` / `color_ref` | | `storageId` / `ramId` / `colorId` |
| `sequence` | `sequence` | `subSkuSequence` |
| `code` | `code` | `subSkuCode` |

Reference fields arrive either as a bare id or as a populated object (`{"_id": ..., "title": ...}`).
Both collapse to the id.
A missing, null, blank or non-positive stored sequence reads as 1.

## Drafts

`FamilyDraft` and `SubFamilyDraft` carry the free-text label typed for each master field
and the id already stored on the record being edited. `reference_inputs()` lists them in
resolution order.
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sku_catalog.config import settings
from sku_catalog.models.reference_models import ReferenceType

# Resolved master field ids for one save, keyed by reference type. `None` means unset.
ResolvedRefs = Dict[ReferenceType, Optional[str]]

# (type, typed label, id already stored on the record)
ReferenceInput = Tuple[ReferenceType, Optional[str], Optional[str]]


def _collapse_ref(value: Any) -> Any:
    """Populated references (`{"_id": ..., "title": ...}`) become their id; blanks become None."""
    if isinstance(value, dict):
        value = value.get("_id") or value.get("id")
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _display_sequence(value: Any) -> Any:
    """Stored rows may carry a null, blank, zero or negative sequence; those render as 1."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return 1
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        value = int(value.strip())
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value < 1:
        return 1
    return value


class FamilyRecord(BaseModel):
    """A SKU family (parent row) as stored by the admin API."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    name: str
    brand_ref: Optional[str] = Field(None, alias="brand")
    product_category_ref: Optional[str] = Field(None, alias="productcategoriesId")
    condition_category_ref: Optional[str] = Field(None, alias="conditionCategoryId")
    sequence: int = Field(1, ge=1)
    code: Optional[str] = None

    @field_validator("brand_ref", "product_category_ref", "condition_category_ref", mode="before")
    @classmethod
    def collapse_refs(cls, v):
        return _collapse_ref(v)

    @field_validator("sequence", mode="before")
    @classmethod
    def default_sequence(cls, v):
        return _display_sequence(v)


class SubFamilyRecord(BaseModel):
    """A sub-family (variant) belonging to exactly one family."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    parent_id: Optional[str] = Field(None, alias="skuFamilyId")
    name: Optional[str] = Field(None, alias="subName")
    storage_ref: Optional[str] = Field(None, alias="storageId")
    ram_ref: Optional[str] = Field(None, alias="ramId")
    color_ref: Optional[str] = Field(None, alias="colorId")
    sequence: int = Field(1, ge=1, alias="subSkuSequence")
    code: Optional[str] = Field(None, alias="subSkuCode")
    images: List[str] = Field(default_factory=list)
    videos: List[str] = Field(default_factory=list)

    @field_validator("parent_id", "storage_ref", "ram_ref", "color_ref", mode="before")
    @classmethod
    def collapse_refs(cls, v):
        return _collapse_ref(v)

    @field_validator("sequence", mode="before")
    @classmethod
    def default_sequence(cls, v):
        return _display_sequence(v)

    @field_validator("images", "videos", mode="before")
    @classmethod
    def drop_blank_media(cls, v):
        """Stored media lists sometimes contain empty strings; they are not media."""
        if v is None:
            return []
        return [item for item in v if item and str(item).strip()]


class FamilyDraft(BaseModel):
    """
    Input of a family save.

    Example:
        FamilyDraft(name="iphone 15", brand="apple", product_category="phones")
    """

    id: Optional[str] = None
    code: Optional[str] = None
    name: str = ""
    brand: Optional[str] = None
    brand_id: Optional[str] = None
    product_category: Optional[str] = None
    product_category_id: Optional[str] = None
    condition_category: Optional[str] = None
    condition_category_id: Optional[str] = None
    sequence: int = Field(1, ge=1)

    def reference_inputs(self) -> List[ReferenceInput]:
        return [
            (ReferenceType.BRAND, self.brand, self.brand_id),
            (ReferenceType.PRODUCT_CATEGORY, self.product_category, self.product_category_id),
            (ReferenceType.CONDITION_CATEGORY, self.condition_category, self.condition_category_id),
        ]


class SubFamilyDraft(BaseModel):
    """Input of a sub-family save. `name` may be blank; the parent's name is used then."""

    id: Optional[str] = None
    code: Optional[str] = None
    name: Optional[str] = None
    storage: Optional[str] = None
    storage_id: Optional[str] = None
    ram: Optional[str] = None
    ram_id: Optional[str] = None
    color: Optional[str] = None
    color_id: Optional[str] = None
    sequence: int = Field(1, ge=1)
    images: List[str] = Field(default_factory=list)
    videos: List[str] = Field(default_factory=list)

    @field_validator("images")
    @classmethod
    def validate_image_count(cls, v: List[str]) -> List[str]:
        if len(v) > settings.MAX_SUB_FAMILY_IMAGES:
            raise ValueError(f"At most {settings.MAX_SUB_FAMILY_IMAGES} images are allowed")
        return v

    @field_validator("videos")
    @classmethod
    def validate_video_count(cls, v: List[str]) -> List[str]:
        if len(v) > settings.MAX_SUB_FAMILY_VIDEOS:
            raise ValueError(f"At most {settings.MAX_SUB_FAMILY_VIDEOS} videos are allowed")
        return v

    def reference_inputs(self) -> List[ReferenceInput]:
        return [
            (ReferenceType.STORAGE, self.storage, self.storage_id),
            (ReferenceType.RAM, self.ram, self.ram_id),
            (ReferenceType.COLOR, self.color, self.color_id),
        ]


class SaveResult(BaseModel):
    """Id and server-assigned code of a saved family or sub-family."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    code: Optional[str] = None


class FamilyPage(BaseModel):
    """One page of the family list."""

    model_config = ConfigDict(populate_by_name=True)

    docs: List[FamilyRecord] = Field(default_factory=list)
    total_docs: int = Field(0, alias="totalDocs")
    total_pages: int = Field(1, alias="totalPages")
    page: int = 1


class ChildPage(BaseModel):
    """One page of a family's sub-families."""

    model_config = ConfigDict(populate_by_name=True)

    docs: List[SubFamilyRecord] = Field(default_factory=list)
    total_docs: int = Field(0, alias="totalDocs")
    total_pages: int = Field(1, alias="totalPages")
    page: int = 1


class PagedChildView(BaseModel):
    """
    Cached, paginated, searchable slice of one family's sub-families.

    `items` always reflects `(current_page, last_search_query)` of the latest completed
    fetch. `latest_request` is the counter of the most recently issued fetch. Only the
    response carrying that counter may be applied.
    """

    parent_id: str
    items: List[SubFamilyRecord] = Field(default_factory=list)
    total_count: int = 0
    total_pages: int = 1
    current_page: int = 1
    loading: bool = False
    last_search_query: str = ""
    loaded: bool = False
    latest_request: int = 0


class FamilyListView(BaseModel):
    """The top-level family table: current page, search and the rows shown."""

    items: List[FamilyRecord] = Field(default_factory=list)
    total_count: int = 0
    total_pages: int = 1
    current_page: int = 1
    search_query: str = ""
    loading: bool = False
    latest_request: int = 0
