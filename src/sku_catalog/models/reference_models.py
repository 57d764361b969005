"""
Reference (master data) models.

Brand, product category, condition category, storage, RAM and color all share one shape:
an id, a display title and a generated code. `ReferenceType` names the six kinds. Each
kind knows its code prefix and the admin API resource that stores it.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ReferenceType(str, Enum):
    """The six kinds of master data a SKU family or sub-family can point at."""

    BRAND = "brand"
    PRODUCT_CATEGORY = "product_category"
    CONDITION_CATEGORY = "condition_category"
    STORAGE = "storage"
    RAM = "ram"
    COLOR = "color"

    @property
    def code_prefix(self) -> str:
        """Prefix of generated codes, e.g. `BRD` for `BRD00A`."""
        return REFERENCE_CODE_PREFIXES[self]

    @property
    def api_resource(self) -> str:
        """Admin API path segment, e.g. `productCategory`."""
        return REFERENCE_API_RESOURCES[self]

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


REFERENCE_CODE_PREFIXES = {
    ReferenceType.BRAND: "BRD",
    ReferenceType.PRODUCT_CATEGORY: "CAT",
    ReferenceType.CONDITION_CATEGORY: "COND",
    ReferenceType.STORAGE: "STO",
    ReferenceType.RAM: "RAM",
    ReferenceType.COLOR: "COL",
}

REFERENCE_API_RESOURCES = {
    ReferenceType.BRAND: "brand",
    ReferenceType.PRODUCT_CATEGORY: "productCategory",
    ReferenceType.CONDITION_CATEGORY: "conditionCategory",
    ReferenceType.STORAGE: "storage",
    ReferenceType.RAM: "ram",
    ReferenceType.COLOR: "color",
}


class ReferenceEntity(BaseModel):
    """
    A master data row.

    Example:
        {
            "_id": "665f1c...",
            "title": "Apple",
            "code": "BRD00A"
        }
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    title: str
    code: Optional[str] = None


class CreateReferenceRequest(BaseModel):
    """Body of a reference create call: the normalized title and the allocated code."""

    title: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)


class ReferenceListResponse(BaseModel):
    """One page of reference entities (`docs`, `totalDocs`)."""

    model_config = ConfigDict(populate_by_name=True)

    docs: List[ReferenceEntity] = Field(default_factory=list)
    total_docs: int = Field(0, alias="totalDocs")
