"""
# Data Models Package

Pydantic models for the SKU catalog core.

- **`reference_models`**: Master data (brand, categories, storage, RAM, color), their
  code prefixes and list responses.
- **`catalog_models`**: Families, sub-families, save drafts, list pages and the cached
  paged views.

## Usage Example

```python
from sku_catalog.models import FamilyDraft, ReferenceType

draft = FamilyDraft(name="iphone", brand="apple")
assert ReferenceType.BRAND.code_prefix == "BRD"
```
"""

from .catalog_models import (
    ChildPage,
    FamilyDraft,
    FamilyListView,
    FamilyPage,
    FamilyRecord,
    PagedChildView,
    ResolvedRefs,
    SaveResult,
    SubFamilyDraft,
    SubFamilyRecord,
)
from .reference_models import (
    CreateReferenceRequest,
    ReferenceEntity,
    ReferenceListResponse,
    ReferenceType,
)

__all__ = [
    # Reference models
    "ReferenceType",
    "ReferenceEntity",
    "CreateReferenceRequest",
    "ReferenceListResponse",
    # Catalog models
    "FamilyRecord",
    "SubFamilyRecord",
    "FamilyDraft",
    "SubFamilyDraft",
    "ResolvedRefs",
    "SaveResult",
    "FamilyPage",
    "ChildPage",
    "PagedChildView",
    "FamilyListView",
]
