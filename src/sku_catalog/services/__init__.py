"""
# Services Package

- **`reference_resolver`**: get-or-create of master data by free-text label.
- **`child_cache`**: per-family paged, searchable sub-family views.
- **`sequence_editor`**: inline edit/commit/cancel of row sequences.
- **`sku_family_service`**: family list, save/delete flows and editor wiring.
"""

from .child_cache import ChildCollectionCache
from .reference_resolver import ReferenceResolver
from .sequence_editor import SequenceEditor, parse_sequence
from .sku_family_service import SkuFamilyService

__all__ = [
    "ChildCollectionCache",
    "ReferenceResolver",
    "SequenceEditor",
    "SkuFamilyService",
    "parse_sequence",
]
