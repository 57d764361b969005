"""
# SKU Catalog

Core logic of the SKU family hierarchy manager: a two-level catalog of **families** and
their **sub-families**. Each record points at shared master data (brand, categories,
storage, RAM, color) that is typed as free text.

## Architecture

```
┌──────────────────────────────────────────────────────────┐
│                  SkuFamilyService                        │
│   family list · save/delete flows · editor wiring        │
├───────────────┬──────────────────────┬───────────────────┤
│ Reference     │ ChildCollection      │ SequenceEditor    │
│ Resolver      │ Cache                │                   │
│  └─ allocate_ │  (per-family pages,  │ (inline edit,     │
│     code      │   last request wins) │  write-through)   │
├───────────────┴──────────────────────┴───────────────────┤
│            CatalogApiClient (httpx, admin REST API)      │
└──────────────────────────────────────────────────────────┘
```

## Packages

- **`config`**: Pydantic Settings (`settings` singleton).
- **`managers.logging_manager`**: `get_logger(prefix=...)`.
- **`models`**: Pydantic models for master data, records, drafts and views.
- **`utils`**: code allocation and label normalization.
- **`services`**: resolver, cache, sequence editor, family service.
- **`clients`**: HTTP adapter for the admin API.
- **`cli`**: operator command line.
"""

__version__ = "0.1.0"
