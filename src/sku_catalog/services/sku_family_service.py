"""
# SKU Family Service

Orchestration layer for the SKU family screen. It owns:

- the **family list**: the top-level table with its page, search and last-request-wins
  refresh;
- the **save flows** for families and sub-families, which resolve every free-text master
  field through `ReferenceResolver` before the record itself is written;
- the **sub-family cache** (`ChildCollectionCache`) behind expandable rows;
- the **sequence editors** for family rows and, per family, for sub-family rows.

## All-or-nothing saves

```python
service = SkuFamilyService(api)
result = await service.save_family(FamilyDraft(name="iphone", brand="apple"))
```

Brand, product category and condition category are resolved in that order. If any
resolution fails, the error propagates and `save_family` on the API is never called, so
no record is stored with a reference that failed to resolve. Entities created by earlier
resolutions in the same submit are kept. They are valid master data.
"""

import asyncio
from typing import Dict, List, Optional

from sku_catalog.config import settings
from sku_catalog.exceptions import CatalogError, CatalogValidationError
from sku_catalog.managers.logging_manager import get_logger
from sku_catalog.models.catalog_models import (
    FamilyDraft,
    FamilyListView,
    FamilyRecord,
    ReferenceInput,
    ResolvedRefs,
    SaveResult,
    SubFamilyDraft,
)
from sku_catalog.services.child_cache import ChildCollectionCache, FetchErrorCallback, sort_by_sequence
from sku_catalog.services.reference_resolver import ReferenceResolver
from sku_catalog.services.sequence_editor import SequenceEditor
from sku_catalog.utils.label_helpers import capitalize_words

logger = get_logger(prefix="[SkuFamilyService]")


class SkuFamilyService:
    """
    SKU family and sub-family management on top of an admin API collaborator.

    Attributes:
        api: Collaborator implementing the catalog API coroutines (see `CatalogApiClient`).
        resolver (ReferenceResolver): Get-or-create of master data by label.
        children (ChildCollectionCache): Sub-family views of expanded rows.
        families (FamilyListView): Rows of the top-level table.
        family_sequences (SequenceEditor): Inline sequence edits of family rows.
    """

    def __init__(
        self,
        api,
        resolver: Optional[ReferenceResolver] = None,
        children: Optional[ChildCollectionCache] = None,
        page_size: Optional[int] = None,
        on_fetch_error: Optional[FetchErrorCallback] = None,
    ):
        self.api = api
        self.resolver = resolver or ReferenceResolver(api)
        self.children = children or ChildCollectionCache(api, on_fetch_error=on_fetch_error)
        self.page_size = page_size or settings.FAMILY_PAGE_SIZE
        self.families = FamilyListView()
        self.family_sequences = SequenceEditor(
            self.api.update_family_sequence,
            after_commit=self._after_family_sequence,
        )
        self._sub_family_sequences: Dict[str, SequenceEditor] = {}
        self.search_debounce_seconds = settings.family_search_debounce_seconds
        self._search_task: Optional[asyncio.Task] = None

    # --- Family list ---

    async def refresh_families(self) -> FamilyListView:
        """
        Reload the current page of the family table.

        Only the latest issued refresh may update `families`. Older responses are dropped.

        Raises:
            CatalogError: The list call failed. The previously shown rows stay in place.
        """
        view = self.families
        view.latest_request += 1
        request_id = view.latest_request
        view.loading = True
        page, query = view.current_page, view.search_query
        try:
            result = await self.api.list_families(page, self.page_size, query or None)
        except CatalogError as e:
            logger.error(f"Failed to fetch SKU families (page {page}): {e}")
            raise
        finally:
            if view.latest_request == request_id:
                view.loading = False

        if view.latest_request != request_id:
            logger.debug(f"Discarding stale family list response {request_id}")
            return view

        view.items = sort_by_sequence(result.docs)
        view.total_count = result.total_docs
        view.total_pages = max(1, result.total_pages)
        view.current_page = result.page or page
        view.loading = False
        return view

    async def set_family_page(self, page: int) -> FamilyListView:
        self.families.current_page = max(1, page)
        return await self.refresh_families()

    async def set_family_search(self, query: str) -> FamilyListView:
        """Apply a search to the family table immediately, back on page 1."""
        self.families.search_query = query.strip()
        self.families.current_page = 1
        return await self.refresh_families()

    def schedule_family_search(self, query: str) -> asyncio.Task:
        """
        Debounced `set_family_search`: a newer call within the window replaces the pending one.

        Returns:
            The scheduled task. Awaiting it yields the family view after the search applied.
        """
        if self._search_task is not None and not self._search_task.done():
            self._search_task.cancel()
        self._search_task = asyncio.get_running_loop().create_task(self._debounced_family_search(query))
        return self._search_task

    async def _debounced_family_search(self, query: str) -> FamilyListView:
        if self.search_debounce_seconds > 0:
            await asyncio.sleep(self.search_debounce_seconds)
        if self._search_task is asyncio.current_task():
            self._search_task = None
        return await self.set_family_search(query)

    def family(self, family_id: str) -> Optional[FamilyRecord]:
        for record in self.families.items:
            if record.id == family_id:
                return record
        return None

    # --- Reference resolution ---

    async def _resolve_all(self, inputs: List[ReferenceInput]) -> ResolvedRefs:
        """
        Resolve each master field in order; a typed label wins over the stored id.

        The first failure propagates and stops the remaining resolutions.
        """
        refs: ResolvedRefs = {}
        for ref_type, label, known_id in inputs:
            if label is not None and label.strip():
                refs[ref_type] = await self.resolver.resolve(ref_type, label)
            else:
                refs[ref_type] = known_id or None
        return refs

    # --- Families ---

    async def save_family(self, draft: FamilyDraft) -> SaveResult:
        """
        Create or update a family after resolving its brand and categories.

        Raises:
            CatalogValidationError: Name or brand missing. No call is made.
            CatalogError: A resolution or the save itself failed. Nothing was saved.
        """
        if not draft.name or not draft.name.strip():
            raise CatalogValidationError("Name is required")
        if not (draft.brand and draft.brand.strip()) and not draft.brand_id:
            raise CatalogValidationError("Brand is required")

        refs = await self._resolve_all(draft.reference_inputs())
        record = draft.model_copy(update={"name": capitalize_words(draft.name.strip())})

        try:
            result = await self.api.save_family(record, refs)
        except CatalogError as e:
            logger.error(f"Failed to save SKU family '{record.name}': {e}")
            raise

        logger.info(f"Saved SKU family '{record.name}' as {result.id}")
        await self._refresh_families_quietly()
        return result

    async def delete_family(self, family_id: str) -> None:
        """Delete a family. What happens to its sub-families is up to the server."""
        await self.api.delete_family(family_id)
        self.children.discard(family_id)
        self._sub_family_sequences.pop(family_id, None)
        logger.info(f"Deleted SKU family {family_id}")
        await self._refresh_families_quietly()

    async def _after_family_sequence(self, family_id: str, sequence: int) -> None:
        await self._refresh_families_quietly()

    # --- Sub-families ---

    async def expand(self, family_id: str):
        return await self.children.expand(family_id)

    def collapse(self, family_id: str) -> None:
        self.children.collapse(family_id)

    async def save_sub_family(self, parent: FamilyRecord, draft: SubFamilyDraft) -> SaveResult:
        """
        Create or update a sub-family of `parent` after resolving storage, RAM and color.

        A blank name is replaced by the parent's name before saving.
        """
        refs = await self._resolve_all(draft.reference_inputs())
        name = draft.name.strip() if draft.name and draft.name.strip() else parent.name
        record = draft.model_copy(update={"name": capitalize_words(name)})

        try:
            result = await self.api.save_sub_family(parent.id, record, refs)
        except CatalogError as e:
            logger.error(f"Failed to save sub-family '{record.name}' of {parent.id}: {e}")
            raise

        logger.info(f"Saved sub-family '{record.name}' of {parent.id} as {result.id}")
        await self._refresh_families_quietly()
        await self.children.invalidate(parent.id)
        return result

    async def delete_sub_family(self, parent_id: str, sub_family_id: str) -> None:
        await self.api.delete_sub_family(parent_id, sub_family_id)
        logger.info(f"Deleted sub-family {sub_family_id} of {parent_id}")
        await self._refresh_families_quietly()
        await self.children.invalidate(parent_id)

    def sub_family_sequences(self, parent_id: str) -> SequenceEditor:
        """Sequence editor for the sub-family rows of `parent_id`."""
        editor = self._sub_family_sequences.get(parent_id)
        if editor is None:
            editor = self._build_sub_family_editor(parent_id)
            self._sub_family_sequences[parent_id] = editor
        return editor

    def _build_sub_family_editor(self, parent_id: str) -> SequenceEditor:
        async def reorder_locally(record_id: str, sequence: int) -> None:
            self.children.apply_local_sequence(parent_id, record_id, sequence)

        async def update(record_id: str, sequence: int) -> None:
            try:
                await self.api.update_sub_family_sequence(parent_id, record_id, sequence)
            except CatalogError:
                # Undo the optimistic reorder
                await self.children.invalidate(parent_id)
                raise

        async def refresh(record_id: str, sequence: int) -> None:
            await self._refresh_families_quietly()
            await self.children.invalidate(parent_id)

        return SequenceEditor(update, before_update=reorder_locally, after_commit=refresh)

    # --- Internals ---

    async def _refresh_families_quietly(self) -> None:
        """Refresh the family table after a successful write; a failed refresh is only logged."""
        try:
            await self.refresh_families()
        except CatalogError as e:
            logger.warning(f"Family list refresh after write failed: {e}")

    async def close(self) -> None:
        if self._search_task is not None and not self._search_task.done():
            self._search_task.cancel()
        await self.children.close()
