"""
# Sub-Family Cache

Per-family cache of sub-family pages. Each expanded family row gets an independent
`PagedChildView` with its own page, search text and loading flag.

## Entry Lifecycle

```
absent ──expand──► loading ──response──► loaded(page, query)
                      ▲                        │
                      └── set_page / set_search / invalidate
```

- **absent**: the row was never expanded, or no fetch for it has completed yet.
- **invalidate** refetches the same page and query. A delete can leave that page short;
  the page is not recomputed.

## Last Request Wins

Every fetch takes the next value of a counter scoped to its family id. A response is
applied only if its counter is still the latest issued for that family. Anything older
is dropped. A slow page-1 response can therefore never overwrite a newer page-2 response.
Nothing is cancelled at the transport level.

## Search Debounce

`set_search` schedules the fetch after `CHILD_SEARCH_DEBOUNCE_MS`, tracked in one task
store keyed by family id. Typing in one row's search box only resets that row's timer.

## Failures

A failed fetch keeps the last loaded items visible and clears `loading`. It is logged and
passed to `on_fetch_error`. It is not raised, so one broken row never blocks the others.
Any other exception is a bug, not a fetch failure. It still ends `loading` and then
propagates.
"""

import asyncio
from typing import Callable, Dict, Optional, Set

from sku_catalog.config import settings
from sku_catalog.exceptions import CatalogError
from sku_catalog.managers.logging_manager import get_logger
from sku_catalog.models.catalog_models import PagedChildView

logger = get_logger(prefix="[ChildCache]")

FetchErrorCallback = Callable[[str, CatalogError], None]


def sort_by_sequence(items):
    """Ascending `sequence`, ties broken by id."""
    return sorted(items, key=lambda item: (item.sequence, item.id))


class ChildCollectionCache:
    """
    Lazily populated, independently paginated sub-family views keyed by family id.

    Attributes:
        api: Collaborator exposing `list_children(parent_id, page, limit, search)`.
        page_size (int): Sub-families per page.
        debounce_seconds (float): Delay before a typed search is fetched.
    """

    def __init__(
        self,
        api,
        page_size: Optional[int] = None,
        debounce_seconds: Optional[float] = None,
        on_fetch_error: Optional[FetchErrorCallback] = None,
    ):
        self.api = api
        self.page_size = page_size or settings.CHILD_PAGE_SIZE
        self.debounce_seconds = (
            settings.child_search_debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        self.on_fetch_error = on_fetch_error
        self._entries: Dict[str, PagedChildView] = {}
        self._expanded: Set[str] = set()
        self._collapsed: Set[str] = set()
        self._search_tasks: Dict[str, asyncio.Task] = {}

    # --- Queries ---

    def get(self, parent_id: str) -> Optional[PagedChildView]:
        """The loaded view for `parent_id`, or `None` if no fetch has completed yet."""
        entry = self._entries.get(parent_id)
        if entry is None or not entry.loaded:
            return None
        return entry

    def is_loaded(self, parent_id: str) -> bool:
        return self.get(parent_id) is not None

    def is_loading(self, parent_id: str) -> bool:
        entry = self._entries.get(parent_id)
        return bool(entry and entry.loading)

    def is_expanded(self, parent_id: str) -> bool:
        return parent_id in self._expanded

    # --- Row expansion ---

    async def expand(self, parent_id: str) -> Optional[PagedChildView]:
        """Mark the row expanded and load page 1 if nothing is cached for it yet."""
        self._expanded.add(parent_id)
        self._collapsed.discard(parent_id)
        return await self.ensure_loaded(parent_id)

    def collapse(self, parent_id: str) -> None:
        """Mark the row collapsed. The cached view is kept for the next expansion."""
        if parent_id in self._expanded:
            self._expanded.discard(parent_id)
            self._collapsed.add(parent_id)

    # --- Fetch triggers ---

    async def ensure_loaded(self, parent_id: str) -> Optional[PagedChildView]:
        """Fetch page 1 unless a view is cached or a fetch is already in flight."""
        entry = self._entries.get(parent_id)
        if entry is not None and (entry.loaded or entry.loading):
            return self.get(parent_id)
        return await self._fetch(parent_id, 1, "")

    async def set_page(
        self, parent_id: str, page: int, search: Optional[str] = None
    ) -> Optional[PagedChildView]:
        """Fetch `page` with the current search text, or with `search` when given."""
        if search is None:
            entry = self._entries.get(parent_id)
            search = entry.last_search_query if entry is not None else ""
        query = search.strip()
        return await self._fetch(parent_id, max(1, page), query)

    def set_search(self, parent_id: str, query: str) -> asyncio.Task:
        """
        Schedule a debounced page-1 search for `parent_id`.

        A previous pending search for the same family is cancelled. Other families'
        pending searches are untouched. A row that was never expanded is searched like any
        other. If the row is collapsed when the delay ends, the search is dropped.

        Returns:
            The scheduled task. Awaiting it yields the view after the search applied.
        """
        pending = self._search_tasks.get(parent_id)
        if pending is not None and not pending.done():
            pending.cancel()
        task = asyncio.get_running_loop().create_task(self._debounced_search(parent_id, query))
        self._search_tasks[parent_id] = task
        return task

    async def invalidate(self, parent_id: str) -> Optional[PagedChildView]:
        """
        Refetch the current page and search of `parent_id` after a mutation.

        A family that was never loaded has nothing to refresh; its next expansion loads it.
        """
        entry = self._entries.get(parent_id)
        if entry is None or not entry.loaded:
            return None
        return await self._fetch(parent_id, entry.current_page, entry.last_search_query)

    # --- Local edits ---

    def apply_local_sequence(self, parent_id: str, record_id: str, sequence: int) -> None:
        """Reorder a cached sub-family immediately while its sequence update is in flight."""
        entry = self._entries.get(parent_id)
        if entry is None:
            return
        for index, item in enumerate(entry.items):
            if item.id == record_id:
                entry.items[index] = item.model_copy(update={"sequence": sequence})
                entry.items = sort_by_sequence(entry.items)
                return

    def discard(self, parent_id: str) -> None:
        """Forget a family entirely (e.g. after it was deleted)."""
        pending = self._search_tasks.pop(parent_id, None)
        if pending is not None and not pending.done():
            pending.cancel()
        self._entries.pop(parent_id, None)
        self._expanded.discard(parent_id)
        self._collapsed.discard(parent_id)

    async def close(self) -> None:
        """Cancel all pending debounced searches."""
        tasks = [task for task in self._search_tasks.values() if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._search_tasks.clear()

    # --- Internals ---

    async def _debounced_search(self, parent_id: str, query: str) -> Optional[PagedChildView]:
        if self.debounce_seconds > 0:
            await asyncio.sleep(self.debounce_seconds)
        # Past the debounce window the fetch is issued and no longer cancellable
        if self._search_tasks.get(parent_id) is asyncio.current_task():
            del self._search_tasks[parent_id]
        if parent_id in self._collapsed:
            logger.debug(f"Dropping search for collapsed family {parent_id}")
            return self.get(parent_id)
        return await self._fetch(parent_id, 1, query.strip())

    async def _fetch(self, parent_id: str, page: int, query: str) -> Optional[PagedChildView]:
        entry = self._entries.get(parent_id)
        if entry is None:
            entry = PagedChildView(parent_id=parent_id)
            self._entries[parent_id] = entry

        entry.latest_request += 1
        request_id = entry.latest_request
        entry.loading = True

        try:
            result = await self.api.list_children(parent_id, page, self.page_size, query or None)
        except CatalogError as e:
            if self._is_current(parent_id, entry, request_id):
                entry.loading = False
                logger.error(f"Failed to fetch sub-families of {parent_id} (page {page}): {e}")
                if self.on_fetch_error is not None:
                    self.on_fetch_error(parent_id, e)
            else:
                logger.debug(f"Ignoring failure of superseded fetch {request_id} for {parent_id}")
            return self.get(parent_id)
        finally:
            # Any outcome of the latest request ends the loading state
            if self._is_current(parent_id, entry, request_id):
                entry.loading = False

        if not self._is_current(parent_id, entry, request_id):
            logger.debug(f"Discarding stale response {request_id} for {parent_id}")
            return self.get(parent_id)

        items = [
            item if item.parent_id else item.model_copy(update={"parent_id": parent_id})
            for item in result.docs
        ]
        entry.items = sort_by_sequence(items)
        entry.total_count = result.total_docs
        entry.total_pages = max(1, result.total_pages)
        entry.current_page = result.page or page
        entry.last_search_query = query
        entry.loading = False
        entry.loaded = True
        return entry

    def _is_current(self, parent_id: str, entry: PagedChildView, request_id: int) -> bool:
        return self._entries.get(parent_id) is entry and entry.latest_request == request_id
