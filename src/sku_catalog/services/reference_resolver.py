"""
# Master Reference Resolver

Turns a free-text master field (brand, category, condition, storage, RAM, color) into the
id of a reference entity. An existing entity is reused when its title matches; otherwise a
new one is created with a freshly allocated code.

## Resolution Steps

1. Trim the label. A blank label resolves to `None` (field left unset).
2. Title-case it (`"space gray"` -> `"Space Gray"`). The normalized text is both the match
   key and the title stored on creation.
3. Look for a case-insensitive title match in the local snapshot of that type. A hit
   returns its id without a network call.
4. Otherwise allocate the next code from the known codes and call `create_reference`.
5. Merge the created entity into the snapshot, so later resolutions in the session hit
   step 3, and return its id.
6. Failures propagate. The save that asked for the resolution must abort.

Resolve once per field at submit time, never per keystroke, so half-typed labels never
become entities.

## Snapshot

The snapshot per type is loaded lazily (`list_references(type, 1, REFERENCE_SNAPSHOT_LIMIT)`)
and only grows during a session. Before a create, it is refreshed once when
`REFRESH_CODES_BEFORE_CREATE` is set. The refresh picks up titles and codes other clients
added since the snapshot was taken.
"""

from typing import Dict, List, Optional

from sku_catalog.config import settings
from sku_catalog.managers.logging_manager import get_logger
from sku_catalog.models.reference_models import CreateReferenceRequest, ReferenceEntity, ReferenceType
from sku_catalog.utils.code_allocator import allocate_code
from sku_catalog.utils.label_helpers import label_key, normalize_label

logger = get_logger(prefix="[ReferenceResolver]")


class ReferenceResolver:
    """
    Get-or-create of reference entities by label.

    Attributes:
        api: Collaborator exposing `list_references` and `create_reference` coroutines.
        snapshot_limit (int): Page size used to load a type's snapshot.
        refresh_before_create (bool): Re-read the snapshot before allocating a code.
    """

    def __init__(
        self,
        api,
        snapshot_limit: Optional[int] = None,
        refresh_before_create: Optional[bool] = None,
    ):
        self.api = api
        self.snapshot_limit = snapshot_limit or settings.REFERENCE_SNAPSHOT_LIMIT
        self.refresh_before_create = (
            settings.REFRESH_CODES_BEFORE_CREATE if refresh_before_create is None else refresh_before_create
        )
        self._snapshots: Dict[ReferenceType, Dict[str, ReferenceEntity]] = {}

    # --- Snapshot ---

    def is_loaded(self, ref_type: ReferenceType) -> bool:
        return ref_type in self._snapshots

    def entities(self, ref_type: ReferenceType) -> List[ReferenceEntity]:
        """Entities of `ref_type` known locally, sorted by title (for pick lists)."""
        return sorted(self._snapshots.get(ref_type, {}).values(), key=lambda e: e.title.lower())

    def known_codes(self, ref_type: ReferenceType) -> List[str]:
        return [e.code for e in self._snapshots.get(ref_type, {}).values() if e.code]

    def find(self, ref_type: ReferenceType, label: str) -> Optional[ReferenceEntity]:
        """Case-insensitive exact title match in the local snapshot."""
        key = label_key(label)
        for entity in self._snapshots.get(ref_type, {}).values():
            if label_key(entity.title) == key:
                return entity
        return None

    def remember(self, ref_type: ReferenceType, entity: ReferenceEntity) -> None:
        self._snapshots.setdefault(ref_type, {})[entity.id] = entity

    async def refresh(self, ref_type: ReferenceType) -> List[ReferenceEntity]:
        """
        Fetch the current entities of `ref_type` and merge them into the snapshot.

        Entities already known are kept, so the snapshot never shrinks within a session.
        """
        response = await self.api.list_references(ref_type, 1, self.snapshot_limit)
        snapshot = self._snapshots.setdefault(ref_type, {})
        for entity in response.docs:
            snapshot[entity.id] = entity
        if response.total_docs > len(response.docs):
            logger.warning(
                f"{ref_type.label} snapshot truncated: {len(response.docs)} of {response.total_docs} loaded"
            )
        logger.debug(f"Loaded {len(snapshot)} {ref_type.label} entities")
        return self.entities(ref_type)

    async def load(self, ref_type: ReferenceType) -> List[ReferenceEntity]:
        """Load the snapshot for `ref_type` unless it is already held."""
        if not self.is_loaded(ref_type):
            await self.refresh(ref_type)
        return self.entities(ref_type)

    # --- Resolution ---

    async def resolve(self, ref_type: ReferenceType, label: Optional[str]) -> Optional[str]:
        """
        Resolve `label` to the id of a `ref_type` entity, creating it if needed.

        Args:
            ref_type: Kind of master data.
            label: Free text typed by the user.

        Returns:
            The entity id, or `None` when the label is blank.

        Raises:
            ConflictError: The allocated code was taken concurrently.
            TransientError: The list or create call failed in transit.
            CodeSpaceExhaustedError: No codes left for the type's prefix.
        """
        title = normalize_label(label)
        if title is None:
            return None

        await self.load(ref_type)
        existing = self.find(ref_type, title)
        if existing is not None:
            return existing.id

        if self.refresh_before_create:
            await self.refresh(ref_type)
            existing = self.find(ref_type, title)
            if existing is not None:
                logger.info(f"{ref_type.label} '{title}' appeared since last load; reusing {existing.id}")
                return existing.id

        code = allocate_code(ref_type.code_prefix, self.known_codes(ref_type))
        try:
            entity = await self.api.create_reference(ref_type, CreateReferenceRequest(title=title, code=code))
        except Exception as e:
            logger.error(f"Failed to create {ref_type.label} '{title}' with code {code}: {e}")
            raise

        self.remember(ref_type, entity)
        logger.info(f"Created {ref_type.label} '{entity.title}' ({entity.code}) as {entity.id}")
        return entity.id
