"""
# Sequence Editor

Inline edit protocol for the `sequence` column of family and sub-family rows.

```
display ──begin──► editing(raw) ──commit(valid)──► update call ──► display (after refresh)
                      │
                      └── cancel, or commit with invalid input ──► display (value reverts)
```

Valid input is all ASCII digits and at least 1. Anything else closes the edit
silently. No error is raised and no call is made. A valid commit issues exactly one
update call. A second commit of the same edit (Enter, then the blur that follows) finds
no open edit and does nothing.
"""

import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

from sku_catalog.managers.logging_manager import get_logger

logger = get_logger(prefix="[SequenceEditor]")

SEQUENCE_INPUT = re.compile(r"[0-9]+")

UpdateCall = Callable[[str, int], Awaitable[None]]
CommitHook = Callable[[str, int], Awaitable[None]]


def parse_sequence(raw_input: Optional[str]) -> Optional[int]:
    """Return the sequence typed in `raw_input`, or `None` if it is not a valid value."""
    if raw_input is None:
        return None
    if not SEQUENCE_INPUT.fullmatch(raw_input):
        return None
    value = int(raw_input)
    return value if value >= 1 else None


@dataclass
class SequenceEdit:
    record_id: str
    original: int
    raw_input: str


class SequenceEditor:
    """
    Per-row edit state plus the write-through commit.

    Args:
        update_call: Coroutine `(record_id, sequence)` that persists the new value.
        before_update: Optional coroutine run before the call (e.g. optimistic re-sort).
        after_commit: Optional coroutine run after a successful call (e.g. refetch).
    """

    def __init__(
        self,
        update_call: UpdateCall,
        before_update: Optional[CommitHook] = None,
        after_commit: Optional[CommitHook] = None,
    ):
        self.update_call = update_call
        self.before_update = before_update
        self.after_commit = after_commit
        self._edits: Dict[str, SequenceEdit] = {}

    def is_editing(self, record_id: str) -> bool:
        return record_id in self._edits

    def display_value(self, record_id: str) -> Optional[str]:
        """Text currently typed for `record_id`, or `None` when not editing."""
        edit = self._edits.get(record_id)
        return edit.raw_input if edit else None

    def begin(self, record_id: str, current_value: int) -> None:
        self._edits[record_id] = SequenceEdit(record_id, current_value, str(current_value))

    def change(self, record_id: str, raw_input: str) -> None:
        edit = self._edits.get(record_id)
        if edit is not None:
            edit.raw_input = raw_input

    def cancel(self, record_id: str) -> None:
        self._edits.pop(record_id, None)

    async def commit(self, record_id: str) -> Optional[int]:
        """
        Close the edit and persist it if the input is valid.

        Returns:
            The committed sequence, or `None` if there was no open edit or the input
            was invalid (the displayed value reverts).

        Raises:
            CatalogError: The update call failed. The edit is already closed.
        """
        edit = self._edits.pop(record_id, None)
        if edit is None:
            return None

        sequence = parse_sequence(edit.raw_input)
        if sequence is None:
            logger.debug(f"Discarding invalid sequence '{edit.raw_input}' for {record_id}")
            return None

        if self.before_update is not None:
            await self.before_update(record_id, sequence)
        try:
            await self.update_call(record_id, sequence)
        except Exception as e:
            logger.error(f"Failed to update sequence of {record_id} to {sequence}: {e}")
            raise

        logger.info(f"Sequence of {record_id} set to {sequence}")
        if self.after_commit is not None:
            await self.after_commit(record_id, sequence)
        return sequence
