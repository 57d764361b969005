from unittest.mock import AsyncMock

import pytest

from sku_catalog.exceptions import TransientError
from sku_catalog.services.sequence_editor import SequenceEditor, parse_sequence


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("3", 3),
        ("042", 42),
        ("abc", None),
        ("", None),
        ("0", None),
        ("-2", None),
        ("2.5", None),
        (" 4", None),
        ("4\n", None),
        (None, None),
    ],
)
def test_parse_sequence(raw, expected):
    assert parse_sequence(raw) == expected


@pytest.mark.asyncio
async def test_valid_commit_calls_update_once():
    update = AsyncMock()
    editor = SequenceEditor(update)

    editor.begin("row-1", 1)
    editor.change("row-1", "3")

    assert editor.display_value("row-1") == "3"
    assert await editor.commit("row-1") == 3
    update.assert_awaited_once_with("row-1", 3)
    assert not editor.is_editing("row-1")


@pytest.mark.asyncio
async def test_invalid_input_reverts_without_call():
    update = AsyncMock()
    editor = SequenceEditor(update)

    editor.begin("row-1", 2)
    editor.change("row-1", "abc")

    assert await editor.commit("row-1") is None
    update.assert_not_awaited()
    assert editor.display_value("row-1") is None


@pytest.mark.asyncio
async def test_second_commit_of_same_edit_is_ignored():
    update = AsyncMock()
    editor = SequenceEditor(update)

    editor.begin("row-1", 1)
    editor.change("row-1", "5")
    await editor.commit("row-1")
    assert await editor.commit("row-1") is None

    update.assert_awaited_once_with("row-1", 5)


@pytest.mark.asyncio
async def test_cancel_discards_edit():
    update = AsyncMock()
    editor = SequenceEditor(update)

    editor.begin("row-1", 1)
    editor.change("row-1", "9")
    editor.cancel("row-1")

    assert await editor.commit("row-1") is None
    update.assert_not_awaited()


@pytest.mark.asyncio
async def test_edits_are_tracked_per_row():
    update = AsyncMock()
    editor = SequenceEditor(update)

    editor.begin("row-1", 1)
    editor.begin("row-2", 2)
    editor.change("row-2", "7")
    editor.change("row-3", "8")

    assert editor.display_value("row-1") == "1"
    assert editor.display_value("row-2") == "7"
    assert not editor.is_editing("row-3")


@pytest.mark.asyncio
async def test_hooks_run_around_update():
    order = []
    update = AsyncMock(side_effect=lambda rid, seq: order.append(("update", rid, seq)))
    before = AsyncMock(side_effect=lambda rid, seq: order.append(("before", rid, seq)))
    after = AsyncMock(side_effect=lambda rid, seq: order.append(("after", rid, seq)))
    editor = SequenceEditor(update, before_update=before, after_commit=after)

    editor.begin("row-1", 1)
    editor.change("row-1", "2")
    await editor.commit("row-1")

    assert order == [("before", "row-1", 2), ("update", "row-1", 2), ("after", "row-1", 2)]


@pytest.mark.asyncio
async def test_failed_update_propagates_and_skips_after_commit():
    update = AsyncMock(side_effect=TransientError("timeout"))
    after = AsyncMock()
    editor = SequenceEditor(update, after_commit=after)

    editor.begin("row-1", 1)
    editor.change("row-1", "4")

    with pytest.raises(TransientError):
        await editor.commit("row-1")
    after.assert_not_awaited()
    assert not editor.is_editing("row-1")
