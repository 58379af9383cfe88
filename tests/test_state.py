"""
Tests reducer de l'éditeur — sélection posée par les actions, garde destructive.
"""
import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from pydantic import ValidationError

from case_builder.core.schemas import BlockRow
from case_builder.editor.actions import (
    AddContainer,
    AddContentBlock,
    AddItem,
    DeleteBlock,
    Drop,
    DuplicateBlock,
    DuplicateItem,
    FocusItem,
    Hover,
    InsertBlockAt,
    MoveItem,
    RemoveItem,
    SelectBlock,
    SetColumns,
    UpdateItem,
    parse_action,
)
from case_builder.editor.algebra import DropLocation, ItemLocation
from case_builder.editor.selection import HighlightTarget
from case_builder.editor.state import EditorState, apply_action
from case_builder.errors import DestructiveEditError


def _rows():
    return [
        BlockRow(id="A", type="container", sort_order=0, content={"columns": 2, "slots": [
            [{"_key": "a1", "type": "text"}, {"_key": "a2", "type": "text"}],
            [{"_key": "a3", "type": "image"}],
        ]}),
        BlockRow(id="S", type="spacer", sort_order=1, content={}),
        BlockRow(id="B", type="container", sort_order=2, content={"columns": 1, "slots": [[]]}),
    ]


@pytest.fixture
def state():
    return EditorState.from_rows("case-1", _rows())


def _keys(state):
    return [d.key for d in state.drafts]


# ── Chargement ────────────────────────────────────────────────────────────

class TestLoad:
    def test_first_block_selected(self, state):
        assert state.selection.selected_block == "A"
        assert not state.has_changes

    def test_previous_selection_kept(self):
        s = EditorState.from_rows("case-1", _rows(), selected="B")
        assert s.selection.selected_block == "B"

    def test_stale_selection_falls_back(self):
        s = EditorState.from_rows("case-1", _rows(), selected="gone")
        assert s.selection.selected_block == "A"

    def test_empty_case(self):
        s = EditorState.from_rows("case-1", [])
        assert s.drafts == []
        assert s.selection.selected_block is None


# ── Actions blocs ─────────────────────────────────────────────────────────

class TestBlockActions:
    def test_add_container_selects_it(self, state):
        s = apply_action(state, AddContainer(columns=3))
        assert len(s.drafts) == 4
        assert s.selection.selected_block == s.drafts[-1].key
        assert s.has_changes

    def test_add_content_block_focuses_item(self, state):
        s = apply_action(state, AddContentBlock(item_type="video"))
        new = s.drafts[-1]
        assert s.selection.selected_block == new.key
        assert s.selection.focused_item.item_index == 0

    def test_insert_block_at(self, state):
        s = apply_action(state, InsertBlockAt(at_block_key="S", block_type="spacer"))
        assert s.drafts[1].type == "spacer"
        assert s.selection.selected_block == s.drafts[1].key

    def test_duplicate_selects_copy(self, state):
        s = apply_action(state, DuplicateBlock(block_key="A"))
        assert s.selection.selected_block == s.drafts[1].key
        assert s.drafts[1].id is None

    def test_delete_selected_moves_selection(self, state):
        s = apply_action(state, DeleteBlock(block_key="A"))
        assert _keys(s) == ["S", "B"]
        assert s.selection.selected_block == "S"

    def test_unknown_block_returns_same_state(self, state):
        assert apply_action(state, DeleteBlock(block_key="ghost")) is state

    def test_invalid_columns_raises(self, state):
        with pytest.raises(ValueError):
            apply_action(state, AddContainer(columns=7))


class TestSetColumns:
    def test_lossy_shrink_refused(self, state):
        with pytest.raises(DestructiveEditError) as exc:
            apply_action(state, SetColumns(block_key="A", columns=1))
        assert exc.value.lost_items == 1

    def test_lossy_shrink_confirmed(self, state):
        s = apply_action(state, SetColumns(block_key="A", columns=1, confirm_discard=True))
        assert s.drafts[0].content.columns == 1
        assert s.drafts[0].content.item_count() == 2

    def test_empty_columns_shrink_freely(self, state):
        s = apply_action(state, SetColumns(block_key="A", columns=4))
        s = apply_action(s, SetColumns(block_key="A", columns=2))
        assert s.drafts[0].content.columns == 2

    def test_focus_in_removed_column_cleared(self, state):
        s = apply_action(state, FocusItem(block_key="A", column_index=1, item_index=0))
        s = apply_action(s, SetColumns(block_key="A", columns=1, confirm_discard=True))
        assert s.selection.focused_item is None
        assert s.selection.selected_block == "A"


# ── Actions items ─────────────────────────────────────────────────────────

class TestItemActions:
    def test_add_item_focuses_it(self, state):
        s = apply_action(state, AddItem(block_key="B", column_index=0, item_type="text"))
        assert s.selection.selected_block == "B"
        assert s.selection.focused_item.item_index == 0

    def test_duplicate_item_focuses_copy(self, state):
        s = apply_action(state, DuplicateItem(block_key="A", column_index=0, item_index=0))
        assert s.selection.focused_item.item_index == 1
        assert s.drafts[0].content.slots[0][1].key not in ("a1", "a2")

    def test_remove_focused_item(self, state):
        s = apply_action(state, FocusItem(block_key="A", column_index=0, item_index=1))
        s = apply_action(s, RemoveItem(block_key="A", column_index=0, item_index=1))
        assert s.selection.focused_item is None

    def test_update_item(self, state):
        s = apply_action(state, UpdateItem(block_key="A", column_index=0, item_index=0, patch={"body": "Titre"}))
        assert s.drafts[0].content.slots[0][0].content.body == "Titre"
        assert s.has_changes

    def test_move_focuses_destination(self, state):
        s = apply_action(state, MoveItem(
            source=ItemLocation(block_key="A", column_index=0, item_key="a1"),
            target=DropLocation(block_key="B", column_index=0),
        ))
        assert s.drafts[2].content.slots[0][0].key == "a1"
        assert s.has_changes
        f = s.selection.focused_item
        assert (f.block_key, f.column_index, f.item_index) == ("B", 0, 0)

    def test_reorder_in_column_marks_dirty(self, state):
        s = apply_action(state, MoveItem(
            source=ItemLocation(block_key="A", column_index=0, item_key="a2"),
            target=DropLocation(block_key="A", column_index=0, before_item_key="a1"),
        ))
        assert [it.key for it in s.drafts[0].content.slots[0]] == ["a2", "a1"]
        assert s.has_changes

    def test_move_to_same_place_stays_clean(self, state):
        s = apply_action(state, MoveItem(
            source=ItemLocation(block_key="A", column_index=0, item_key="a2"),
            target=DropLocation(block_key="A", column_index=0),
        ))
        assert [it.key for it in s.drafts[0].content.slots[0]] == ["a1", "a2"]
        assert not s.has_changes

    def test_move_noop_same_state(self, state):
        s = apply_action(state, MoveItem(
            source=ItemLocation(block_key="A", column_index=0, item_key="a1"),
            target=DropLocation(block_key="A", column_index=0, before_item_key="a1"),
        ))
        assert s is state


# ── Sélection / drop ──────────────────────────────────────────────────────

class TestSelectionActions:
    def test_select_missing_block_reconciled(self, state):
        s = apply_action(state, SelectBlock(block_key="ghost"))
        assert s.selection.selected_block is None

    def test_hover_dangling_dropped(self, state):
        s = apply_action(state, Hover(target=HighlightTarget(block_key="A", column_index=0, item_index=9)))
        assert s.selection.hovered is None

    def test_hover_valid(self, state):
        s = apply_action(state, Hover(target=HighlightTarget(block_key="S")))
        assert s.selection.active_highlight.block_key == "S"

    def test_drop_reorders(self, state):
        s = apply_action(state, Drop(active_id="B", over_id="A"))
        assert _keys(s) == ["B", "A", "S"]

    def test_drop_palette_creates_item(self, state):
        s = apply_action(state, Drop(active_id="palette:image", over_id="col:B:0"))
        assert s.drafts[2].content.slots[0][0].type == "image"

    def test_ignored_drop_same_state(self, state):
        assert apply_action(state, Drop(active_id="A", over_id="A")) is state

    def test_parse_action(self):
        a = parse_action({"action": "set_columns", "block_key": "A", "columns": 3})
        assert isinstance(a, SetColumns)
        with pytest.raises(ValidationError):
            parse_action({"action": "teleport"})

    def test_previous_state_untouched(self, state):
        apply_action(state, DeleteBlock(block_key="A"))
        assert _keys(state) == ["A", "S", "B"]
