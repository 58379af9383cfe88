"""
Tests resolver drag-and-drop — grammaire des ids, une action par drop.
"""
import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from case_builder.core.schemas import DraftBlock
from case_builder.editor.actions import (
    AddContainer,
    AddContentBlock,
    AddItem,
    AddSpacer,
    InsertBlockAt,
    InsertContentBlockAt,
    InsertItemBefore,
    MoveItem,
    ReorderBlocks,
)
from case_builder.editor.dnd import (
    AppendAnchor,
    BlockAnchor,
    ColumnAnchor,
    ItemAnchor,
    MoveIntent,
    PaletteToken,
    parse_drag_id,
    resolve_drop,
    resolve_preview_move,
)


@pytest.fixture
def drafts():
    return [
        DraftBlock(key="A", type="container", content={"columns": 2, "slots": [
            [{"_key": "a1", "type": "text"}, {"_key": "a2", "type": "text"}],
            [],
        ]}),
        DraftBlock(key="S", type="spacer", content={}),
        DraftBlock(key="B", type="container", content={"columns": 1, "slots": [[{"_key": "b1", "type": "image"}]]}),
    ]


# ── parse_drag_id ─────────────────────────────────────────────────────────

class TestParse:
    def test_item(self):
        assert parse_drag_id("item:A:0:a1") == ItemAnchor(block_key="A", column_index=0, item_key="a1")

    def test_column(self):
        assert parse_drag_id("col:A:1") == ColumnAnchor(block_key="A", column_index=1)

    def test_preview_column(self):
        assert parse_drag_id("preview-drop:A:1") == ColumnAnchor(block_key="A", column_index=1)

    def test_append_zones(self):
        assert parse_drag_id("preview-drop:append") == AppendAnchor(zone="preview")
        assert parse_drag_id("sidebar-drop:append") == AppendAnchor(zone="sidebar")

    def test_palette(self):
        assert parse_drag_id("palette:video") == PaletteToken(kind="video")
        assert parse_drag_id("palette:container-3") == PaletteToken(kind="container", columns=3)
        assert parse_drag_id("palette:spacer") == PaletteToken(kind="spacer")

    def test_palette_unknown(self):
        assert parse_drag_id("palette:carousel") is None
        assert parse_drag_id("palette:container-9") is None

    def test_block(self):
        assert parse_drag_id("3f2b-uuid") == BlockAnchor(block_key="3f2b-uuid")

    def test_empty(self):
        assert parse_drag_id("") is None
        assert parse_drag_id(None) is None

    def test_unknown_drop_zone(self):
        assert parse_drag_id("preview-drop:elsewhere") is None


# ── Items ─────────────────────────────────────────────────────────────────

class TestItemDrops:
    def test_item_on_item(self, drafts):
        a = resolve_drop(drafts, "item:A:0:a2", "item:B:0:b1")
        assert isinstance(a, MoveItem)
        assert a.source.item_key == "a2"
        assert a.target.block_key == "B"
        assert a.target.before_item_key == "b1"

    def test_item_on_column_appends(self, drafts):
        a = resolve_drop(drafts, "item:A:0:a1", "col:A:1")
        assert isinstance(a, MoveItem)
        assert a.target.column_index == 1
        assert a.target.before_item_key is None

    def test_item_on_preview_column(self, drafts):
        a = resolve_drop(drafts, "item:A:0:a1", "preview-drop:B:0")
        assert isinstance(a, MoveItem)

    def test_same_id_ignored(self, drafts):
        assert resolve_drop(drafts, "item:A:0:a1", "item:A:0:a1") is None

    def test_no_target(self, drafts):
        assert resolve_drop(drafts, "item:A:0:a1", None) is None

    def test_stale_source(self, drafts):
        assert resolve_drop(drafts, "item:A:0:gone", "col:A:1") is None

    def test_stale_target_column(self, drafts):
        assert resolve_drop(drafts, "item:A:0:a1", "col:A:7") is None

    def test_item_on_block_ignored(self, drafts):
        assert resolve_drop(drafts, "item:A:0:a1", "S") is None


# ── Blocs ─────────────────────────────────────────────────────────────────

class TestBlockDrops:
    def test_block_on_block(self, drafts):
        a = resolve_drop(drafts, "B", "A")
        assert a == ReorderBlocks(from_key="B", to_key="A")

    def test_block_on_item_maps_to_its_block(self, drafts):
        a = resolve_drop(drafts, "S", "item:B:0:b1")
        assert a == ReorderBlocks(from_key="S", to_key="B")

    def test_unknown_block(self, drafts):
        assert resolve_drop(drafts, "ghost", "A") is None

    def test_block_on_append_ignored(self, drafts):
        assert resolve_drop(drafts, "A", "sidebar-drop:append") is None

    def test_block_on_column_ignored(self, drafts):
        assert resolve_drop(drafts, "S", "col:B:0") is None
        assert resolve_drop(drafts, "S", "preview-drop:A:1") is None


# ── Palette ───────────────────────────────────────────────────────────────

class TestPaletteDrops:
    def test_content_on_column(self, drafts):
        a = resolve_drop(drafts, "palette:image", "col:A:1")
        assert a == AddItem(block_key="A", column_index=1, item_type="image")

    def test_content_on_item(self, drafts):
        a = resolve_drop(drafts, "palette:text", "item:A:0:a2")
        assert a == InsertItemBefore(block_key="A", column_index=0, before_item_key="a2", item_type="text")

    def test_content_on_append(self, drafts):
        assert resolve_drop(drafts, "palette:video", "preview-drop:append") == AddContentBlock(item_type="video")

    def test_content_on_block(self, drafts):
        assert resolve_drop(drafts, "palette:text", "S") == InsertContentBlockAt(at_block_key="S", item_type="text")

    def test_container_on_append(self, drafts):
        assert resolve_drop(drafts, "palette:container-2", "sidebar-drop:append") == AddContainer(columns=2)

    def test_spacer_on_append(self, drafts):
        assert resolve_drop(drafts, "palette:spacer", "sidebar-drop:append") == AddSpacer()

    def test_container_on_block(self, drafts):
        a = resolve_drop(drafts, "palette:container-4", "B")
        assert a == InsertBlockAt(at_block_key="B", block_type="container", columns=4)

    def test_spacer_on_item_inserts_before_its_block(self, drafts):
        a = resolve_drop(drafts, "palette:spacer", "item:B:0:b1")
        assert a == InsertBlockAt(at_block_key="B", block_type="spacer")

    def test_palette_on_stale_block(self, drafts):
        assert resolve_drop(drafts, "palette:text", "ghost") is None


# ── resolve_preview_move ──────────────────────────────────────────────────

class TestPreviewMove:
    def test_dict_intent_with_aliases(self, drafts):
        a = resolve_preview_move(drafts, {
            "from": {"block_key": "A", "column_index": 0, "item_key": "a2"},
            "to": {"block_key": "B", "column_index": 0, "before_item_key": "b1"},
        })
        assert isinstance(a, MoveItem)
        assert a.source.item_key == "a2"
        assert a.target.before_item_key == "b1"

    def test_model_intent_append(self, drafts):
        intent = MoveIntent(
            source={"block_key": "B", "column_index": 0, "item_key": "b1"},
            target={"block_key": "A", "column_index": 1},
        )
        a = resolve_preview_move(drafts, intent)
        assert a.target.block_key == "A"
        assert a.target.before_item_key is None

    def test_stale_source(self, drafts):
        assert resolve_preview_move(drafts, {
            "from": {"block_key": "A", "column_index": 0, "item_key": "gone"},
            "to": {"block_key": "B", "column_index": 0},
        }) is None

    def test_missing_column(self, drafts):
        assert resolve_preview_move(drafts, {
            "from": {"block_key": "A", "column_index": 0, "item_key": "a1"},
            "to": {"block_key": "B", "column_index": 3},
        }) is None

    def test_before_itself(self, drafts):
        assert resolve_preview_move(drafts, {
            "from": {"block_key": "A", "column_index": 0, "item_key": "a1"},
            "to": {"block_key": "A", "column_index": 0, "before_item_key": "a1"},
        }) is None

    def test_shared_key_in_other_container(self):
        drafts = [
            DraftBlock(key="A", type="container", content={"columns": 1, "slots": [[{"_key": "x", "type": "text"}]]}),
            DraftBlock(key="B", type="container", content={"columns": 1, "slots": [[{"_key": "x", "type": "image"}]]}),
        ]
        a = resolve_preview_move(drafts, {
            "from": {"block_key": "A", "column_index": 0, "item_key": "x"},
            "to": {"block_key": "B", "column_index": 0, "before_item_key": "x"},
        })
        assert isinstance(a, MoveItem)
        assert a.target.block_key == "B"
        assert a.target.before_item_key == "x"
