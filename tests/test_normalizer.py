"""
Tests normalizer — forme canonique, migration legacy, payloads tolérants.
"""
import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from case_builder.core.normalizer import (
    detect_video_provider,
    normalize_block_content,
    normalize_container,
    normalize_item,
    normalize_spacer,
    to_canonical,
)
from case_builder.core.schemas import (
    DEFAULT_TEXT_BODY,
    ContainerContent,
    DraftBlock,
    ImageItem,
    TextItem,
    create_container_content,
    make_item,
)


# ── Conteneur ─────────────────────────────────────────────────────────────

class TestNormalizeContainer:
    def test_canonical_passthrough(self):
        raw = {
            "columns": 2,
            "slots": [
                [{"_key": "a", "type": "text", "content": {"body": "Bonjour"}}],
                [{"_key": "b", "type": "image", "content": {"url": "https://x/img.jpg"}}],
            ],
        }
        c = normalize_container(raw)
        assert c.columns == 2
        assert c.slots[0][0].key == "a"
        assert c.slots[0][0].content.body == "Bonjour"
        assert c.slots[1][0].content.url == "https://x/img.jpg"

    def test_legacy_single_item_per_column(self):
        raw = {
            "columns": 2,
            "slots": [{"type": "text", "content": {"body": "A"}}, None],
        }
        c = normalize_container(raw)
        assert len(c.slots) == 2
        assert len(c.slots[0]) == 1
        assert c.slots[0][0].content.body == "A"
        assert c.slots[1] == []

    @pytest.mark.parametrize("columns", [None, 0, 5, "2", True, -1, 2.5])
    def test_invalid_columns_fall_back_to_one(self, columns):
        c = normalize_container({"columns": columns, "slots": []})
        assert c.columns == 1
        assert len(c.slots) == 1

    def test_missing_slots_padded(self):
        c = normalize_container({"columns": 3})
        assert c.slots == [[], [], []]

    def test_extra_slots_truncated(self):
        raw = {"columns": 1, "slots": [[{"type": "text"}], [{"type": "image"}]]}
        c = normalize_container(raw)
        assert len(c.slots) == 1
        assert c.slots[0][0].type == "text"

    def test_unknown_items_dropped(self):
        raw = {"columns": 1, "slots": [[{"type": "audio"}, "garbage", {"type": "text"}]]}
        c = normalize_container(raw)
        assert [it.type for it in c.slots[0]] == ["text"]

    def test_non_dict_input_gives_empty_container(self):
        c = normalize_container("pas un document")
        assert c.columns == 1
        assert c.slots == [[]]

    def test_name_and_background_kept(self):
        c = normalize_container({"name": "Hero", "backgroundColor": "#111111", "columns": 1})
        assert c.name == "Hero"
        assert c.background_color == "#111111"

    def test_blank_name_removed(self):
        assert normalize_container({"name": "   "}).name is None

    def test_idempotent(self):
        raw = {"columns": 2, "slots": [{"type": "text", "content": {"body": "x"}}, None]}
        once = to_canonical(normalize_container(raw))
        twice = to_canonical(normalize_container(once))
        assert once == twice

    def test_accepts_model_instance(self):
        c = create_container_content(2)
        assert normalize_container(c).columns == 2


# ── Items ─────────────────────────────────────────────────────────────────

class TestNormalizeItem:
    def test_none_for_non_dict(self):
        assert normalize_item(None) is None
        assert normalize_item(42) is None

    def test_key_read_from_either_name(self):
        assert normalize_item({"_key": "k1", "type": "text"}).key == "k1"
        assert normalize_item({"key": "k2", "type": "text"}).key == "k2"

    def test_invalid_field_falls_back_to_default(self):
        item = normalize_item({"type": "image", "content": {"url": "u", "aspect": "7/3"}})
        assert item.content.aspect == "auto"
        assert item.content.url == "u"

    def test_padding_clamped(self):
        item = normalize_item({"type": "text", "content": {"padding": {"top": 999, "left": -5}}})
        assert item.content.padding.top == 240
        assert item.content.padding.left == 0

    def test_zoom_clamped(self):
        item = normalize_item({"type": "image", "content": {"zoom": 50}})
        assert item.content.zoom == 20

    def test_video_provider_detected(self):
        item = normalize_item({"type": "video", "content": {"url": "https://vimeo.com/123"}})
        assert item.content.provider == "vimeo"

    def test_video_provider_kept_when_valid(self):
        item = normalize_item({"type": "video", "content": {"url": "https://vimeo.com/1", "provider": "file"}})
        assert item.content.provider == "file"

    def test_camel_case_aliases(self):
        item = normalize_item({"type": "image", "content": {"widthDesktop": "fit"}})
        assert item.content.width_desktop == "fit"
        assert to_canonical(item.content)["widthDesktop"] == "fit"


class TestDetectVideoProvider:
    @pytest.mark.parametrize("url,expected", [
        ("https://www.youtube.com/watch?v=abc", "youtube"),
        ("https://youtu.be/abc", "youtube"),
        ("https://vimeo.com/42", "vimeo"),
        ("https://cdn.example.com/clip.mp4", "file"),
    ])
    def test_from_url(self, url, expected):
        assert detect_video_provider(url) == expected

    def test_mux_playback_id_without_host(self):
        assert detect_video_provider("", "abc123") == "mux"


# ── Spacer / dispatch ─────────────────────────────────────────────────────

class TestNormalizeBlockContent:
    def test_spacer_default_height(self):
        assert normalize_spacer({"height": "xl"}).height == "md"
        assert normalize_spacer({"height": "lg"}).height == "lg"

    def test_dispatch(self):
        assert isinstance(normalize_block_content("container", {}), ContainerContent)
        assert normalize_block_content("spacer", {}).height == "md"

    def test_unknown_block_type_raises(self):
        with pytest.raises(ValueError):
            normalize_block_content("carousel", {})

    def test_draft_block_normalizes_on_construction(self):
        d = DraftBlock(key="b1", type="container", content={"columns": 2, "slots": [{"type": "text"}]})
        assert d.content.columns == 2
        assert len(d.content.slots[0]) == 1
        assert d.content.slots[1] == []


class TestDefaults:
    def test_make_item_text_default_body(self):
        item = make_item("text", key="t")
        assert isinstance(item, TextItem)
        assert item.content.body == DEFAULT_TEXT_BODY

    def test_make_item_returns_fresh_content(self):
        a = make_item("image")
        b = make_item("image")
        assert isinstance(a, ImageItem)
        assert a.content is not b.content

    def test_make_item_unknown_type(self):
        with pytest.raises(ValueError):
            make_item("audio")

    def test_create_container_invalid_columns(self):
        with pytest.raises(ValueError):
            create_container_content(5)
