"""Core — schéma du contenu, normalizer, identité des items."""
from .schemas import (
    BlockRow,
    ContainerContent,
    ContentItem,
    DraftBlock,
    ImageContent,
    ImageItem,
    SpacerContent,
    TextContent,
    TextItem,
    VideoContent,
    VideoItem,
    create_container_content,
    make_item,
)
from .normalizer import (
    normalize_block_content,
    normalize_container,
    normalize_item,
    normalize_spacer,
    to_canonical,
)
from .keys import clone_with_fresh_keys, ensure_item_keys, new_key, to_draft, to_drafts

__all__ = [
    "BlockRow",
    "ContainerContent",
    "ContentItem",
    "DraftBlock",
    "ImageContent",
    "ImageItem",
    "SpacerContent",
    "TextContent",
    "TextItem",
    "VideoContent",
    "VideoItem",
    "create_container_content",
    "make_item",
    "normalize_block_content",
    "normalize_container",
    "normalize_item",
    "normalize_spacer",
    "to_canonical",
    "clone_with_fresh_keys",
    "ensure_item_keys",
    "new_key",
    "to_draft",
    "to_drafts",
]
