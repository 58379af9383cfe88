"""
Resolver drag-and-drop — interprète un drop (source, cible) en une seule action.

Grammaire des identifiants de drag :
  item:<blockKey>:<col>:<itemKey>   item d'une colonne
  col:<blockKey>:<col>              zone de colonne (ajout en fin)
  preview-drop:<blockKey>:<col>     zone de colonne dans le preview
  preview-drop:append               fin de page (preview)
  sidebar-drop:append               fin de page (sidebar)
  palette:<type>                    image | text | video | spacer | container-N
  <blockKey>                        bloc

Règles :
  item    → item     : MoveItem (avant l'item cible)
  item    → colonne  : MoveItem (ajout en fin)
  palette → ancre    : insertion (création, pas déplacement)
  bloc    → bloc     : ReorderBlocks (un item vaut son bloc, une colonne est ignorée)
Source == cible, ancre inconnue ou périmée → None (ignoré, jamais d'exception).
"""
import re
from typing import Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from ..core.schemas import CONTENT_ITEM_TYPES, DraftBlock
from .actions import (
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
from .algebra import DropLocation, ItemLocation, block_index, container_index, find_item_index, is_self_drop

_ITEM_RE = re.compile(r"^item:(.+):(\d+):(.+)$")
_COL_RE = re.compile(r"^col:(.+):(\d+)$")
_PREVIEW_COL_RE = re.compile(r"^preview-drop:(.+):(\d+)$")
_CONTAINER_RE = re.compile(r"^container-([1-4])$")


class ItemAnchor(BaseModel):
    model_config = ConfigDict(frozen=True)
    block_key: str
    column_index: int
    item_key: str


class ColumnAnchor(BaseModel):
    model_config = ConfigDict(frozen=True)
    block_key: str
    column_index: int


class BlockAnchor(BaseModel):
    model_config = ConfigDict(frozen=True)
    block_key: str


class AppendAnchor(BaseModel):
    model_config = ConfigDict(frozen=True)
    zone: Literal["sidebar", "preview"]


class PaletteToken(BaseModel):
    """Type à créer : item (image/text/video) ou bloc (spacer, container-N)."""
    model_config = ConfigDict(frozen=True)
    kind: Literal["image", "text", "video", "spacer", "container"]
    columns: int = 1


Anchor = Union[ItemAnchor, ColumnAnchor, BlockAnchor, AppendAnchor, PaletteToken]


def parse_drag_id(raw: Optional[str]) -> Optional[Anchor]:
    if not raw:
        return None
    m = _ITEM_RE.match(raw)
    if m:
        return ItemAnchor(block_key=m.group(1), column_index=int(m.group(2)), item_key=m.group(3))
    m = _COL_RE.match(raw)
    if m:
        return ColumnAnchor(block_key=m.group(1), column_index=int(m.group(2)))
    if raw.startswith("palette:"):
        kind = raw[len("palette:"):]
        if kind in CONTENT_ITEM_TYPES or kind == "spacer":
            return PaletteToken(kind=kind)
        m = _CONTAINER_RE.match(kind)
        if m:
            return PaletteToken(kind="container", columns=int(m.group(1)))
        return None
    if raw == "preview-drop:append":
        return AppendAnchor(zone="preview")
    if raw == "sidebar-drop:append":
        return AppendAnchor(zone="sidebar")
    m = _PREVIEW_COL_RE.match(raw)
    if m:
        return ColumnAnchor(block_key=m.group(1), column_index=int(m.group(2)))
    if raw.startswith(("preview-drop:", "sidebar-drop:")):
        return None
    return BlockAnchor(block_key=raw)


# ── Validation des ancres contre l'arbre courant ─────────────────────────────

def _column_exists(drafts: Sequence[DraftBlock], block_key: str, column_index: int) -> bool:
    i = container_index(drafts, block_key)
    return i >= 0 and 0 <= column_index < len(drafts[i].content.slots)


def _item_exists(drafts: Sequence[DraftBlock], anchor: ItemAnchor) -> bool:
    return find_item_index(drafts, anchor.block_key, anchor.column_index, anchor.item_key) is not None


def _anchor_block_key(anchor: Anchor) -> Optional[str]:
    if isinstance(anchor, (ItemAnchor, ColumnAnchor, BlockAnchor)):
        return anchor.block_key
    return None


# ── Résolution ────────────────────────────────────────────────────────────────

def _resolve_palette(drafts: Sequence[DraftBlock], token: PaletteToken, over: Anchor):
    if token.kind in CONTENT_ITEM_TYPES:
        if isinstance(over, ColumnAnchor):
            if not _column_exists(drafts, over.block_key, over.column_index):
                return None
            return AddItem(block_key=over.block_key, column_index=over.column_index, item_type=token.kind)
        if isinstance(over, ItemAnchor):
            if not _item_exists(drafts, over):
                return None
            return InsertItemBefore(
                block_key=over.block_key,
                column_index=over.column_index,
                before_item_key=over.item_key,
                item_type=token.kind,
            )
        if isinstance(over, AppendAnchor):
            return AddContentBlock(item_type=token.kind)
        if isinstance(over, BlockAnchor):
            if block_index(drafts, over.block_key) < 0:
                return None
            return InsertContentBlockAt(at_block_key=over.block_key, item_type=token.kind)
        return None

    if isinstance(over, AppendAnchor):
        if token.kind == "spacer":
            return AddSpacer()
        return AddContainer(columns=token.columns)
    at = _anchor_block_key(over)
    if at is None or block_index(drafts, at) < 0:
        return None
    return InsertBlockAt(at_block_key=at, block_type=token.kind, columns=token.columns)


def _resolve_item(drafts: Sequence[DraftBlock], active: ItemAnchor, over: Anchor):
    if not _item_exists(drafts, active):
        return None
    source = ItemLocation(block_key=active.block_key, column_index=active.column_index, item_key=active.item_key)
    if isinstance(over, ItemAnchor):
        if over.item_key == active.item_key and over.block_key == active.block_key:
            return None
        if not _item_exists(drafts, over):
            return None
        target = DropLocation(block_key=over.block_key, column_index=over.column_index, before_item_key=over.item_key)
        return MoveItem(source=source, target=target)
    if isinstance(over, ColumnAnchor):
        if not _column_exists(drafts, over.block_key, over.column_index):
            return None
        target = DropLocation(block_key=over.block_key, column_index=over.column_index)
        return MoveItem(source=source, target=target)
    return None


def _resolve_block(drafts: Sequence[DraftBlock], active: BlockAnchor, over: Anchor):
    # seuls un bloc ou un item (ramené à son bloc) servent de cible
    if not isinstance(over, (BlockAnchor, ItemAnchor)):
        return None
    to_key = over.block_key
    if to_key == active.block_key:
        return None
    if block_index(drafts, active.block_key) < 0 or block_index(drafts, to_key) < 0:
        return None
    return ReorderBlocks(from_key=active.block_key, to_key=to_key)


class MoveIntent(BaseModel):
    """Déplacement émis par le canvas du preview : {from, to}."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source: ItemLocation = Field(..., alias="from")
    target: DropLocation = Field(..., alias="to")


def resolve_preview_move(drafts: Sequence[DraftBlock], intent) -> Optional[MoveItem]:
    """MoveIntent (ou dict {from, to}) → MoveItem, None si une extrémité ne se résout plus."""
    if isinstance(intent, dict):
        intent = MoveIntent.model_validate(intent)
    src, dst = intent.source, intent.target
    if find_item_index(drafts, src.block_key, src.column_index, src.item_key) is None:
        return None
    if not _column_exists(drafts, dst.block_key, dst.column_index):
        return None
    if is_self_drop(src, dst):
        return None
    return MoveItem(source=src, target=dst)


def resolve_drop(drafts: Sequence[DraftBlock], active_id: str, over_id: Optional[str]):
    """Action unique pour un drop, ou None si le drop doit être ignoré."""
    if not over_id or active_id == over_id:
        return None
    active = parse_drag_id(active_id)
    over = parse_drag_id(over_id)
    if active is None or over is None or isinstance(over, PaletteToken):
        return None

    if isinstance(active, PaletteToken):
        return _resolve_palette(drafts, active, over)
    if isinstance(active, ItemAnchor):
        return _resolve_item(drafts, active, over)
    if isinstance(active, BlockAnchor):
        return _resolve_block(drafts, active, over)
    return None
