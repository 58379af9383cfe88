"""
Actions de l'éditeur — une action par transition, union discriminée par `action`.
Consommées par state.apply_action ; produites par l'UI, l'API ou le resolver DnD.
"""
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from ..core.schemas import ContentItemType
from .algebra import DropLocation, ItemLocation
from .selection import FocusedItem, HighlightTarget


class _Action(BaseModel):
    pass


# ── Blocs ─────────────────────────────────────────────────────────────────────

class AddContainer(_Action):
    action: Literal["add_container"] = "add_container"
    columns: int = 1


class AddSpacer(_Action):
    action: Literal["add_spacer"] = "add_spacer"


class AddContentBlock(_Action):
    """Conteneur 1 colonne avec un item, en fin de page."""
    action: Literal["add_content_block"] = "add_content_block"
    item_type: ContentItemType


class InsertBlockAt(_Action):
    action: Literal["insert_block_at"] = "insert_block_at"
    at_block_key: str
    block_type: Literal["container", "spacer"]
    columns: int = 1


class InsertContentBlockAt(_Action):
    action: Literal["insert_content_block_at"] = "insert_content_block_at"
    at_block_key: str
    item_type: ContentItemType


class SetColumns(_Action):
    action: Literal["set_columns"] = "set_columns"
    block_key: str
    columns: int
    confirm_discard: bool = False


class UpdateBlock(_Action):
    action: Literal["update_block"] = "update_block"
    block_key: str
    patch: Dict[str, Any] = Field(default_factory=dict)


class RenameBlock(_Action):
    action: Literal["rename_block"] = "rename_block"
    block_key: str
    name: Optional[str] = None


class DuplicateBlock(_Action):
    action: Literal["duplicate_block"] = "duplicate_block"
    block_key: str


class ReorderBlocks(_Action):
    action: Literal["reorder_blocks"] = "reorder_blocks"
    from_key: str
    to_key: str


class DeleteBlock(_Action):
    action: Literal["delete_block"] = "delete_block"
    block_key: str


# ── Items ─────────────────────────────────────────────────────────────────────

class AddItem(_Action):
    action: Literal["add_item"] = "add_item"
    block_key: str
    column_index: int
    item_type: ContentItemType


class InsertItemBefore(_Action):
    action: Literal["insert_item_before"] = "insert_item_before"
    block_key: str
    column_index: int
    before_item_key: str
    item_type: ContentItemType


class RemoveItem(_Action):
    action: Literal["remove_item"] = "remove_item"
    block_key: str
    column_index: int
    item_index: int


class DuplicateItem(_Action):
    action: Literal["duplicate_item"] = "duplicate_item"
    block_key: str
    column_index: int
    item_index: int


class UpdateItem(_Action):
    action: Literal["update_item"] = "update_item"
    block_key: str
    column_index: int
    item_index: int
    patch: Dict[str, Any] = Field(default_factory=dict)


class MoveItem(_Action):
    action: Literal["move_item"] = "move_item"
    source: ItemLocation
    target: DropLocation


# ── Sélection ─────────────────────────────────────────────────────────────────

class SelectBlock(_Action):
    action: Literal["select_block"] = "select_block"
    block_key: Optional[str] = None
    focus: Optional[FocusedItem] = None


class FocusItem(_Action):
    action: Literal["focus_item"] = "focus_item"
    block_key: str
    column_index: int
    item_index: int


class ClearFocus(_Action):
    action: Literal["clear_focus"] = "clear_focus"


class Hover(_Action):
    action: Literal["hover"] = "hover"
    target: HighlightTarget


class Leave(_Action):
    action: Literal["leave"] = "leave"


# ── Drag-and-drop ─────────────────────────────────────────────────────────────

class Drop(_Action):
    """Identifiants bruts de drag (source, cible) — résolus par dnd.resolve_drop."""
    action: Literal["drop"] = "drop"
    active_id: str
    over_id: Optional[str] = None


EditorAction = Annotated[
    Union[
        AddContainer, AddSpacer, AddContentBlock, InsertBlockAt, InsertContentBlockAt,
        SetColumns, UpdateBlock, RenameBlock, DuplicateBlock, ReorderBlocks, DeleteBlock,
        AddItem, InsertItemBefore, RemoveItem, DuplicateItem, UpdateItem, MoveItem,
        SelectBlock, FocusItem, ClearFocus, Hover, Leave,
        Drop,
    ],
    Field(discriminator="action"),
]

ACTION_ADAPTER = TypeAdapter(EditorAction)


def parse_action(payload: dict):
    """dict JSON → action typée (ValidationError si inconnue ou incomplète)."""
    return ACTION_ADAPTER.validate_python(payload)
