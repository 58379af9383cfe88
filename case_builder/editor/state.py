"""
État de l'éditeur — arbre brouillon + sélection + snapshot propre.

`apply_action(state, action)` est le seul point de transition : il applique
l'algèbre, pose la sélection/focus comme le fait l'UI (nouveau bloc
sélectionné, item créé ou déplacé focalisé), puis réconcilie la sélection
pour qu'aucune référence ne pointe vers un nœud disparu.
"""
from typing import Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from ..core.keys import new_key, to_drafts
from ..core.schemas import BlockRow, DraftBlock
from ..errors import DestructiveEditError
from . import algebra
from .actions import (
    AddContainer,
    AddContentBlock,
    AddItem,
    AddSpacer,
    ClearFocus,
    DeleteBlock,
    Drop,
    DuplicateBlock,
    DuplicateItem,
    FocusItem,
    Hover,
    InsertBlockAt,
    InsertContentBlockAt,
    InsertItemBefore,
    Leave,
    MoveItem,
    RemoveItem,
    RenameBlock,
    ReorderBlocks,
    SelectBlock,
    SetColumns,
    UpdateBlock,
    UpdateItem,
)
from .dirty import has_changes, snapshot
from .dnd import resolve_drop
from .selection import FocusedItem, SelectionState


class EditorState(BaseModel):
    model_config = ConfigDict(frozen=True)

    case_id: str
    drafts: List[DraftBlock] = []
    selection: SelectionState = SelectionState()
    clean_snapshot: str = "[]"

    @property
    def has_changes(self) -> bool:
        return has_changes(self.drafts, self.clean_snapshot)

    @classmethod
    def from_rows(cls, case_id: str, rows: Sequence[BlockRow], selected: Optional[str] = None) -> "EditorState":
        """
        Chargement : brouillons clés, snapshot propre, sélection conservée si
        le bloc existe encore, sinon premier bloc.
        """
        drafts = to_drafts(rows)
        keys = [d.key for d in drafts]
        if selected not in keys:
            selected = keys[0] if keys else None
        return cls(
            case_id=case_id,
            drafts=drafts,
            selection=SelectionState(selected_block=selected),
            clean_snapshot=snapshot(drafts),
        )

    def mark_clean(self, drafts: Optional[Sequence[DraftBlock]] = None) -> "EditorState":
        """Nouveau snapshot propre (par défaut celui des brouillons courants)."""
        return self.model_copy(update={"clean_snapshot": snapshot(self.drafts if drafts is None else drafts)})


# ── Helpers ───────────────────────────────────────────────────────────────────

def _commit(state: EditorState, drafts: List[DraftBlock], selection: Optional[SelectionState] = None) -> EditorState:
    if selection is None:
        selection = state.selection
    selection = selection.reconcile(drafts)
    if drafts is state.drafts and selection is state.selection:
        return state
    return state.model_copy(update={"drafts": drafts, "selection": selection})


def _focus_key(state: EditorState, drafts, block_key: str, column_index: int, item_key: str) -> EditorState:
    """Sélectionne le bloc et focalise l'item `item_key` s'il a bien été posé."""
    idx = algebra.find_item_index(drafts, block_key, column_index, item_key)
    if idx is None:
        return _commit(state, drafts)
    return _commit(state, drafts, state.selection.focus_item(block_key, column_index, idx))


def _select_new(state: EditorState, drafts, block_key: str) -> EditorState:
    return _commit(state, drafts, state.selection.select_block(block_key))


# ── Blocs ─────────────────────────────────────────────────────────────────────

def _add_container(state: EditorState, a: AddContainer) -> EditorState:
    key = new_key()
    return _select_new(state, algebra.add_container(state.drafts, a.columns, key=key), key)


def _add_spacer(state: EditorState, a: AddSpacer) -> EditorState:
    key = new_key()
    return _select_new(state, algebra.add_spacer(state.drafts, key=key), key)


def _add_content_block(state: EditorState, a: AddContentBlock) -> EditorState:
    key, item_key = new_key(), new_key()
    drafts = algebra.add_content_block(state.drafts, a.item_type, key=key, item_key=item_key)
    return _focus_key(state, drafts, key, 0, item_key)


def _insert_block_at(state: EditorState, a: InsertBlockAt) -> EditorState:
    key = new_key()
    drafts = algebra.insert_block_at(state.drafts, a.at_block_key, a.block_type, columns=a.columns, key=key)
    return _select_new(state, drafts, key)


def _insert_content_block_at(state: EditorState, a: InsertContentBlockAt) -> EditorState:
    key, item_key = new_key(), new_key()
    drafts = algebra.insert_content_block_at(state.drafts, a.at_block_key, a.item_type, key=key, item_key=item_key)
    return _focus_key(state, drafts, key, 0, item_key)


def _set_columns(state: EditorState, a: SetColumns) -> EditorState:
    i = algebra.container_index(state.drafts, a.block_key)
    if i < 0:
        return state
    lost = algebra.columns_shrink_loss(state.drafts[i].content, a.columns)
    if lost and not a.confirm_discard:
        raise DestructiveEditError(a.block_key, len(lost))
    drafts = algebra.update_container(state.drafts, a.block_key, lambda c: algebra.set_columns(c, a.columns))
    return _commit(state, drafts)


def _update_block(state: EditorState, a: UpdateBlock) -> EditorState:
    return _commit(state, algebra.update_block_content(state.drafts, a.block_key, a.patch))


def _rename_block(state: EditorState, a: RenameBlock) -> EditorState:
    return _commit(state, algebra.rename_block(state.drafts, a.block_key, a.name))


def _duplicate_block(state: EditorState, a: DuplicateBlock) -> EditorState:
    key = new_key()
    drafts = algebra.duplicate_block(state.drafts, a.block_key, new_block_key=key)
    if drafts is state.drafts:
        return state
    return _select_new(state, drafts, key)


def _reorder_blocks(state: EditorState, a: ReorderBlocks) -> EditorState:
    return _commit(state, algebra.reorder_blocks(state.drafts, a.from_key, a.to_key))


def _delete_block(state: EditorState, a: DeleteBlock) -> EditorState:
    drafts = algebra.delete_block(state.drafts, a.block_key)
    if drafts is state.drafts:
        return state
    return _commit(state, drafts, state.selection.after_block_deleted(state.drafts, a.block_key))


# ── Items ─────────────────────────────────────────────────────────────────────

def _add_item(state: EditorState, a: AddItem) -> EditorState:
    item_key = new_key()
    drafts = algebra.update_container(
        state.drafts, a.block_key, lambda c: algebra.add_item(c, a.column_index, a.item_type, key=item_key)
    )
    if drafts is state.drafts:
        return state
    return _focus_key(state, drafts, a.block_key, a.column_index, item_key)


def _insert_item_before(state: EditorState, a: InsertItemBefore) -> EditorState:
    item_key = new_key()
    drafts = algebra.update_container(
        state.drafts,
        a.block_key,
        lambda c: algebra.insert_item_before(c, a.column_index, a.before_item_key, a.item_type, key=item_key),
    )
    if drafts is state.drafts:
        return state
    return _focus_key(state, drafts, a.block_key, a.column_index, item_key)


def _remove_item(state: EditorState, a: RemoveItem) -> EditorState:
    drafts = algebra.update_container(
        state.drafts, a.block_key, lambda c: algebra.remove_item(c, a.column_index, a.item_index)
    )
    if drafts is state.drafts:
        return state
    selection = state.selection.after_item_removed(a.block_key, a.column_index, a.item_index)
    return _commit(state, drafts, selection)


def _duplicate_item(state: EditorState, a: DuplicateItem) -> EditorState:
    drafts = algebra.update_container(
        state.drafts, a.block_key, lambda c: algebra.duplicate_item(c, a.column_index, a.item_index)
    )
    if drafts is state.drafts:
        return state
    selection = state.selection.focus_item(a.block_key, a.column_index, a.item_index + 1)
    return _commit(state, drafts, selection)


def _update_item(state: EditorState, a: UpdateItem) -> EditorState:
    drafts = algebra.update_container(
        state.drafts, a.block_key, lambda c: algebra.update_item(c, a.column_index, a.item_index, a.patch)
    )
    return _commit(state, drafts)


def _move_item(state: EditorState, a: MoveItem) -> EditorState:
    drafts, dest = algebra.move_item_indexed(state.drafts, a.source, a.target)
    if dest is None:
        return state
    t = a.target
    return _commit(state, drafts, state.selection.focus_item(t.block_key, t.column_index, dest))


# ── Sélection ─────────────────────────────────────────────────────────────────

def _select_block(state: EditorState, a: SelectBlock) -> EditorState:
    return _commit(state, state.drafts, state.selection.select_block(a.block_key, a.focus))


def _focus_item(state: EditorState, a: FocusItem) -> EditorState:
    focus = FocusedItem(block_key=a.block_key, column_index=a.column_index, item_index=a.item_index)
    return _commit(state, state.drafts, state.selection.select_block(a.block_key, focus))


def _clear_focus(state: EditorState, a: ClearFocus) -> EditorState:
    return _commit(state, state.drafts, state.selection.clear_focus())


def _hover(state: EditorState, a: Hover) -> EditorState:
    return _commit(state, state.drafts, state.selection.hover(a.target))


def _leave(state: EditorState, a: Leave) -> EditorState:
    return _commit(state, state.drafts, state.selection.leave())


def _drop(state: EditorState, a: Drop) -> EditorState:
    resolved = resolve_drop(state.drafts, a.active_id, a.over_id)
    if resolved is None:
        return state
    return apply_action(state, resolved)


_HANDLERS: Dict[type, Callable] = {
    AddContainer:         _add_container,
    AddSpacer:            _add_spacer,
    AddContentBlock:      _add_content_block,
    InsertBlockAt:        _insert_block_at,
    InsertContentBlockAt: _insert_content_block_at,
    SetColumns:           _set_columns,
    UpdateBlock:          _update_block,
    RenameBlock:          _rename_block,
    DuplicateBlock:       _duplicate_block,
    ReorderBlocks:        _reorder_blocks,
    DeleteBlock:          _delete_block,
    AddItem:              _add_item,
    InsertItemBefore:     _insert_item_before,
    RemoveItem:           _remove_item,
    DuplicateItem:        _duplicate_item,
    UpdateItem:           _update_item,
    MoveItem:             _move_item,
    SelectBlock:          _select_block,
    FocusItem:            _focus_item,
    ClearFocus:           _clear_focus,
    Hover:                _hover,
    Leave:                _leave,
    Drop:                 _drop,
}


def apply_action(state: EditorState, action) -> EditorState:
    """
    Applique une action et rend le nouvel état (l'ancien n'est jamais modifié).
    Lève DestructiveEditError pour une réduction de colonnes non confirmée,
    ValueError pour un paramètre hors domaine (colonnes, type de bloc).
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise ValueError(f"Action inconnue : {type(action).__name__}")
    return handler(state, action)
