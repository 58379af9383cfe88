"""Editor — algèbre de l'arbre, sélection, drag-and-drop, état et sauvegarde."""
from .actions import EditorAction, parse_action
from .algebra import DropLocation, ItemLocation, move_item
from .dirty import SaveDiff, compute_diff, has_changes, snapshot, to_rows
from .dnd import MoveIntent, parse_drag_id, resolve_drop, resolve_preview_move
from .selection import FocusedItem, HighlightTarget, SelectionState
from .session import EditorRegistry, EditorSession
from .state import EditorState, apply_action

__all__ = [
    "EditorAction",
    "parse_action",
    "DropLocation",
    "ItemLocation",
    "move_item",
    "SaveDiff",
    "compute_diff",
    "has_changes",
    "snapshot",
    "to_rows",
    "parse_drag_id",
    "resolve_drop",
    "MoveIntent",
    "resolve_preview_move",
    "FocusedItem",
    "HighlightTarget",
    "SelectionState",
    "EditorRegistry",
    "EditorSession",
    "EditorState",
    "apply_action",
]
