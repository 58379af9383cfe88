"""
Sélection / focus / survol — trois signaux résolus en une seule cible active.

  selected_block : bloc dont l'inspecteur est affiché
  focused_item   : item dont l'inspecteur est affiché (prime sur le bloc)
  hovered        : transitoire, posé par le survol du preview, jamais persisté

  active_highlight = hovered ?? focused_item ?? {block: selected_block}

Invariant : aucune référence ne survit à la suppression du nœud visé.
"""
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict

from ..core.schemas import DraftBlock


class FocusedItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    block_key: str
    column_index: int
    item_index: int


class HighlightTarget(BaseModel):
    """Bloc entier, ou item (column_index + item_index) d'un bloc."""
    model_config = ConfigDict(frozen=True)

    block_key: str
    column_index: Optional[int] = None
    item_index: Optional[int] = None

    @property
    def is_item(self) -> bool:
        return self.column_index is not None and self.item_index is not None


def _resolves(drafts: Sequence[DraftBlock], block_key: str, column_index=None, item_index=None) -> bool:
    block = next((d for d in drafts if d.key == block_key), None)
    if block is None:
        return False
    if column_index is None and item_index is None:
        return True
    if not block.is_container or column_index is None or item_index is None:
        return False
    slots = block.content.slots
    return 0 <= column_index < len(slots) and 0 <= item_index < len(slots[column_index])


class SelectionState(BaseModel):
    model_config = ConfigDict(frozen=True)

    selected_block: Optional[str] = None
    focused_item: Optional[FocusedItem] = None
    hovered: Optional[HighlightTarget] = None

    # ── Transitions ───────────────────────────────────────────────────────────

    def select_block(self, block_key: Optional[str], focus: Optional[FocusedItem] = None) -> "SelectionState":
        """Changer de bloc efface le focus, sauf focus cohérent fourni dans la même action."""
        if focus is not None and focus.block_key != block_key:
            focus = None
        return self.model_copy(update={"selected_block": block_key, "focused_item": focus})

    def focus_item(self, block_key: str, column_index: int, item_index: int) -> "SelectionState":
        """Clic direct sur une feuille : bloc et item posés ensemble."""
        return self.select_block(block_key, FocusedItem(
            block_key=block_key, column_index=column_index, item_index=item_index,
        ))

    def clear_focus(self) -> "SelectionState":
        return self.model_copy(update={"focused_item": None})

    def hover(self, target: HighlightTarget) -> "SelectionState":
        return self.model_copy(update={"hovered": target})

    def leave(self) -> "SelectionState":
        return self.model_copy(update={"hovered": None})

    def after_block_deleted(self, drafts_before: Sequence[DraftBlock], block_key: str) -> "SelectionState":
        """La sélection passe au bloc suivant, sinon au précédent, sinon à None."""
        selected = self.selected_block
        if selected == block_key:
            keys = [d.key for d in drafts_before]
            if block_key in keys:
                i = keys.index(block_key)
                selected = keys[i + 1] if i + 1 < len(keys) else (keys[i - 1] if i > 0 else None)
            else:
                selected = None
        focus = self.focused_item
        if focus is not None and focus.block_key == block_key:
            focus = None
        hovered = self.hovered
        if hovered is not None and hovered.block_key == block_key:
            hovered = None
        return self.model_copy(update={"selected_block": selected, "focused_item": focus, "hovered": hovered})

    def after_item_removed(self, block_key: str, column_index: int, item_index: int) -> "SelectionState":
        """Focus effacé s'il visait l'item, décalé s'il visait un item suivant."""
        focus = self.focused_item
        if focus is not None and focus.block_key == block_key and focus.column_index == column_index:
            if focus.item_index == item_index:
                focus = None
            elif focus.item_index > item_index:
                focus = focus.model_copy(update={"item_index": focus.item_index - 1})
        hovered = self.hovered
        if (
            hovered is not None
            and hovered.is_item
            and hovered.block_key == block_key
            and hovered.column_index == column_index
            and hovered.item_index >= item_index
        ):
            hovered = None
        return self.model_copy(update={"focused_item": focus, "hovered": hovered})

    def reconcile(self, drafts: Sequence[DraftBlock]) -> "SelectionState":
        """Filet de sécurité : retire toute référence qui ne se résout plus."""
        selected = self.selected_block
        if selected is not None and not _resolves(drafts, selected):
            selected = None
        focus = self.focused_item
        if focus is not None and not _resolves(drafts, focus.block_key, focus.column_index, focus.item_index):
            focus = None
        hovered = self.hovered
        if hovered is not None and not _resolves(drafts, hovered.block_key, hovered.column_index, hovered.item_index):
            hovered = None
        if (selected, focus, hovered) == (self.selected_block, self.focused_item, self.hovered):
            return self
        return self.model_copy(update={"selected_block": selected, "focused_item": focus, "hovered": hovered})

    # ── Résolution ────────────────────────────────────────────────────────────

    @property
    def active_target(self) -> Optional[HighlightTarget]:
        """Cible persistante (hors survol) : item focalisé, sinon bloc sélectionné."""
        if self.focused_item is not None:
            f = self.focused_item
            return HighlightTarget(block_key=f.block_key, column_index=f.column_index, item_index=f.item_index)
        if self.selected_block is not None:
            return HighlightTarget(block_key=self.selected_block)
        return None

    @property
    def active_highlight(self) -> Optional[HighlightTarget]:
        """Cible unique consommée par les trois panneaux."""
        return self.hovered if self.hovered is not None else self.active_target

    def inspector_target(self, drafts: Sequence[DraftBlock]) -> Optional[HighlightTarget]:
        """
        Inspecteur d'item si le focus est cohérent avec le conteneur sélectionné,
        sinon inspecteur du bloc, sinon rien.
        """
        if self.selected_block is None or not _resolves(drafts, self.selected_block):
            return None
        f = self.focused_item
        if f is not None and f.block_key == self.selected_block and _resolves(
            drafts, f.block_key, f.column_index, f.item_index
        ):
            return HighlightTarget(block_key=f.block_key, column_index=f.column_index, item_index=f.item_index)
        return HighlightTarget(block_key=self.selected_block)
