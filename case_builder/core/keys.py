"""
Identité locale des items et des blocs.

Les clés ne sont jamais dérivées du contenu et jamais recyclées (uuid4) :
un événement drag-and-drop en vol qui référence une clé supprimée ne peut pas
retomber sur un autre item.
"""
import uuid
from typing import Iterable, List, Union

from .schemas import BlockRow, ContainerContent, DraftBlock, SpacerContent


def new_key() -> str:
    return str(uuid.uuid4())


def ensure_container_keys(container: ContainerContent) -> ContainerContent:
    """
    Attribue une clé à chaque item qui n'en a pas, et re-clé les doublons
    (clés uniques au sein du conteneur). Retourne l'objet d'origine si rien
    ne change.
    """
    seen = set()
    changed = False
    slots = []
    for col in container.slots:
        out = []
        for item in col:
            if not item.key or item.key in seen:
                item = item.model_copy(update={"key": new_key()})
                changed = True
            seen.add(item.key)
            out.append(item)
        slots.append(out)
    if not changed:
        return container
    return container.model_copy(update={"slots": slots})


def ensure_item_keys(drafts: Iterable[DraftBlock]) -> List[DraftBlock]:
    """Parcourt chaque colonne de chaque conteneur. Idempotent."""
    out = []
    for draft in drafts:
        if draft.is_container:
            content = ensure_container_keys(draft.content)
            if content is not draft.content:
                draft = draft.model_copy(update={"content": content})
        out.append(draft)
    return out


def clone_with_fresh_keys(value):
    """
    Copie profonde avec identité neuve — seul chemin de duplication.

    - item      → copie avec une nouvelle clé
    - conteneur → copie dont chaque item imbriqué reçoit une nouvelle clé
    - spacer    → copie simple (pas d'items)
    """
    if isinstance(value, ContainerContent):
        slots = [
            [item.model_copy(deep=True, update={"key": new_key()}) for item in col]
            for col in value.slots
        ]
        return value.model_copy(deep=True, update={"slots": slots})
    if isinstance(value, SpacerContent):
        return value.model_copy(deep=True)
    return value.model_copy(deep=True, update={"key": new_key()})


def to_draft(row: Union[BlockRow, dict]) -> DraftBlock:
    """Ligne persistée → brouillon ; la clé de session reprend l'id persisté."""
    if isinstance(row, dict):
        row = BlockRow.model_validate(row)
    return DraftBlock(
        key=row.id or new_key(),
        id=row.id,
        type=row.type,
        content=row.content,
        sort_order=row.sort_order,
    )


def to_drafts(rows: Iterable[Union[BlockRow, dict]]) -> List[DraftBlock]:
    return ensure_item_keys(to_draft(r) for r in rows)
