"""
Suivi des modifications non sauvegardées + diff de sauvegarde.

Le snapshot ne retient que (type, content) de chaque bloc, clés d'items
retirées : les clés sont volatiles, l'ordre de la liste suffit à l'ordre.
"""
import json
from typing import List, Sequence, Union

from pydantic import BaseModel, Field

from ..core.normalizer import to_canonical
from ..core.schemas import BlockRow, DraftBlock


def _strip_keys(value):
    if isinstance(value, dict):
        return {k: _strip_keys(v) for k, v in value.items() if k != "_key"}
    if isinstance(value, list):
        return [_strip_keys(v) for v in value]
    return value


def snapshot(drafts: Sequence[DraftBlock]) -> str:
    """Sérialisation canonique (clés triées) de [{type, content}]."""
    payload = [
        {"type": d.type, "content": _strip_keys(to_canonical(d.content))}
        for d in drafts
    ]
    return json.dumps(payload, sort_keys=True, ensure_ascii=False)


def has_changes(drafts: Sequence[DraftBlock], clean_snapshot: str) -> bool:
    return snapshot(drafts) != clean_snapshot


def to_rows(blocks: Sequence[Union[DraftBlock, BlockRow]]) -> List[BlockRow]:
    """Brouillons → lignes du row store, sort_order = position dans la liste."""
    rows = []
    for i, b in enumerate(blocks):
        if isinstance(b, DraftBlock):
            content = to_canonical(b.content)
        else:
            content = dict(b.content)
        rows.append(BlockRow(id=b.id, type=b.type, content=content, sort_order=i))
    return rows


class SaveDiff(BaseModel):
    to_insert: List[BlockRow] = Field(default_factory=list)
    to_update: List[BlockRow] = Field(default_factory=list)
    to_delete: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_insert or self.to_update or self.to_delete)


def compute_diff(persisted: Sequence[BlockRow], drafts: Sequence[Union[DraftBlock, BlockRow]]) -> SaveDiff:
    """
    Réécriture complète : supprime les ids persistés absents des brouillons,
    met à jour les blocs qui ont un id connu, insère les autres.
    Chaque bloc reçoit sort_order = son index.

    Un id non nul absent des lignes persistées (ligne supprimée entre-temps,
    id fourni par le client) part en insertion avec cet id : la sauvegarde
    se comporte en upsert, une mise à jour ne vise jamais une ligne absente.

    `persisted` : tout objet portant un attribut `id` (BlockRow, ligne ORM).
    """
    rows = to_rows(drafts)
    persisted_ids = {r.id for r in persisted if r.id}
    kept_ids = {r.id for r in rows if r.id}
    diff = SaveDiff(to_delete=[i for i in (r.id for r in persisted) if i and i not in kept_ids])
    for row in rows:
        if row.id and row.id in persisted_ids:
            diff.to_update.append(row)
        else:
            diff.to_insert.append(row)
    return diff
