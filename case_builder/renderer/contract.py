"""
Contrat de données consommé par les renderers (preview éditeur et page publique).

Aucun rendu ici : uniquement la forme normalisée que les deux renderers lisent.
"""
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from ..core.normalizer import normalize_block_content, to_canonical
from ..core.richtext import sanitize_rich_html
from ..core.schemas import BlockRow, DraftBlock


class PreviewBlock(BaseModel):
    id: str
    case_id: str
    type: str
    content: Dict[str, Any]
    sort_order: int


class IndexedItem(BaseModel):
    index: int
    item: Any


class ColumnView(BaseModel):
    """
    Colonne découpée pour l'affichage : l'image `cover` passe en fond, les
    autres items gardent leur index d'origine (ciblage sélection/survol).
    """
    cover_index: Optional[int] = None
    cover: Optional[Any] = None
    rest: List[IndexedItem] = Field(default_factory=list)

    @property
    def has_only_cover(self) -> bool:
        return self.cover is not None and not self.rest


def to_preview_blocks(case_id: str, drafts: Sequence[DraftBlock]) -> List[PreviewBlock]:
    """Brouillons → blocs de preview ; id = id persisté, sinon clé de session."""
    return [
        PreviewBlock(
            id=d.id or d.key,
            case_id=case_id,
            type=d.type,
            content=to_canonical(d.content),
            sort_order=i,
        )
        for i, d in enumerate(drafts)
    ]


def column_view(items: Sequence) -> ColumnView:
    cover_index = next(
        (i for i, it in enumerate(items) if it is not None and it.type == "image" and it.content.cover),
        None,
    )
    rest = [
        IndexedItem(index=i, item=it)
        for i, it in enumerate(items)
        if it is not None and i != cover_index
    ]
    return ColumnView(
        cover_index=cover_index,
        cover=items[cover_index] if cover_index is not None else None,
        rest=rest,
    )


def _sanitize_texts(content: dict) -> dict:
    for col in content.get("slots", []):
        for item in col:
            if item.get("type") == "text" and item.get("content", {}).get("html"):
                item["content"]["html"] = sanitize_rich_html(item["content"]["html"])
    return content


def public_blocks(rows: Sequence[BlockRow]) -> List[dict]:
    """Lignes persistées → blocs publics (contenu normalisé, HTML assaini), triés."""
    out = []
    for row in sorted(rows, key=lambda r: r.sort_order):
        content = to_canonical(normalize_block_content(row.type, row.content))
        if row.type == "container":
            content = _sanitize_texts(content)
        out.append({"id": row.id, "type": row.type, "content": content, "sort_order": row.sort_order})
    return out
