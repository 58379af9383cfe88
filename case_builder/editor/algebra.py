"""
Algèbre de mutation de l'arbre brouillon.

Toutes les opérations sont pures : la valeur d'entrée n'est jamais modifiée.
Une cible introuvable (clé périmée, index hors bornes) rend la valeur d'origine,
inchangée — jamais d'exception pour une résolution ratée.

Niveau conteneur (ContainerContent → ContainerContent) :
  set_columns, add_item, insert_item_before, duplicate_item, remove_item, update_item
Niveau blocs (list[DraftBlock] → list[DraftBlock]) :
  move_item, duplicate_block, reorder_blocks, rename_block, delete_block,
  update_container, update_block_content, add_container, add_spacer,
  add_content_block, insert_block_at, insert_content_block_at
"""
from typing import Callable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from ..core.keys import clone_with_fresh_keys, new_key
from ..core.normalizer import normalize_block_content, normalize_item, to_canonical
from ..core.richtext import html_to_text, sanitize_rich_html
from ..core.schemas import (
    COLUMN_CHOICES,
    DEFAULT_SPACER_CONTENT,
    ContainerContent,
    DraftBlock,
    create_container_content,
    make_item,
)

COPY_SUFFIX = "(copie)"


class ItemLocation(BaseModel):
    """Source d'un déplacement : item repéré par sa clé."""
    model_config = ConfigDict(frozen=True)

    block_key: str
    column_index: int
    item_key: str


class DropLocation(BaseModel):
    """Destination : avant `before_item_key`, ou en fin de colonne si None."""
    model_config = ConfigDict(frozen=True)

    block_key: str
    column_index: int
    before_item_key: Optional[str] = None


# ── Helpers ───────────────────────────────────────────────────────────────────

def _copy_slots(container: ContainerContent) -> List[list]:
    return [list(col) for col in container.slots]


def _has_column(container: ContainerContent, column_index: int) -> bool:
    return 0 <= column_index < len(container.slots)


def _has_item(container: ContainerContent, column_index: int, item_index: int) -> bool:
    return _has_column(container, column_index) and 0 <= item_index < len(container.slots[column_index])


def _index_of(col: Sequence, item_key: Optional[str]) -> int:
    if item_key is None:
        return -1
    for i, item in enumerate(col):
        if item.key == item_key:
            return i
    return -1


def block_index(blocks: Sequence[DraftBlock], key: str) -> int:
    for i, block in enumerate(blocks):
        if block.key == key:
            return i
    return -1


def container_index(blocks: Sequence[DraftBlock], key: str) -> int:
    i = block_index(blocks, key)
    return i if i >= 0 and blocks[i].is_container else -1


def find_block(blocks: Sequence[DraftBlock], key: str) -> Optional[DraftBlock]:
    i = block_index(blocks, key)
    return blocks[i] if i >= 0 else None


def find_item_index(
    blocks: Sequence[DraftBlock], block_key: str, column_index: int, item_key: str
) -> Optional[int]:
    """Index d'un item par clé ; `idx-N` désigne un item encore sans clé."""
    i = container_index(blocks, block_key)
    if i < 0 or not _has_column(blocks[i].content, column_index):
        return None
    col = blocks[i].content.slots[column_index]
    if item_key.startswith("idx-"):
        try:
            idx = int(item_key[4:])
        except ValueError:
            return None
        return idx if 0 <= idx < len(col) else None
    idx = _index_of(col, item_key)
    return idx if idx >= 0 else None


def _new_block(block_type: str, content, key: Optional[str], sort_order: int) -> DraftBlock:
    return DraftBlock(key=key or new_key(), id=None, type=block_type, content=content, sort_order=sort_order)


# ── Niveau conteneur ──────────────────────────────────────────────────────────

def set_columns(container: ContainerContent, columns: int) -> ContainerContent:
    """
    Garde slots[0:min(ancien, n)] par index, complète avec des colonnes vides.
    Réduire supprime définitivement les items des colonnes retirées.
    """
    if isinstance(columns, bool) or columns not in COLUMN_CHOICES:
        raise ValueError(f"Nombre de colonnes invalide : {columns!r} (1..4)")
    slots = [list(container.slots[i]) if i < len(container.slots) else [] for i in range(columns)]
    return container.model_copy(update={"columns": columns, "slots": slots})


def columns_shrink_loss(container: ContainerContent, columns: int) -> list:
    """Items qui seraient perdus par set_columns(container, columns)."""
    return [item for col in container.slots[columns:] for item in col]


def add_item(
    container: ContainerContent, column_index: int, item_type: str, key: Optional[str] = None
) -> ContainerContent:
    """Ajoute un item (contenu par défaut, clé neuve) en fin de colonne."""
    if not _has_column(container, column_index):
        return container
    slots = _copy_slots(container)
    slots[column_index].append(make_item(item_type, key=key or new_key()))
    return container.model_copy(update={"slots": slots})


def insert_item_before(
    container: ContainerContent,
    column_index: int,
    before_item_key: Optional[str],
    item_type: str,
    key: Optional[str] = None,
) -> ContainerContent:
    """Insère un nouvel item avant `before_item_key` (en fin si introuvable)."""
    if not _has_column(container, column_index):
        return container
    slots = _copy_slots(container)
    col = slots[column_index]
    idx = _index_of(col, before_item_key)
    col.insert(len(col) if idx < 0 else idx, make_item(item_type, key=key or new_key()))
    return container.model_copy(update={"slots": slots})


def duplicate_item(container: ContainerContent, column_index: int, item_index: int) -> ContainerContent:
    """Clone profond, clé neuve, inséré juste après l'original (index + 1)."""
    if not _has_item(container, column_index, item_index):
        return container
    slots = _copy_slots(container)
    col = slots[column_index]
    col.insert(item_index + 1, clone_with_fresh_keys(col[item_index]))
    return container.model_copy(update={"slots": slots})


def remove_item(container: ContainerContent, column_index: int, item_index: int) -> ContainerContent:
    if not _has_item(container, column_index, item_index):
        return container
    slots = _copy_slots(container)
    del slots[column_index][item_index]
    return container.model_copy(update={"slots": slots})


def update_item(
    container: ContainerContent, column_index: int, item_index: int, patch: dict
) -> ContainerContent:
    """
    Fusionne `patch` dans le contenu de l'item (clés camelCase du document).
    Le HTML riche est assaini et `body` reçoit son texte brut en repli.
    """
    if not _has_item(container, column_index, item_index):
        return container
    item = container.slots[column_index][item_index]
    content = {**to_canonical(item.content), **(patch or {})}
    if item.type == "text" and "html" in (patch or {}):
        content["html"] = sanitize_rich_html(str(content.get("html") or ""))
        if content.get("format") == "rich" and content["html"]:
            content["body"] = html_to_text(content["html"])
    updated = normalize_item({"_key": item.key, "type": item.type, "content": content})
    slots = _copy_slots(container)
    slots[column_index][item_index] = updated
    return container.model_copy(update={"slots": slots})


# ── Niveau blocs ──────────────────────────────────────────────────────────────

def update_container(
    blocks: List[DraftBlock], block_key: str, fn: Callable[[ContainerContent], ContainerContent]
) -> List[DraftBlock]:
    """Applique une opération conteneur au bloc `block_key` (no-op si absent)."""
    i = container_index(blocks, block_key)
    if i < 0:
        return blocks
    content = fn(blocks[i].content)
    if content is blocks[i].content:
        return blocks
    out = list(blocks)
    out[i] = blocks[i].model_copy(update={"content": content})
    return out


def is_self_drop(source: ItemLocation, target: DropLocation) -> bool:
    """Déposé avant lui-même, dans sa propre colonne : no-op."""
    return (
        target.before_item_key == source.item_key
        and target.block_key == source.block_key
        and target.column_index == source.column_index
    )


def move_item_indexed(
    blocks: List[DraftBlock], source: ItemLocation, target: DropLocation
) -> Tuple[List[DraftBlock], Optional[int]]:
    """move_item qui rend aussi l'index final de l'item (None si no-op)."""
    if is_self_drop(source, target):
        return blocks, None

    src_i = container_index(blocks, source.block_key)
    dst_i = container_index(blocks, target.block_key)
    if src_i < 0 or dst_i < 0:
        return blocks, None
    src_c = blocks[src_i].content
    dst_c = blocks[dst_i].content
    if not _has_column(src_c, source.column_index) or not _has_column(dst_c, target.column_index):
        return blocks, None

    src_slots = _copy_slots(src_c)
    dst_slots = src_slots if src_i == dst_i else _copy_slots(dst_c)

    src_col = src_slots[source.column_index]
    old = _index_of(src_col, source.item_key)
    if old < 0:
        return blocks, None
    moving = src_col.pop(old)

    dst_col = dst_slots[target.column_index]
    if src_i != dst_i and any(it.key == moving.key for col in dst_slots for it in col):
        # clés uniques par conteneur : collision héritée de données legacy
        moving = moving.model_copy(update={"key": new_key()})
    before = _index_of(dst_col, target.before_item_key)
    dest = len(dst_col) if before < 0 else before
    dst_col.insert(dest, moving)

    out = list(blocks)
    out[src_i] = blocks[src_i].model_copy(update={"content": src_c.model_copy(update={"slots": src_slots})})
    if dst_i != src_i:
        out[dst_i] = blocks[dst_i].model_copy(update={"content": dst_c.model_copy(update={"slots": dst_slots})})
    return out, dest


def move_item(blocks: List[DraftBlock], source: ItemLocation, target: DropLocation) -> List[DraftBlock]:
    """
    Déplace un item dans le même conteneur ou vers un autre.

    1. source localisée par clé (no-op si absente)
    2. retirée
    3. destination localisée par `before_item_key` (fin de colonne si None/absente)
    4. insérée
    """
    return move_item_indexed(blocks, source, target)[0]


def duplicate_block(blocks: List[DraftBlock], key: str, new_block_key: Optional[str] = None) -> List[DraftBlock]:
    """Clone profond après l'original : bloc neuf (id None) et items re-clés."""
    i = block_index(blocks, key)
    if i < 0:
        return blocks
    block = blocks[i]
    content = clone_with_fresh_keys(block.content)
    if content.name and content.name.strip():
        content = content.model_copy(update={"name": f"{content.name.strip()} {COPY_SUFFIX}"})
    out = list(blocks)
    out.insert(i + 1, _new_block(block.type, content, new_block_key, len(blocks)))
    return out


def reorder_blocks(blocks: List[DraftBlock], from_key: str, to_key: str) -> List[DraftBlock]:
    """Déplacement positionnel : le bloc `from_key` prend la place de `to_key`."""
    old = block_index(blocks, from_key)
    new = block_index(blocks, to_key)
    if old < 0 or new < 0 or old == new:
        return blocks
    out = list(blocks)
    out.insert(new, out.pop(old))
    return out


def rename_block(blocks: List[DraftBlock], key: str, name: Optional[str]) -> List[DraftBlock]:
    """Nom affiché dans la sidebar ; vide ou None le retire."""
    i = block_index(blocks, key)
    if i < 0:
        return blocks
    name = name.strip() if isinstance(name, str) and name.strip() else None
    out = list(blocks)
    out[i] = blocks[i].model_copy(update={"content": blocks[i].content.model_copy(update={"name": name})})
    return out


def delete_block(blocks: List[DraftBlock], key: str) -> List[DraftBlock]:
    if block_index(blocks, key) < 0:
        return blocks
    return [b for b in blocks if b.key != key]


def update_block_content(blocks: List[DraftBlock], key: str, patch: dict) -> List[DraftBlock]:
    """
    Propriétés du bloc (backgroundColor, height, name…). Les colonnes passent
    uniquement par set_columns.
    """
    i = block_index(blocks, key)
    if i < 0:
        return blocks
    block = blocks[i]
    # background_color → backgroundColor : une seule clé par champ dans le merge
    aliases = {name: f.alias for name, f in type(block.content).model_fields.items() if f.alias}
    patch = {aliases.get(k, k): v for k, v in (patch or {}).items() if k not in ("columns", "slots")}
    merged = {**block.content.model_dump(by_alias=True), **patch}
    out = list(blocks)
    out[i] = block.model_copy(update={"content": normalize_block_content(block.type, merged)})
    return out


def add_container(blocks: List[DraftBlock], columns: int = 1, key: Optional[str] = None) -> List[DraftBlock]:
    return list(blocks) + [_new_block("container", create_container_content(columns), key, len(blocks))]


def add_spacer(blocks: List[DraftBlock], key: Optional[str] = None) -> List[DraftBlock]:
    return list(blocks) + [_new_block("spacer", DEFAULT_SPACER_CONTENT.model_copy(), key, len(blocks))]


def _single_item_container(item_type: str, item_key: Optional[str]) -> ContainerContent:
    container = create_container_content(1)
    return add_item(container, 0, item_type, key=item_key)


def add_content_block(
    blocks: List[DraftBlock], item_type: str, key: Optional[str] = None, item_key: Optional[str] = None
) -> List[DraftBlock]:
    """Nouveau conteneur 1 colonne contenant un item, en fin de page."""
    content = _single_item_container(item_type, item_key)
    return list(blocks) + [_new_block("container", content, key, len(blocks))]


def insert_block_at(
    blocks: List[DraftBlock],
    at_key: Optional[str],
    block_type: str,
    columns: int = 1,
    key: Optional[str] = None,
) -> List[DraftBlock]:
    """Insère un bloc vide à la position de `at_key` (en fin si introuvable)."""
    i = block_index(blocks, at_key) if at_key else -1
    i = len(blocks) if i < 0 else i
    if block_type == "spacer":
        content = DEFAULT_SPACER_CONTENT.model_copy()
    elif block_type == "container":
        content = create_container_content(columns)
    else:
        raise ValueError(f"Type de bloc inconnu : {block_type!r}")
    out = list(blocks)
    out.insert(i, _new_block(block_type, content, key, i))
    return out


def insert_content_block_at(
    blocks: List[DraftBlock],
    at_key: Optional[str],
    item_type: str,
    key: Optional[str] = None,
    item_key: Optional[str] = None,
) -> List[DraftBlock]:
    i = block_index(blocks, at_key) if at_key else -1
    i = len(blocks) if i < 0 else i
    out = list(blocks)
    out.insert(i, _new_block("container", _single_item_container(item_type, item_key), key, i))
    return out
