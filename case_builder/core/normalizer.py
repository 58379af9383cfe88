"""
Normalizer — répare les contenus legacy ou malformés vers la forme canonique.

Fonctions exposées :
  normalize_container(input) -> ContainerContent
  normalize_spacer(input)    -> SpacerContent
  normalize_item(raw)        -> ContentItem | None
  normalize_block_content(block_type, input)
  to_canonical(content)      -> dict (document JSON persisté)

Fonctions pures : aucune ne lève sur une entrée malformée, aucune ne persiste.
"""
import re
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from .schemas import (
    COLUMN_CHOICES,
    CONTENT_MODELS,
    ITEM_MODELS,
    ContainerContent,
    SpacerContent,
)

_YOUTUBE_RE = re.compile(r"youtube\.com|youtu\.be", re.IGNORECASE)
_VIMEO_RE = re.compile(r"vimeo\.com", re.IGNORECASE)
_VIDEO_PROVIDERS = ("youtube", "vimeo", "file", "mux")


def detect_video_provider(url: str, mux_playback_id: Optional[str] = None) -> str:
    """youtube / vimeo d'après l'hôte, mux si un playback id est présent, sinon file."""
    url = url or ""
    if _YOUTUBE_RE.search(url):
        return "youtube"
    if _VIMEO_RE.search(url):
        return "vimeo"
    if mux_playback_id:
        return "mux"
    return "file"


def _as_dict(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    return value


def _lenient(model_cls, data: dict):
    """
    Valide `data` champ par champ : toute valeur invalide retombe sur le défaut
    du modèle au lieu de faire échouer la validation.
    """
    data = dict(data)
    aliases = {}
    for name, field in model_cls.model_fields.items():
        alias = field.alias or name
        aliases[name] = alias
        aliases[alias] = name

    while True:
        try:
            return model_cls.model_validate(data)
        except ValidationError as exc:
            bad = {err["loc"][0] for err in exc.errors() if err.get("loc")}
            removed = False
            for loc in bad:
                for k in (loc, aliases.get(loc)):
                    if k in data:
                        del data[k]
                        removed = True
            if not removed:
                return model_cls()


def _clean_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def normalize_item(raw: Any):
    """Item canonique, ou None pour une entrée vide / de type inconnu."""
    raw = _as_dict(raw)
    if not isinstance(raw, dict):
        return None
    item_type = raw.get("type")
    if item_type not in ITEM_MODELS:
        return None

    content = _as_dict(raw.get("content"))
    content = dict(content) if isinstance(content, dict) else {}
    if item_type == "video" and content.get("provider") not in _VIDEO_PROVIDERS:
        content["provider"] = detect_video_provider(
            str(content.get("url") or ""), _clean_str(content.get("muxPlaybackId"))
        )

    key = raw.get("_key", raw.get("key"))
    return ITEM_MODELS[item_type](
        key=key if isinstance(key, str) and key else None,
        content=_lenient(CONTENT_MODELS[item_type], content),
    )


def _normalize_column(value: Any) -> list:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        items = (normalize_item(v) for v in value if v)
        return [it for it in items if it is not None]
    # ancienne forme : un seul item (ou null) par colonne
    item = normalize_item(value)
    return [item] if item is not None else []


def normalize_container(input: Any) -> ContainerContent:
    """
    Forme canonique d'un conteneur.

    Accepte :
      - la forme canonique
      - la forme legacy (un item nullable par colonne au lieu d'une liste)
      - `columns` absent ou invalide → 1
      - nombre de slots ≠ columns → complété par des colonnes vides ou tronqué
    """
    input = _as_dict(input)
    if not isinstance(input, dict):
        input = {}

    columns = input.get("columns")
    if isinstance(columns, bool) or columns not in COLUMN_CHOICES:
        columns = 1
    columns = int(columns)

    raw_slots = input.get("slots")
    if not isinstance(raw_slots, (list, tuple)):
        raw_slots = []
    slots = [
        _normalize_column(raw_slots[i] if i < len(raw_slots) else None)
        for i in range(columns)
    ]

    return ContainerContent(
        name=_clean_str(input.get("name")),
        columns=columns,
        slots=slots,
        background_color=_clean_str(input.get("backgroundColor", input.get("background_color"))),
    )


def normalize_spacer(input: Any) -> SpacerContent:
    input = _as_dict(input)
    if not isinstance(input, dict):
        input = {}
    height = input.get("height")
    return SpacerContent(
        name=_clean_str(input.get("name")),
        height=height if height in ("sm", "md", "lg") else "md",
    )


def normalize_block_content(block_type: str, input: Any):
    if block_type == "container":
        return normalize_container(input)
    if block_type == "spacer":
        return normalize_spacer(input)
    raise ValueError(f"Type de bloc inconnu : {block_type!r}")


def to_canonical(content: BaseModel) -> dict:
    """Document JSON émis par tout producteur (éditeur, API, row store)."""
    return content.model_dump(by_alias=True, exclude_none=True)
