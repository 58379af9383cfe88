"""
Schémas Pydantic du Case Builder.
Structure : Block (container | spacer) → Column (liste) → ContentItem (image | text | video)

Le document JSON persisté garde les noms camelCase (aliases) ; les items portent
leur clé locale sous `_key`.
"""
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ContentItemType = Literal["image", "text", "video"]
BlockType = Literal["container", "spacer"]
ContainerColumns = Literal[1, 2, 3, 4]

CONTENT_ITEM_TYPES = ("image", "text", "video")
BLOCK_TYPES = ("container", "spacer")
COLUMN_CHOICES = (1, 2, 3, 4)

MAX_PX = 240


def _clamp(value: Any, low: int, high: int, fallback: int) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if number != number:  # NaN
        return fallback
    return max(low, min(high, int(round(number))))


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Padding(_Payload):
    top: int = 0
    bottom: int = 0
    left: int = 0
    right: int = 0

    @field_validator("top", "bottom", "left", "right", mode="before")
    @classmethod
    def _clamp_px(cls, v):
        return _clamp(v, 0, MAX_PX, 0)


# ── Payloads ──────────────────────────────────────────────────────────────────

class ImageContent(_Payload):
    url: str = ""
    alt: str = ""
    cover: bool = False
    aspect: Literal["auto", "1/1", "16/9", "9/16"] = "auto"
    width_desktop: Literal["fit", "fill"] = Field("fill", alias="widthDesktop")
    width_mobile: Literal["fit", "fill"] = Field("fill", alias="widthMobile")
    border_style: Literal["none", "solid"] = Field("none", alias="borderStyle")
    border_color: Optional[str] = Field(None, alias="borderColor")
    border_width: Optional[int] = Field(None, alias="borderWidth")
    radius: int = 0
    padding: Padding = Field(default_factory=Padding)
    zoom: int = 0  # 0 = off, 5–20 = % d'agrandissement au survol

    @field_validator("radius", "border_width", mode="before")
    @classmethod
    def _clamp_px(cls, v):
        return None if v is None else _clamp(v, 0, MAX_PX, 0)

    @field_validator("zoom", mode="before")
    @classmethod
    def _clamp_zoom(cls, v):
        return _clamp(v, 0, 20, 0)


class TextColors(_Payload):
    text: Optional[str] = None
    title: Optional[str] = None
    link: Optional[str] = None


class TextContent(_Payload):
    body: str = ""  # repli lisible quand format == "rich"
    align: Literal["left", "center"] = "left"
    format: Literal["plain", "rich"] = "plain"
    html: str = ""
    width_mode: Literal["auto", "fill"] = Field("auto", alias="widthMode")
    max_width: Literal["normal", "wide", "full"] = Field("normal", alias="maxWidth")
    preset: Literal["body", "title_1"] = "body"
    color_role: Literal["text", "title", "link"] = Field("text", alias="colorRole")
    colors: TextColors = Field(default_factory=TextColors)
    background: bool = False
    padding: Padding = Field(default_factory=Padding)


class VideoContent(_Payload):
    url: str = ""
    source: Literal["uploaded", "external"] = "uploaded"
    provider: Literal["youtube", "vimeo", "file", "mux"] = "youtube"
    aspect: Literal["16/9", "9/16", "1/1"] = "16/9"
    mux_playback_id: Optional[str] = Field(None, alias="muxPlaybackId")
    autoplay: bool = False
    controls: bool = True
    loop: bool = False
    width_desktop_pct: int = Field(100, alias="widthDesktopPct")
    width_mobile_pct: int = Field(100, alias="widthMobilePct")
    border_style: Literal["none", "solid"] = Field("none", alias="borderStyle")
    border_color: str = Field("#000000", alias="borderColor")
    border_width: int = Field(1, alias="borderWidth")
    border_opacity: int = Field(100, alias="borderOpacity")
    radius: int = 0
    padding: Padding = Field(default_factory=Padding)

    @field_validator("width_desktop_pct", "width_mobile_pct", mode="before")
    @classmethod
    def _clamp_pct(cls, v):
        return _clamp(v, 0, 100, 100)

    @field_validator("border_opacity", mode="before")
    @classmethod
    def _clamp_opacity(cls, v):
        return _clamp(v, 0, 100, 100)

    @field_validator("border_width", "radius", mode="before")
    @classmethod
    def _clamp_px(cls, v):
        return _clamp(v, 0, MAX_PX, 0)


# ── Items (union discriminée par type) ───────────────────────────────────────

class _ItemBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    key: Optional[str] = Field(None, alias="_key")


class ImageItem(_ItemBase):
    type: Literal["image"] = "image"
    content: ImageContent = Field(default_factory=ImageContent)


class TextItem(_ItemBase):
    type: Literal["text"] = "text"
    content: TextContent = Field(default_factory=TextContent)


class VideoItem(_ItemBase):
    type: Literal["video"] = "video"
    content: VideoContent = Field(default_factory=VideoContent)


ContentItem = Annotated[
    Union[ImageItem, TextItem, VideoItem],
    Field(discriminator="type"),
]

ITEM_MODELS: Dict[str, type] = {
    "image": ImageItem,
    "text":  TextItem,
    "video": VideoItem,
}

CONTENT_MODELS: Dict[str, type] = {
    "image": ImageContent,
    "text":  TextContent,
    "video": VideoContent,
}


# ── Blocs ─────────────────────────────────────────────────────────────────────

class ContainerContent(_Payload):
    """Conteneur multi-colonnes ; `slots` contient une liste d'items par colonne."""
    name: Optional[str] = None
    columns: ContainerColumns = 1
    slots: List[List[ContentItem]] = Field(default_factory=lambda: [[]])
    background_color: Optional[str] = Field(None, alias="backgroundColor")

    @model_validator(mode="after")
    def _slots_match_columns(self):
        if len(self.slots) != self.columns:
            slots = [list(col) for col in self.slots[: self.columns]]
            slots += [[] for _ in range(self.columns - len(slots))]
            self.slots = slots
        return self

    def item_count(self) -> int:
        return sum(len(col) for col in self.slots)


class SpacerContent(_Payload):
    name: Optional[str] = None
    height: Literal["sm", "md", "lg"] = "md"


BlockContent = Union[ContainerContent, SpacerContent]


class DraftBlock(BaseModel):
    """
    Bloc en mémoire (éventuellement non sauvegardé).

    `key` est stable pour toute la session d'édition ; `id` reste None tant que
    le bloc n'a pas été persisté.
    """
    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(..., alias="_key")
    id: Optional[str] = None
    type: BlockType
    content: BlockContent
    sort_order: int = 0

    @model_validator(mode="before")
    @classmethod
    def _normalize_content(cls, data):
        if isinstance(data, dict) and "type" in data:
            from .normalizer import normalize_block_content
            data = dict(data)
            data["content"] = normalize_block_content(data["type"], data.get("content"))
        return data

    @property
    def is_container(self) -> bool:
        return self.type == "container"


class BlockRow(BaseModel):
    """Ligne du row store : {id, type, content (JSON), sort_order}."""
    id: Optional[str] = None
    type: BlockType
    content: Dict[str, Any] = Field(default_factory=dict)
    sort_order: int = 0


# ── Défauts ───────────────────────────────────────────────────────────────────

DEFAULT_TEXT_BODY = (
    "Lorem ipsum dolor sit amet, consectetur adipiscing elit. Sed do eiusmod tempor "
    "incididunt ut labore et dolore magna aliqua."
)

DEFAULT_SLOT_CONTENT: Dict[str, _Payload] = {
    "image": ImageContent(),
    "text":  TextContent(body=DEFAULT_TEXT_BODY),
    "video": VideoContent(),
}

DEFAULT_SPACER_CONTENT = SpacerContent(height="md")


def default_content(item_type: str):
    """Copie profonde du contenu par défaut d'un type d'item."""
    if item_type not in DEFAULT_SLOT_CONTENT:
        raise ValueError(f"Type de contenu inconnu : {item_type!r}. Types : {list(CONTENT_ITEM_TYPES)}")
    return DEFAULT_SLOT_CONTENT[item_type].model_copy(deep=True)


def make_item(item_type: str, key: Optional[str] = None, content=None):
    """Construit un item du bon type (contenu par défaut si absent)."""
    if item_type not in ITEM_MODELS:
        raise ValueError(f"Type de contenu inconnu : {item_type!r}. Types : {list(CONTENT_ITEM_TYPES)}")
    if content is None:
        content = default_content(item_type)
    return ITEM_MODELS[item_type](key=key, content=content)


def create_container_content(columns: int = 1) -> ContainerContent:
    if columns not in COLUMN_CHOICES:
        raise ValueError(f"Nombre de colonnes invalide : {columns!r} (1..4)")
    return ContainerContent(columns=columns, slots=[[] for _ in range(columns)])
