"""
Data models — CaseBlock
SQLAlchemy (SQLite) + Pydantic v2 (entrées API)
"""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import sqlalchemy as sa
from pydantic import BaseModel, Field
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .core.schemas import BlockType


# ── ORM ────────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    pass


class CaseBlockDB(Base):
    """Une ligne par bloc de page ; `content` = document JSON (texte)."""
    __tablename__ = "case_blocks"
    id:         Mapped[str]      = mapped_column(sa.String, primary_key=True, default=lambda: str(uuid.uuid4()))
    case_id:    Mapped[str]      = mapped_column(sa.String, nullable=False, index=True)
    type:       Mapped[str]      = mapped_column(sa.String, nullable=False)
    content:    Mapped[str]      = mapped_column(sa.Text, default="{}")
    sort_order: Mapped[int]      = mapped_column(sa.Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(sa.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# ── API inputs ─────────────────────────────────────────────────────────

class BlockInput(BaseModel):
    id:         Optional[str]  = None
    type:       BlockType
    content:    Dict[str, Any] = Field(default_factory=dict)


class BlocksReplaceInput(BaseModel):
    """Liste complète, dans l'ordre d'affichage."""
    blocks: List[BlockInput] = Field(default_factory=list)


class DropInput(BaseModel):
    active_id: str
    over_id:   Optional[str] = None


class NormalizeInput(BaseModel):
    """Document brut (éventuellement legacy) à normaliser."""
    type:    str = "container"
    content: Any = None
