"""SQLite — init + session + row store des blocs"""
import json
import logging
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from sqlalchemy import create_engine, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from . import config
from .core.normalizer import normalize_block_content, to_canonical
from .core.schemas import BLOCK_TYPES, BlockRow
from .editor.dirty import compute_diff, to_rows
from .errors import PersistenceError
from .models import Base, CaseBlockDB

log = logging.getLogger(__name__)

_ENGINE = None
_SESSION_LOCAL = None


def make_session_factory(db_url: str) -> sessionmaker:
    engine = create_engine(db_url, connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_session_local() -> sessionmaker:
    """Factory par défaut, créée au premier appel depuis CASE_BUILDER_DB_PATH."""
    global _ENGINE, _SESSION_LOCAL
    if _SESSION_LOCAL is None:
        path = config.db_path()
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        _ENGINE = create_engine(f"sqlite:///{path}", connect_args={"check_same_thread": False})
        _SESSION_LOCAL = sessionmaker(autocommit=False, autoflush=False, bind=_ENGINE)
    return _SESSION_LOCAL


def init_db():
    get_session_local()
    Base.metadata.create_all(bind=_ENGINE)


# ── JSON helpers ──
def jo(s: Optional[str]) -> dict:
    try: return json.loads(s or "{}")
    except (TypeError, ValueError): return {}

def jd(o) -> str:
    return json.dumps(o, ensure_ascii=False)


# ── Row store ──
class SqlBlockStore:
    """
    fetch_blocks / save_blocks sur la table case_blocks.

    save_blocks est atomique (une transaction) : suppressions d'abord, puis
    mises à jour et insertions. Rend les ids dans l'ordre des lignes reçues.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def fetch_blocks(self, case_id: str) -> List[BlockRow]:
        try:
            with self._session_factory() as db:
                records = db.scalars(
                    select(CaseBlockDB)
                    .where(CaseBlockDB.case_id == case_id)
                    .order_by(CaseBlockDB.sort_order)
                ).all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Lecture des blocs du case {case_id!r} impossible : {e}") from e

        rows = []
        for r in records:
            if r.type not in BLOCK_TYPES:
                log.warning("Bloc %s ignoré : type inconnu %r", r.id, r.type)
                continue
            content = to_canonical(normalize_block_content(r.type, jo(r.content)))
            rows.append(BlockRow(id=r.id, type=r.type, content=content, sort_order=r.sort_order))
        return rows

    def save_blocks(self, case_id: str, rows: Sequence[BlockRow]) -> List[str]:
        rows = [
            r.model_copy(update={"content": to_canonical(normalize_block_content(r.type, r.content))})
            for r in to_rows(rows)
        ]
        ids: List[Optional[str]] = [None] * len(rows)
        try:
            with self._session_factory() as db:
                try:
                    existing: Dict[str, CaseBlockDB] = {
                        r.id: r for r in db.scalars(select(CaseBlockDB).where(CaseBlockDB.case_id == case_id))
                    }
                    diff = compute_diff(list(existing.values()), rows)

                    if diff.to_delete:
                        db.execute(
                            delete(CaseBlockDB)
                            .where(CaseBlockDB.case_id == case_id)
                            .where(CaseBlockDB.id.in_(diff.to_delete))
                        )
                        db.flush()

                    for row in diff.to_update:
                        rec = existing[row.id]
                        rec.type = row.type
                        rec.content = jd(row.content)
                        rec.sort_order = row.sort_order
                        ids[row.sort_order] = rec.id

                    for row in diff.to_insert:
                        rec = CaseBlockDB(
                            id=row.id or str(uuid.uuid4()),
                            case_id=case_id,
                            type=row.type,
                            content=jd(row.content),
                            sort_order=row.sort_order,
                        )
                        db.add(rec)
                        ids[row.sort_order] = rec.id

                    db.commit()
                except SQLAlchemyError:
                    db.rollback()
                    raise
        except SQLAlchemyError as e:
            raise PersistenceError(f"Sauvegarde des blocs du case {case_id!r} impossible : {e}") from e

        log.info(
            "Case %s : %d supprimé(s), %d mis à jour, %d inséré(s)",
            case_id, len(diff.to_delete), len(diff.to_update), len(diff.to_insert),
        )
        return ids


_STORE: Optional[SqlBlockStore] = None


def get_store() -> SqlBlockStore:
    """Dépendance FastAPI (surchargée dans les tests)."""
    global _STORE
    if _STORE is None:
        _STORE = SqlBlockStore(get_session_local())
    return _STORE
