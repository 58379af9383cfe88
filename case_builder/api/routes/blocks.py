"""
Blocs persistés d'un case.
GET  /api/cases/{case_id}/blocks          → lignes canoniques (éditeur)
PUT  /api/cases/{case_id}/blocks          → remplace la liste complète
GET  /api/cases/{case_id}/blocks/public   → contrat de rendu public
POST /api/case-builder/normalize          → normalise un document (legacy compris)
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from ...core.normalizer import normalize_block_content, to_canonical
from ...core.schemas import BlockRow
from ...database import SqlBlockStore, get_store
from ...errors import PersistenceError
from ...models import BlocksReplaceInput, NormalizeInput
from ...renderer.contract import public_blocks

log = logging.getLogger(__name__)
router = APIRouter(tags=["Case blocks"])


def _fetch(store: SqlBlockStore, case_id: str):
    try:
        return store.fetch_blocks(case_id)
    except PersistenceError as e:
        log.warning("fetch_blocks %s : %s", case_id, e)
        raise HTTPException(502, str(e))


@router.get("/api/cases/{case_id}/blocks")
def list_blocks(case_id: str, store: SqlBlockStore = Depends(get_store)):
    rows = _fetch(store, case_id)
    return {
        "success": True,
        "result": [r.model_dump() for r in rows],
        "message": f"{len(rows)} bloc(s)",
        "error": None,
    }


@router.put("/api/cases/{case_id}/blocks")
def replace_blocks(case_id: str, req: BlocksReplaceInput, store: SqlBlockStore = Depends(get_store)):
    """Réécriture complète : l'ordre de la liste devient sort_order."""
    rows = [
        BlockRow(id=b.id, type=b.type, content=b.content, sort_order=i)
        for i, b in enumerate(req.blocks)
    ]
    try:
        ids = store.save_blocks(case_id, rows)
    except PersistenceError as e:
        log.warning("save_blocks %s : %s", case_id, e)
        raise HTTPException(502, str(e))
    return {
        "success": True,
        "result": {"ids": ids},
        "message": f"{len(ids)} bloc(s) sauvegardé(s)",
        "error": None,
    }


@router.get("/api/cases/{case_id}/blocks/public")
def list_public_blocks(case_id: str, store: SqlBlockStore = Depends(get_store)):
    return {
        "success": True,
        "result": public_blocks(_fetch(store, case_id)),
        "message": None,
        "error": None,
    }


@router.post("/api/case-builder/normalize")
def normalize(req: NormalizeInput):
    try:
        content = normalize_block_content(req.type, req.content)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {"success": True, "result": to_canonical(content), "message": None, "error": None}
