"""
Sessions d'édition — l'arbre brouillon vit côté serveur, une session par case.
POST /api/editor/{case_id}/load     → (re)charge depuis le row store
GET  /api/editor/{case_id}          → état courant
POST /api/editor/{case_id}/actions  → applique une action (union discriminée `action`)
POST /api/editor/{case_id}/drop     → résout un drop (active_id, over_id) puis l'applique
POST /api/editor/{case_id}/save     → sauvegarde (une seule en vol par case)
"""
import logging

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError

from ...database import SqlBlockStore, get_store
from ...editor.actions import Drop, parse_action
from ...editor.session import EditorRegistry, EditorSession
from ...errors import DestructiveEditError, PersistenceError, SaveInProgressError, SessionNotFoundError
from ...models import DropInput
from ...renderer.contract import to_preview_blocks

log = logging.getLogger(__name__)
router = APIRouter(tags=["Case editor"])

REGISTRY = EditorRegistry()


def get_registry() -> EditorRegistry:
    return REGISTRY


# ── Helpers ────────────────────────────────────────────────────────────────────

def _session(registry: EditorRegistry, case_id: str) -> EditorSession:
    try:
        return registry.get(case_id)
    except SessionNotFoundError as e:
        raise HTTPException(404, str(e))


def _view(session: EditorSession) -> dict:
    state = session.state
    sel = state.selection
    highlight = sel.active_highlight
    inspector = sel.inspector_target(state.drafts)
    return {
        "case_id": state.case_id,
        "drafts": [d.model_dump(by_alias=True, exclude_none=True) for d in state.drafts],
        "preview": [b.model_dump() for b in to_preview_blocks(state.case_id, state.drafts)],
        "selection": sel.model_dump(),
        "active_highlight": highlight.model_dump() if highlight else None,
        "inspector": inspector.model_dump() if inspector else None,
        "has_changes": state.has_changes,
        "saving": session.saving,
    }


def _ok(session: EditorSession, message=None) -> dict:
    return {"success": True, "result": _view(session), "message": message, "error": None}


def _apply(session: EditorSession, action) -> dict:
    try:
        session.dispatch(action)
    except DestructiveEditError as e:
        raise HTTPException(409, str(e))
    except ValueError as e:
        raise HTTPException(400, str(e))
    return _ok(session)


# ── Endpoints ──────────────────────────────────────────────────────────────────

@router.post("/api/editor/{case_id}/load")
def editor_load(
    case_id: str,
    store: SqlBlockStore = Depends(get_store),
    registry: EditorRegistry = Depends(get_registry),
):
    session = registry.open(store, case_id)
    try:
        session.load()
    except PersistenceError as e:
        raise HTTPException(502, str(e))
    return _ok(session, f"{len(session.state.drafts)} bloc(s) chargé(s)")


@router.get("/api/editor/{case_id}")
def editor_state(case_id: str, registry: EditorRegistry = Depends(get_registry)):
    return _ok(_session(registry, case_id))


@router.post("/api/editor/{case_id}/actions")
def editor_action(case_id: str, payload: dict = Body(...), registry: EditorRegistry = Depends(get_registry)):
    session = _session(registry, case_id)
    try:
        action = parse_action(payload)
    except ValidationError as e:
        raise HTTPException(422, str(e))
    return _apply(session, action)


@router.post("/api/editor/{case_id}/drop")
def editor_drop(case_id: str, req: DropInput, registry: EditorRegistry = Depends(get_registry)):
    """Drop ignoré (source = cible, ancre périmée) → état inchangé, pas d'erreur."""
    return _apply(_session(registry, case_id), Drop(active_id=req.active_id, over_id=req.over_id))


@router.post("/api/editor/{case_id}/save")
def editor_save(case_id: str, registry: EditorRegistry = Depends(get_registry)):
    session = _session(registry, case_id)
    try:
        session.save()
    except SaveInProgressError as e:
        raise HTTPException(409, str(e))
    except PersistenceError as e:
        raise HTTPException(502, str(e))
    return _ok(session, "Sauvegardé")
