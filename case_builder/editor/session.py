"""
Session d'édition d'un case — chargement, actions, sauvegarde.

Protocole de sauvegarde :
  1. garde « en vol » : une seule sauvegarde à la fois (SaveInProgressError)
  2. brouillons capturés → lignes (sort_order = index)
  3. store.save_blocks : suppressions puis upserts, atomique côté store
  4. succès → ids appris du store (clés inchangées), nouveau snapshot propre
  5. échec → PersistenceError, brouillons et snapshot intacts, nouvel essai possible

Dernière écriture gagnante : aucune détection de conflit entre sessions.
"""
import logging
import threading
from typing import Dict, List, Optional, Protocol, Sequence

from ..core.schemas import BlockRow
from ..errors import DestructiveEditError, PersistenceError, SaveInProgressError, SessionNotFoundError
from .dirty import to_rows
from .state import EditorState, apply_action

log = logging.getLogger(__name__)


class BlockStore(Protocol):
    def fetch_blocks(self, case_id: str) -> List[BlockRow]: ...

    def save_blocks(self, case_id: str, rows: Sequence[BlockRow]) -> Optional[List[str]]: ...


class EditorSession:
    def __init__(self, store: BlockStore, case_id: str):
        self.store = store
        self.case_id = case_id
        self.state = EditorState(case_id=case_id)
        self._save_lock = threading.Lock()
        self._lock = threading.RLock()

    @property
    def saving(self) -> bool:
        return self._save_lock.locked()

    @property
    def has_changes(self) -> bool:
        return self.state.has_changes

    def load(self) -> EditorState:
        """(Re)charge depuis le store ; l'état courant est conservé en cas d'échec."""
        try:
            rows = self.store.fetch_blocks(self.case_id)
        except PersistenceError as e:
            log.warning("Chargement case %s échoué : %s", self.case_id, e)
            raise
        with self._lock:
            self.state = EditorState.from_rows(self.case_id, rows, selected=self.state.selection.selected_block)
        log.info("Case %s chargé : %d bloc(s)", self.case_id, len(self.state.drafts))
        return self.state

    def dispatch(self, action) -> EditorState:
        with self._lock:
            try:
                self.state = apply_action(self.state, action)
            except DestructiveEditError as e:
                log.warning("Action refusée (case %s) : %s", self.case_id, e)
                raise
            return self.state

    def _learn_ids(self, captured, ids: Optional[List[str]]) -> Dict[str, str]:
        if ids is None:
            # store sans retour d'ids : relecture, correspondance par position
            ids = [r.id for r in self.store.fetch_blocks(self.case_id)]
        if len(ids) != len(captured):
            log.warning("Case %s : %d id(s) reçus pour %d bloc(s)", self.case_id, len(ids), len(captured))
            return {}
        return {d.key: i for d, i in zip(captured, ids) if i}

    def save(self) -> EditorState:
        if not self._save_lock.acquire(blocking=False):
            raise SaveInProgressError(self.case_id)
        try:
            captured = list(self.state.drafts)
            try:
                ids = self.store.save_blocks(self.case_id, to_rows(captured))
                id_by_key = self._learn_ids(captured, ids)
            except PersistenceError as e:
                log.warning("Sauvegarde case %s échouée : %s", self.case_id, e)
                raise
            with self._lock:
                drafts = [
                    d.model_copy(update={"id": id_by_key[d.key]})
                    if d.key in id_by_key and d.id != id_by_key[d.key] else d
                    for d in self.state.drafts
                ]
                self.state = self.state.model_copy(update={"drafts": drafts}).mark_clean(captured)
            log.info("Case %s sauvegardé : %d bloc(s)", self.case_id, len(captured))
            return self.state
        finally:
            self._save_lock.release()


class EditorRegistry:
    """Sessions ouvertes, une par case."""

    def __init__(self):
        self._sessions: Dict[str, EditorSession] = {}
        self._lock = threading.Lock()

    def open(self, store: BlockStore, case_id: str) -> EditorSession:
        with self._lock:
            session = self._sessions.get(case_id)
            if session is None or session.store is not store:
                session = EditorSession(store, case_id)
                self._sessions[case_id] = session
        return session

    def get(self, case_id: str) -> EditorSession:
        session = self._sessions.get(case_id)
        if session is None:
            raise SessionNotFoundError(case_id)
        return session

    def close(self, case_id: str) -> None:
        with self._lock:
            self._sessions.pop(case_id, None)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
