"""
case_builder — modèle de contenu par blocs et moteur d'édition des pages case.

    from case_builder import EditorSession, SqlBlockStore, make_session_factory

    store = SqlBlockStore(make_session_factory("sqlite:///cases.db"))
    session = EditorSession(store, "case-42")
    session.load()
    session.dispatch(AddContentBlock(item_type="text"))
    session.save()
"""
__version__ = "0.1.0"

from .errors import (
    CaseBuilderError,
    DestructiveEditError,
    PersistenceError,
    SaveInProgressError,
    SessionNotFoundError,
)
from .core import (
    BlockRow,
    ContainerContent,
    DraftBlock,
    SpacerContent,
    normalize_block_content,
    normalize_container,
    to_drafts,
)
from .editor import EditorSession, EditorState, apply_action, parse_action, resolve_drop
from .editor.actions import AddContentBlock
from .database import SqlBlockStore, make_session_factory

__all__ = [
    "__version__",
    "CaseBuilderError",
    "DestructiveEditError",
    "PersistenceError",
    "SaveInProgressError",
    "SessionNotFoundError",
    "BlockRow",
    "ContainerContent",
    "DraftBlock",
    "SpacerContent",
    "normalize_block_content",
    "normalize_container",
    "to_drafts",
    "EditorSession",
    "EditorState",
    "apply_action",
    "parse_action",
    "resolve_drop",
    "AddContentBlock",
    "SqlBlockStore",
    "make_session_factory",
]
