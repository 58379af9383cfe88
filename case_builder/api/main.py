"""
CASE_BUILDER — FastAPI app
Démarrer : uvicorn case_builder.api.main:app --reload --port 8001
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__, config

logging.basicConfig(level=config.log_level(), format="%(asctime)s %(levelname)s — %(message)s")
log = logging.getLogger(__name__)

app = FastAPI(title="CASE_BUILDER — Éditeur de pages case", version=__version__, docs_url="/docs")

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


@app.on_event("startup")
def startup():
    from ..database import init_db
    init_db()
    log.info("DB initialisée (SQLite) : %s", config.db_path())


@app.get("/health")
def health():
    return {"status": "ok", "service": "case_builder", "version": __version__}


# ── Routers ───────────────────────────────────────────────────────────────
from .routes import blocks, editor

app.include_router(blocks.router)
app.include_router(editor.router)
