"""Configuration — lue dans l'environnement à chaque appel (surchargeable en test)."""
import os
from pathlib import Path

DATA_DIR = Path(__file__).parent.parent / "data"


def db_path() -> str:
    return os.getenv("CASE_BUILDER_DB_PATH", str(DATA_DIR / "case_builder.db"))


def log_level() -> str:
    return os.getenv("CASE_BUILDER_LOG_LEVEL", "INFO").upper()
