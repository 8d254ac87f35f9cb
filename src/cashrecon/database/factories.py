"""Build configured database instances from paths and environment settings."""

import logging
import os
from pathlib import Path
from typing import Optional

from cashrecon.database.sqlalchemy_db import SQLAlchemyDatabase

logger = logging.getLogger(__name__)

DB_PATH_ENV = "CASHRECON_DB_PATH"
DEFAULT_DB_DIR = ".cashrecon"
DEFAULT_DB_FILE = "ledger.db"


def default_database_path() -> Path:
    """Location of the ledger when nothing else is configured.

    The parent directory is created on first use.
    """
    db_dir = Path.home() / DEFAULT_DB_DIR
    db_dir.mkdir(parents=True, exist_ok=True)
    return db_dir / DEFAULT_DB_FILE


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite-backed ledger.

    Args:
        database_path: Ledger file. Falls back to CASHRECON_DB_PATH, then to
            ~/.cashrecon/ledger.db. ``":memory:"`` gives a throwaway store.
    """
    source = "argument"
    if database_path is None:
        database_path = os.environ.get(DB_PATH_ENV)
        source = DB_PATH_ENV
    if not database_path:
        database_path = str(default_database_path())
        source = "default"
    elif database_path != ":memory:":
        database_path = os.path.expanduser(database_path)

    logger.debug("Using ledger %s (from %s)", database_path, source)
    return SQLAlchemyDatabase(f"sqlite:///{database_path}")
