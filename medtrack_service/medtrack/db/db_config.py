# medtrack/db/db_config.py

import sqlite3
from pathlib import Path
from typing import Optional

from medtrack.core.settings import MEDTRACK_DB_PATH


# Base project directory (medtrack_service/)
BASE_DIR = Path(__file__).resolve().parents[2]

# Default database file (medtrack_service/medtrack/db/medtrack.db)
DEFAULT_DB_PATH = BASE_DIR / "medtrack" / "db" / "medtrack.db"


def resolve_db_path(path: Optional[str] = None) -> Path:
    db_path = Path(path or MEDTRACK_DB_PATH or DEFAULT_DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path


def get_sqlite_connection(path: Optional[str] = None) -> sqlite3.Connection:
    """
    Create and configure SQLite connection with recommended PRAGMA settings.
    """
    conn = sqlite3.connect(str(resolve_db_path(path)), check_same_thread=False)
    conn.row_factory = sqlite3.Row

    # Performance & concurrency settings
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA busy_timeout=5000;")

    return conn
