"""SQLite connection to the video catalog."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from vidsearch.core.constants import DEFAULT_DB_PATH

# Seconds a reader waits on a writer (e.g. a catalog import) before failing
BUSY_TIMEOUT_SEC = 5.0


def get_connection(db_path: Path | None = None) -> sqlite3.Connection:
    """Open the catalog with WAL so searches can read during an import."""
    path = Path(db_path or DEFAULT_DB_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path), timeout=BUSY_TIMEOUT_SEC)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    return conn
