from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional


MEMORY_DB = ":memory:"


def get_connection(db_path: str, timeout: Optional[float] = 30.0) -> sqlite3.Connection:
    """Open the batch database, creating its parent directory on first use.

    The connection is shared between the CLI thread and the background analysis
    thread; SqliteBatchStore serializes access with its own lock. WAL keeps a
    status reader from blocking behind the writer.
    """
    if db_path != MEMORY_DB:
        Path(db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path, timeout=timeout or 30.0, check_same_thread=False)
    if db_path != MEMORY_DB:
        conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    return conn
