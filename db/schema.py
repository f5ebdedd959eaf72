from __future__ import annotations

import sqlite3


def bootstrap(conn: sqlite3.Connection) -> None:
    """Create batch tables and indexes (idempotent)."""
    cur = conn.cursor()

    # One row per uploaded batch; the full state is a JSON snapshot
    cur.execute(
        (
            "CREATE TABLE IF NOT EXISTS batches (\n"
            "  batch_id TEXT PRIMARY KEY,\n"
            "  file_name TEXT,\n"
            "  status TEXT NOT NULL,\n"
            "  total_records INTEGER NOT NULL DEFAULT 0,\n"
            "  uploaded_at TEXT NOT NULL,\n"
            "  started_at TEXT,\n"
            "  completed_at TEXT,\n"
            "  error TEXT,\n"
            "  state_json TEXT NOT NULL,\n"
            "  updated_at TEXT NOT NULL DEFAULT (datetime('now'))\n"
            ")"
        )
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_batches_status ON batches(status);")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_batches_uploaded ON batches(uploaded_at);")

    conn.commit()
