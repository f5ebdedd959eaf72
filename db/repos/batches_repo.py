from __future__ import annotations

import sqlite3
import threading
from typing import Dict, List, Optional

from models import BatchState


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


class InMemoryBatchStore:
    """Process-local store; every get/set works on deep copies.

    Like the SQLite store, it never replaces a completed or failed batch.
    """

    def __init__(self) -> None:
        self._states: Dict[str, BatchState] = {}
        self._lock = threading.Lock()

    def get(self, batch_id: str) -> Optional[BatchState]:
        with self._lock:
            state = self._states.get(batch_id)
            return state.snapshot() if state is not None else None

    def set(self, batch_id: str, state: BatchState) -> None:
        with self._lock:
            current = self._states.get(batch_id)
            if current is not None and current.status.is_terminal:
                return
            self._states[batch_id] = state.snapshot()

    def list_ids(self) -> List[str]:
        with self._lock:
            return list(self._states.keys())


class SqliteBatchStore:
    """Batch snapshots persisted as JSON in the batches table."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self._lock = threading.Lock()

    def get(self, batch_id: str) -> Optional[BatchState]:
        with self._lock:
            cur = self.conn.cursor()
            cur.execute("SELECT state_json FROM batches WHERE batch_id = ?", (batch_id,))
            row = cur.fetchone()
        if not row:
            return None
        return BatchState.model_validate_json(row[0])

    def set(self, batch_id: str, state: BatchState) -> None:
        """Upsert the snapshot; rows already completed or failed are left as they are."""
        payload = state.model_dump_json()
        with self._lock:
            cur = self.conn.cursor()
            cur.execute(
                (
                    "INSERT INTO batches (batch_id, file_name, status, total_records, uploaded_at, started_at, completed_at, error, state_json, updated_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, datetime('now')) "
                    "ON CONFLICT(batch_id) DO UPDATE SET "
                    "file_name = excluded.file_name, status = excluded.status, total_records = excluded.total_records, "
                    "started_at = excluded.started_at, completed_at = excluded.completed_at, error = excluded.error, "
                    "state_json = excluded.state_json, updated_at = excluded.updated_at "
                    "WHERE batches.status NOT IN ('completed', 'failed')"
                ),
                (
                    batch_id,
                    state.file_name,
                    state.status.value,
                    len(state.entries),
                    _iso(state.uploaded_at),
                    _iso(state.started_at),
                    _iso(state.completed_at),
                    state.error,
                    payload,
                ),
            )
            self.conn.commit()

    def list_ids(self) -> List[str]:
        with self._lock:
            cur = self.conn.cursor()
            cur.execute("SELECT batch_id FROM batches ORDER BY uploaded_at DESC")
            return [r[0] for r in cur.fetchall()]
