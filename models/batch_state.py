from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from .enrichment_outcome import EnrichmentOutcome
from .input_record import InputRecord
from .match_result import MatchTier


class RecordState(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    NOT_PROCESSED = "not_processed"


class RunStatus(str, Enum):
    UPLOADED = "uploaded"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.FAILED)


class BatchEntry(BaseModel):
    record: InputRecord
    state: RecordState = RecordState.PENDING
    outcome: EnrichmentOutcome | None = None
    # Reason a record was left unprocessed (e.g. run halted by a fatal fault)
    note: str | None = None


class BatchState(BaseModel):
    """One uploaded batch: ordered records with their outcomes and run status.

    Instances handed out by a store are snapshots; the orchestrator is the only
    writer and publishes a fresh copy after every change.
    """

    batch_id: str
    file_name: str | None = None
    entries: list[BatchEntry] = Field(default_factory=list)
    status: RunStatus = RunStatus.UPLOADED
    uploaded_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error: str | None = None
    stop_requested: bool = False

    @property
    def outcomes(self) -> list[EnrichmentOutcome]:
        return [e.outcome for e in self.entries if e.outcome is not None]

    def pending_indexes(self) -> list[int]:
        return [i for i, e in enumerate(self.entries) if e.state == RecordState.PENDING]

    def stats(self) -> dict[str, int]:
        counts = {
            "total": len(self.entries),
            "processed": 0,
            "pending": 0,
            "exact": 0,
            "partial": 0,
            "invalid": 0,
            "not_processed": 0,
        }
        for entry in self.entries:
            if entry.state == RecordState.PENDING:
                counts["pending"] += 1
            elif entry.state == RecordState.NOT_PROCESSED:
                counts["not_processed"] += 1
            elif entry.outcome is not None:
                counts["processed"] += 1
                counts[entry.outcome.tier.value] += 1
        return counts

    @property
    def progress(self) -> int:
        """Percentage of records with an outcome; an empty batch counts as done."""
        total = len(self.entries)
        if total == 0:
            return 100
        return round(self.stats()["processed"] / total * 100)

    def snapshot(self) -> "BatchState":
        return self.model_copy(deep=True)


TIER_FILTERS = ("all",) + tuple(t.value for t in MatchTier)


class BatchStateError(RuntimeError):
    """Requested operation is not allowed in the batch's current run status."""
