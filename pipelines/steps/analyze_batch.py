from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

from config.settings import Settings
from models import BatchState, BatchStateError, RecordState, RunStatus
from pipelines.runner import RunContext
from ports.repos import BatchStorePort
from services.resolver import CandidateResolver
from sources.errors import FatalSourceError


Emit = Callable[[BatchState], None]


@dataclass(frozen=True)
class Pacing:
    group_size: int = 5
    record_delay_seconds: float = 2.0
    group_delay_seconds: float = 1.0

    @classmethod
    def from_settings(cls, settings: Settings, live: bool = True) -> "Pacing":
        if live:
            return cls(settings.batch_group_size, settings.record_delay_seconds, settings.group_delay_seconds)
        return cls(
            settings.batch_group_size,
            settings.offline_record_delay_seconds,
            settings.offline_group_delay_seconds,
        )


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Publisher:
    """Writes a state to the store and hands a fresh snapshot to the observer.

    A batch that reached a terminal state elsewhere is never overwritten; the
    write raises `BatchStateError` so the run stops instead.
    """

    def __init__(self, store: BatchStorePort, emit: Optional[Emit] = None) -> None:
        self.store = store
        self.emit = emit

    def __call__(self, state: BatchState) -> None:
        current = self.store.get(state.batch_id)
        if current is not None and current.status.is_terminal:
            raise BatchStateError(f"Batch {state.batch_id} is already {current.status.value}; write discarded")
        self.store.set(state.batch_id, state)
        if self.emit:
            try:
                self.emit(state.snapshot())
            except Exception as exc:
                logging.warning(
                    f"Progress observer failed: {exc}",
                    extra={"batch_id": state.batch_id, "error": type(exc).__name__},
                )


class BeginAnalysis:
    def __init__(self, store: BatchStorePort, publish: Publisher, resume: bool = False) -> None:
        self.store = store
        self.publish = publish
        self.resume = resume

    def run(self, ctx: RunContext) -> RunContext:
        state = self.store.get(ctx.batch_id)
        if state is None:
            raise KeyError(f"Unknown batch: {ctx.batch_id}")
        if state.status.is_terminal:
            raise BatchStateError(f"Batch {ctx.batch_id} is already {state.status.value}")
        if state.status == RunStatus.ANALYZING:
            if not self.resume:
                raise BatchStateError(f"Batch {ctx.batch_id} is already being analyzed")
            logging.warning(
                f"Batch {ctx.batch_id} was left analyzing; resuming pending records",
                extra={"batch_id": ctx.batch_id, "step": "begin"},
            )
        state.status = RunStatus.ANALYZING
        state.started_at = state.started_at or _now()
        state.stop_requested = False
        state.error = None
        ctx.state = state
        ctx.meta["pending_at_start"] = len(state.pending_indexes())
        logging.info(
            f"Analysis started: {ctx.meta['pending_at_start']}/{len(state.entries)} records pending",
            extra={"batch_id": ctx.batch_id, "step": "begin", "status": state.status.value},
        )
        self.publish(state)
        return ctx


class ResolveRecords:
    """Resolves pending entries in input order, in fixed-size groups with pacing."""

    def __init__(
        self,
        resolver: CandidateResolver,
        publish: Publisher,
        pacing: Pacing,
        stop_event: threading.Event,
        sleep: Optional[Callable[[float], None]] = None,
        on_progress: Optional[Callable[[int, int, str, str], None]] = None,
    ) -> None:
        self.resolver = resolver
        self.publish = publish
        self.pacing = pacing
        self.stop_event = stop_event
        self.sleep = sleep
        self.on_progress = on_progress

    def _pause(self, seconds: float) -> bool:
        """Wait between lookups; returns False when a stop arrives."""
        if self.stop_event.is_set():
            return False
        if seconds > 0:
            if self.sleep is not None:
                self.sleep(seconds)
            else:
                self.stop_event.wait(seconds)
        return not self.stop_event.is_set()

    def _halt(self, state: BatchState, remaining: List[int], reason: str) -> None:
        for idx in remaining:
            entry = state.entries[idx]
            if entry.state == RecordState.PENDING:
                entry.state = RecordState.NOT_PROCESSED
                entry.note = reason

    def run(self, ctx: RunContext) -> RunContext:
        state = ctx.state
        if state is None:
            raise BatchStateError("ResolveRecords requires a loaded batch")
        pending = state.pending_indexes()
        total = len(pending)
        size = max(1, self.pacing.group_size)
        groups = [pending[i:i + size] for i in range(0, total, size)]
        resolved = 0

        for group_no, group in enumerate(groups):
            if group_no > 0 and not self._pause(self.pacing.group_delay_seconds):
                break
            for pos, idx in enumerate(group):
                if self.stop_event.is_set():
                    break
                if (resolved > 0 or pos > 0) and not self._pause(self.pacing.record_delay_seconds):
                    break
                entry = state.entries[idx]
                if self.on_progress:
                    self.on_progress(resolved + 1, total, entry.record.id, entry.record.name)
                try:
                    outcome = self.resolver.resolve(entry.record, batch_id=state.batch_id)
                except FatalSourceError as exc:
                    remaining = pending[pending.index(idx):]
                    self._halt(state, remaining, f"Not processed: {exc}")
                    ctx.meta["fatal_error"] = str(exc)
                    logging.error(
                        f"Fatal source fault on record {resolved + 1}/{total}; {len(remaining)} records not processed",
                        extra={"batch_id": state.batch_id, "record_id": entry.record.id, "step": "resolve", "error": type(exc).__name__},
                    )
                    self.publish(state)
                    ctx.meta["records_resolved"] = resolved
                    return ctx
                entry.outcome = outcome
                entry.state = RecordState.RESOLVED
                entry.note = None
                resolved += 1
                self.publish(state)
            if self.stop_event.is_set():
                break

        if self.stop_event.is_set() and state.pending_indexes():
            state.stop_requested = True
            ctx.meta["stopped"] = True
            logging.info(
                f"Stop requested; {len(state.pending_indexes())} records left pending",
                extra={"batch_id": state.batch_id, "step": "resolve", "status": "stopped"},
            )
        ctx.meta["records_resolved"] = resolved
        return ctx


class FinalizeBatch:
    def __init__(self, publish: Publisher) -> None:
        self.publish = publish

    def run(self, ctx: RunContext) -> RunContext:
        state = ctx.state
        if state is None:
            raise BatchStateError("FinalizeBatch requires a loaded batch")
        fatal = ctx.meta.get("fatal_error")
        if fatal:
            state.status = RunStatus.FAILED
            state.error = f"Analysis failed: {fatal}"
            state.completed_at = _now()
        elif ctx.meta.get("stopped"):
            # Stopped runs keep their pending records and can be started again
            state.status = RunStatus.UPLOADED
        else:
            state.status = RunStatus.COMPLETED
            state.completed_at = _now()
        stats = state.stats()
        logging.info(
            f"Analysis {state.status.value}: exact={stats['exact']} partial={stats['partial']} "
            f"invalid={stats['invalid']} pending={stats['pending']} not_processed={stats['not_processed']}",
            extra={"batch_id": state.batch_id, "step": "finalize", "status": state.status.value},
        )
        self.publish(state)
        return ctx
