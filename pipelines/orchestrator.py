"""
Batch orchestration: drives the candidate resolver over an uploaded batch.

The orchestrator is the only writer of a batch while it runs. Every change is
published to the store as a fresh snapshot so pollers never see a partially
written outcome.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from models import BatchState, BatchStateError, EnrichmentOutcome, RunStatus
from pipelines.runner import Pipeline, RunContext
from pipelines.steps.analyze_batch import BeginAnalysis, Emit, FinalizeBatch, Pacing, Publisher, ResolveRecords
from ports.repos import BatchStorePort
from services.export import select_outcomes
from services.resolver import CandidateResolver


class BatchOrchestrator:
    def __init__(
        self,
        store: BatchStorePort,
        resolver: CandidateResolver,
        pacing: Optional[Pacing] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.store = store
        self.resolver = resolver
        self.pacing = pacing or Pacing()
        self.sleep = sleep
        self._lock = threading.Lock()
        self._stop_events: Dict[str, threading.Event] = {}
        self._threads: Dict[str, threading.Thread] = {}

    def get_batch_state(self, batch_id: str) -> BatchState:
        state = self.store.get(batch_id)
        if state is None:
            raise KeyError(f"Unknown batch: {batch_id}")
        return state

    def is_running(self, batch_id: str) -> bool:
        with self._lock:
            return batch_id in self._stop_events

    def _claim(self, batch_id: str, resume: bool = False) -> Optional[threading.Event]:
        """Register a run for the batch; None when one is already active.

        A stored `analyzing` status may belong to another process sharing the
        store, so it is only taken over when the caller asks to resume.
        """
        with self._lock:
            if batch_id in self._stop_events:
                return None
            state = self.get_batch_state(batch_id)
            if state.status.is_terminal:
                raise BatchStateError(
                    f"Batch {batch_id} is {state.status.value}; finished batches cannot be analyzed again"
                )
            if state.status == RunStatus.ANALYZING and not resume:
                return None
            event = threading.Event()
            self._stop_events[batch_id] = event
            return event

    def _release(self, batch_id: str) -> None:
        with self._lock:
            self._stop_events.pop(batch_id, None)
            self._threads.pop(batch_id, None)

    def _mark_failed(self, batch_id: str, message: str) -> None:
        state = self.store.get(batch_id)
        if state is None or state.status.is_terminal:
            return
        state.status = RunStatus.FAILED
        state.error = message
        state.completed_at = datetime.now(timezone.utc)
        self.store.set(batch_id, state)

    def _execute(
        self,
        batch_id: str,
        stop_event: threading.Event,
        emit: Optional[Emit],
        on_progress: Optional[Callable[[int, int, str, str], None]],
        resume: bool = False,
    ) -> BatchState:
        publish = Publisher(self.store, emit)
        pipeline = Pipeline([
            BeginAnalysis(self.store, publish, resume=resume),
            ResolveRecords(
                self.resolver,
                publish,
                self.pacing,
                stop_event,
                sleep=self.sleep,
                on_progress=on_progress,
            ),
            FinalizeBatch(publish),
        ])
        try:
            ctx = pipeline.run(RunContext(batch_id=batch_id))
        except (KeyError, BatchStateError):
            raise
        except Exception as exc:
            logging.error(
                f"Batch run aborted: {exc}",
                extra={"batch_id": batch_id, "status": RunStatus.FAILED.value, "error": type(exc).__name__},
            )
            self._mark_failed(batch_id, f"Analysis failed: {exc}")
            raise
        finally:
            self._release(batch_id)
        if ctx.state is None:
            return self.get_batch_state(batch_id)
        return ctx.state.snapshot()

    def run(
        self,
        batch_id: str,
        emit: Optional[Emit] = None,
        on_progress: Optional[Callable[[int, int, str, str], None]] = None,
        resume: bool = False,
    ) -> BatchState:
        """Analyze the batch in the calling thread and return the final snapshot.

        `resume=True` takes over a batch left `analyzing` by a run that died.
        """
        stop_event = self._claim(batch_id, resume=resume)
        if stop_event is None:
            raise BatchStateError(f"Batch {batch_id} is already being analyzed")
        return self._execute(batch_id, stop_event, emit, on_progress, resume=resume)

    def start_run(
        self,
        batch_id: str,
        emit: Optional[Emit] = None,
        on_progress: Optional[Callable[[int, int, str, str], None]] = None,
        resume: bool = False,
    ) -> bool:
        """Start a background run; False when the batch is already being analyzed."""
        stop_event = self._claim(batch_id, resume=resume)
        if stop_event is None:
            logging.info(f"Batch {batch_id} is already analyzing; start ignored", extra={"batch_id": batch_id})
            return False

        def _target() -> None:
            try:
                self._execute(batch_id, stop_event, emit, on_progress, resume=resume)
            except Exception as exc:
                # The batch state already carries the failure for pollers
                logging.error(
                    f"Background run for {batch_id} ended with error: {exc}",
                    extra={"batch_id": batch_id, "error": type(exc).__name__},
                )

        thread = threading.Thread(target=_target, name=f"batch-{batch_id}", daemon=True)
        with self._lock:
            self._threads[batch_id] = thread
        thread.start()
        return True

    def request_stop(self, batch_id: str) -> bool:
        """Signal the active run to stop after the current record; False if none is active."""
        with self._lock:
            event = self._stop_events.get(batch_id)
        if event is None:
            return False
        logging.info("Stop requested", extra={"batch_id": batch_id, "status": "stopping"})
        event.set()
        return True

    def wait(self, batch_id: str, timeout: Optional[float] = None) -> BatchState:
        with self._lock:
            thread = self._threads.get(batch_id)
        if thread is not None:
            thread.join(timeout)
        return self.get_batch_state(batch_id)

    def export_outcomes(self, batch_id: str, tier_filter: Optional[str] = None) -> List[EnrichmentOutcome]:
        """Resolved outcomes in input order, optionally limited to one tier."""
        return select_outcomes(self.get_batch_state(batch_id), tier_filter)
