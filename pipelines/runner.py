from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from models import BatchState
from utils.logging_setup import init_logging


@dataclass
class RunContext:
    """State handed from step to step during one analysis run of a batch."""

    batch_id: str
    state: Optional[BatchState] = None
    # fatal_error / stopped / records_resolved / pending_at_start
    meta: dict = field(default_factory=dict)


class Step(Protocol):
    def run(self, ctx: RunContext) -> RunContext:
        ...


class Pipeline:
    def __init__(self, steps: List[Step]):
        self.steps = steps

    def run(self, ctx: RunContext) -> RunContext:
        # Make logging idempotent for any direct runner use
        init_logging()
        for step in self.steps:
            name = type(step).__name__
            started = time.time()
            ctx = step.run(ctx)
            logging.debug(
                f"Step {name} finished",
                extra={
                    "batch_id": ctx.batch_id,
                    "step": name,
                    "duration_ms": int((time.time() - started) * 1000),
                },
            )
        return ctx
