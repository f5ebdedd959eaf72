"""
Candidate resolution: look a record up in the people-data source and score
the first usable candidate against it.

Strategy order:
1. Lookup by email (exact identifier)
2. Lookup by name + domain taken from the email's host part

Transient faults are recorded and the next strategy is tried. A fatal fault
(bad credentials and the like) is re-raised so the batch can stop.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from models import EnrichmentOutcome, InputRecord, PersonMatch, ResolutionStatus
from ports.source import PeopleSourcePort
from services.mapping import map_person_to_profile, profile_url_for
from services.scoring import MatchScorer
from sources.errors import FatalSourceError, TransientSourceError
from utils.lookup_logger import log_lookup


NO_MATCH_MESSAGE = "No match in external source"


@dataclass
class StrategyAttempt:
    strategy: str
    status: str  # found | not_found | transient | error | fatal
    duration_ms: int
    error: Optional[str] = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _elapsed_ms(started: float) -> int:
    return int((time.time() - started) * 1000)


class CandidateResolver:
    """Resolves one input record into exactly one EnrichmentOutcome."""

    def __init__(
        self,
        source: PeopleSourcePort,
        scorer: Optional[MatchScorer] = None,
        clock: Callable[[], datetime] = _now,
    ):
        self.source = source
        self.scorer = scorer or MatchScorer.from_settings()
        self.clock = clock

    def _strategies(self, record: InputRecord) -> List[Tuple[str, Callable[[], Optional[PersonMatch]]]]:
        strategies: List[Tuple[str, Callable[[], Optional[PersonMatch]]]] = [
            ("email", lambda: self.source.lookup_by_email(record.email)),
        ]
        domain = record.email_domain
        if domain:
            strategies.append(
                ("name_domain", lambda: self.source.lookup_by_name_and_domain(record.name, domain))
            )
        return strategies

    def _trace(self, record: InputRecord, attempt: StrategyAttempt, log_extra: dict) -> None:
        log_lookup(
            caller="services.resolver",
            provider=self.source.source_name,
            operation="people_match",
            strategy=attempt.strategy,
            identifier=record.email,
            duration_ms=attempt.duration_ms,
            status=attempt.status,
            error=attempt.error,
            batch_id=log_extra.get("batch_id") if log_extra.get("batch_id") != "-" else None,
        )

    def resolve(self, record: InputRecord, batch_id: Optional[str] = None) -> EnrichmentOutcome:
        log_extra = {"record_id": record.id, "batch_id": batch_id or "-", "provider": self.source.source_name}
        try:
            return self._resolve(record, log_extra)
        except FatalSourceError:
            raise
        except Exception as exc:
            # Anything unexpected still yields an outcome for this record
            logging.warning(
                f"Resolution failed for {record.id}: {exc}",
                extra={**log_extra, "status": "error", "error": type(exc).__name__},
            )
            return EnrichmentOutcome(
                record=record,
                status=ResolutionStatus.INVALID,
                processed_at=self.clock(),
                error_message=str(exc) or type(exc).__name__,
            )

    def _resolve(self, record: InputRecord, log_extra: dict) -> EnrichmentOutcome:
        attempts: List[StrategyAttempt] = []
        last_error: Optional[str] = None
        person: Optional[PersonMatch] = None
        used_strategy: Optional[str] = None

        for strategy, lookup in self._strategies(record):
            started = time.time()
            try:
                person = lookup()
            except FatalSourceError as exc:
                self._trace(record, StrategyAttempt(strategy, "fatal", _elapsed_ms(started), str(exc)), log_extra)
                logging.error(
                    f"Fatal source fault during {strategy} lookup for {record.id}: {exc}",
                    extra={**log_extra, "step": strategy, "status": "fatal", "error": type(exc).__name__},
                )
                raise
            except TransientSourceError as exc:
                last_error = str(exc)
                attempts.append(StrategyAttempt(strategy, "transient", _elapsed_ms(started), last_error))
                self._trace(record, attempts[-1], log_extra)
                logging.warning(
                    f"{strategy} lookup failed for {record.id}: {exc}",
                    extra={**log_extra, "step": strategy, "status": "transient", "error": type(exc).__name__},
                )
                continue
            except Exception as exc:
                last_error = f"Unexpected error during {strategy} lookup: {exc}"
                attempts.append(StrategyAttempt(strategy, "error", _elapsed_ms(started), last_error))
                self._trace(record, attempts[-1], log_extra)
                logging.warning(
                    last_error,
                    extra={**log_extra, "step": strategy, "status": "error", "error": type(exc).__name__},
                )
                continue

            duration_ms = _elapsed_ms(started)
            attempts.append(StrategyAttempt(strategy, "found" if person is not None else "not_found", duration_ms))
            self._trace(record, attempts[-1], log_extra)
            if person is not None:
                used_strategy = strategy
                logging.info(
                    f"{strategy} lookup found a candidate for {record.id}",
                    extra={**log_extra, "step": strategy, "status": "found", "duration_ms": duration_ms},
                )
                break
            logging.info(
                f"{strategy} lookup returned no data for {record.id}",
                extra={**log_extra, "step": strategy, "status": "not_found", "duration_ms": duration_ms},
            )

        if person is None:
            status = ResolutionStatus.INVALID if last_error else ResolutionStatus.NO_DATA_FOUND
            logging.info(
                f"No candidate for {record.id} after {len(attempts)} strategies",
                extra={**log_extra, "status": status.value},
            )
            return EnrichmentOutcome(
                record=record,
                status=status,
                processed_at=self.clock(),
                error_message=last_error or NO_MATCH_MESSAGE,
            )

        profile = map_person_to_profile(person)
        result = self.scorer.score(record, profile)
        logging.info(
            f"Match result for {record.id}: {result.tier.value} ({result.match_count}/4 fields matched)",
            extra={**log_extra, "step": used_strategy, "status": result.tier.value},
        )
        return EnrichmentOutcome(
            record=record,
            status=ResolutionStatus.from_tier(result.tier),
            profile=profile,
            profile_url=profile_url_for(person),
            field_matches=result.matches,
            match_count=result.match_count,
            strategy=used_strategy,
            processed_at=self.clock(),
        )
