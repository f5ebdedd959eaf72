from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from config.settings import Settings, get_settings
from models import (
    CandidateProfile,
    FieldMatches,
    InputRecord,
    MatchResult,
    MatchTier,
    UNKNOWN_COMPANY,
    UNKNOWN_POSITION,
)
from services.matchers import companies_match, emails_match, names_match, positions_match


@dataclass(frozen=True)
class TierThresholds:
    exact: int = 4
    partial: int = 2

    def tier_for(self, match_count: int) -> MatchTier:
        if match_count >= self.exact:
            return MatchTier.EXACT
        if match_count >= self.partial:
            return MatchTier.PARTIAL
        return MatchTier.INVALID


class MatchScorer:
    """Evaluates all four field matchers and maps the match count to a tier."""

    def __init__(self, thresholds: Optional[TierThresholds] = None, skip_sentinels: bool = True) -> None:
        self.thresholds = thresholds or TierThresholds()
        self.skip_sentinels = skip_sentinels

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "MatchScorer":
        settings = settings or get_settings()
        return cls(
            TierThresholds(exact=settings.tier_exact_threshold, partial=settings.tier_partial_threshold),
            skip_sentinels=settings.skip_sentinel_matching,
        )

    def score(self, record: InputRecord, candidate: CandidateProfile) -> MatchResult:
        company_ok = companies_match(record.company, candidate.verified_company)
        position_ok = positions_match(record.position, candidate.verified_position)
        # Upload defaults can never legitimately equal an external value
        if self.skip_sentinels:
            if record.company == UNKNOWN_COMPANY:
                company_ok = False
            if record.position == UNKNOWN_POSITION:
                position_ok = False

        matches = FieldMatches(
            name=names_match(record.name, candidate.verified_name),
            email=emails_match(record.email, candidate.verified_email),
            company=company_ok,
            position=position_ok,
        )
        tier = self.thresholds.tier_for(matches.count)
        logging.debug(
            f"Scored {record.id}: {matches.count}/4 fields matched -> {tier.value}",
            extra={"record_id": record.id, "status": tier.value},
        )
        return MatchResult(matches=matches, tier=tier)


def score(record: InputRecord, candidate: CandidateProfile) -> MatchResult:
    return MatchScorer().score(record, candidate)
