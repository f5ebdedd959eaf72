from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict

from .candidate_profile import CandidateProfile
from .input_record import InputRecord
from .match_result import FieldMatches, MatchTier


Strategy = Literal["email", "name_domain"]


class ResolutionStatus(str, Enum):
    EXACT = "exact"
    PARTIAL = "partial"
    INVALID = "invalid"
    NO_DATA_FOUND = "no_data_found"

    @property
    def tier(self) -> MatchTier:
        # No data found is reported externally as invalid
        if self is ResolutionStatus.NO_DATA_FOUND:
            return MatchTier.INVALID
        return MatchTier(self.value)

    @classmethod
    def from_tier(cls, tier: MatchTier) -> "ResolutionStatus":
        return cls(tier.value)


class EnrichmentOutcome(BaseModel):
    """Result of resolving one input record during one analysis run."""

    record: InputRecord
    status: ResolutionStatus
    profile: CandidateProfile | None = None
    profile_url: str | None = None
    field_matches: FieldMatches | None = None
    match_count: int = 0
    strategy: Strategy | None = None
    processed_at: datetime
    error_message: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def tier(self) -> MatchTier:
        return self.status.tier
