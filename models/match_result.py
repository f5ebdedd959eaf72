from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class MatchTier(str, Enum):
    EXACT = "exact"
    PARTIAL = "partial"
    INVALID = "invalid"


class FieldMatches(BaseModel):
    """Per-field agreement between an input record and a candidate profile."""

    name: bool = False
    email: bool = False
    company: bool = False
    position: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def count(self) -> int:
        return sum((self.name, self.email, self.company, self.position))


class MatchResult(BaseModel):
    matches: FieldMatches
    tier: MatchTier

    model_config = ConfigDict(frozen=True)

    @property
    def match_count(self) -> int:
        return self.matches.count
