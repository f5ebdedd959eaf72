from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CandidateProfile(BaseModel):
    """External source's view of a person, built fresh per lookup."""

    verified_name: str = ""
    verified_email: str = ""
    verified_company: str = ""
    verified_position: str = ""
    linkedin_verified: bool = False
    photo_url: str | None = None
    headline: str | None = None
    location: str | None = None
    phone_numbers: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)
