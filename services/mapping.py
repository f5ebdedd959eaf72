from __future__ import annotations

from typing import List, Optional

from models import CandidateProfile, PersonMatch
from services.domain_utils import normalize_linkedin_profile_url


def _verified_name(person: PersonMatch) -> str:
    if person.name and person.name.strip():
        return person.name.strip()
    parts = [p.strip() for p in (person.first_name, person.last_name) if p and p.strip()]
    return " ".join(parts)


def _location(person: PersonMatch) -> Optional[str]:
    parts = [p.strip() for p in (person.city, person.state, person.country) if p and p.strip()]
    return ", ".join(parts) if parts else None


def _phone_numbers(person: PersonMatch) -> List[str]:
    return [p.raw_number for p in (person.phone_numbers or []) if p.raw_number]


def map_person_to_profile(person: PersonMatch) -> CandidateProfile:
    """Map a raw people-data API person to the candidate shape the scorer compares."""
    return CandidateProfile(
        verified_name=_verified_name(person),
        verified_email=person.email or "",
        verified_company=(person.organization.name if person.organization else None) or "",
        verified_position=person.title or "",
        linkedin_verified=bool(person.linkedin_url),
        photo_url=person.photo_url or None,
        headline=person.headline or None,
        location=_location(person),
        phone_numbers=_phone_numbers(person),
    )


def profile_url_for(person: PersonMatch) -> Optional[str]:
    if not person.linkedin_url:
        return None
    return normalize_linkedin_profile_url(person.linkedin_url) or person.linkedin_url
