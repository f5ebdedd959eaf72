"""
Deterministic stand-in for the people-data API, used when no API key is set.

The source is seeded with the uploaded records and answers lookups with an
exact copy, a varied copy or nothing, chosen by a stable hash of the record's
own fields so repeated runs over the same input give the same results.
"""

from __future__ import annotations

import hashlib
import logging
import re
from typing import Dict, Iterable, Optional, Tuple

from models import InputRecord, PersonMatch
from models.person_match import Organization, PhoneNumber
from services.normalization import normalize
from sources.base import ConnectionReport
from sources.registry import register


COMPANY_SUFFIXES = ["Inc.", "Corp.", "LLC", "Ltd.", "Technologies", "Solutions"]
POSITION_PREFIXES = ["Senior", "Lead", "Principal", "Staff", "Junior"]

SCENARIO_EXACT = 0
SCENARIO_VARIED = 1
SCENARIO_NOT_FOUND = 2


def stable_hash(record: InputRecord) -> int:
    key = f"{record.email}|{record.name}|{record.company}"
    return int(hashlib.sha256(key.encode("utf-8")).hexdigest()[:12], 16)


def scenario_for(record: InputRecord) -> int:
    return stable_hash(record) % 3


def vary_name(name: str, h: int) -> str:
    parts = name.split()
    variations = [
        name,
        " ".join(reversed(parts)),
        name.title(),
        f"{parts[0]} {parts[1][:1]}." if len(parts) > 1 else name,
    ]
    return variations[h % len(variations)]


def vary_company(company: str, h: int) -> str:
    variations = [
        company,
        f"{company} {COMPANY_SUFFIXES[h % len(COMPANY_SUFFIXES)]}",
        re.sub(r"\b(Inc|Corp|LLC|Ltd)\b\.?", "", company, flags=re.IGNORECASE).strip() or company,
        f"The {company}",
    ]
    return variations[h % len(variations)]


def vary_position(position: str, h: int) -> str:
    variations = [
        position,
        f"{POSITION_PREFIXES[h % len(POSITION_PREFIXES)]} {position}",
        re.sub(r"\b(Senior|Lead|Principal|Staff|Junior)\b", "", position, flags=re.IGNORECASE).strip() or position,
        f"{position} Manager",
    ]
    return " ".join(variations[h % len(variations)].split())


def _profile_slug(name: str, h: int) -> str:
    return f"https://linkedin.com/in/{'-'.join(name.lower().split())}-{h % 1000}"


def build_person(record: InputRecord) -> Optional[PersonMatch]:
    """Stand-in API answer for one record, or None for the not-found scenario."""
    h = stable_hash(record)
    scenario = h % 3
    if scenario == SCENARIO_NOT_FOUND:
        return None

    phone = PhoneNumber(raw_number=f"+1-555-{h % 10000:04d}")
    if scenario == SCENARIO_EXACT:
        return PersonMatch(
            id=f"mock-{h % 1000000}",
            name=record.name,
            email=record.email,
            title=record.position,
            organization=Organization(name=record.company, primary_domain=record.email_domain),
            linkedin_url=_profile_slug(record.name, h),
            photo_url=f"https://images.example.com/photo-{1500000000 + h % 100000000}.jpg",
            headline=f"{record.position} at {record.company}",
            city="New York",
            state="NY",
            phone_numbers=[phone],
        )

    company = vary_company(record.company, h)
    with_link = h % 2 == 0
    return PersonMatch(
        id=f"mock-{h % 1000000}",
        name=vary_name(record.name, h),
        email=record.email,
        title=vary_position(record.position, h),
        organization=Organization(name=company, primary_domain=record.email_domain),
        linkedin_url=_profile_slug(record.name, h) if with_link else None,
        photo_url=f"https://images.example.com/photo-{1500000000 + h % 100000000}.jpg",
        headline=f"Professional at {company}",
        city="San Francisco",
        state="CA",
        phone_numbers=[phone] if with_link else [],
    )


class DeterministicPeopleSource:
    source_name = "mock"
    live = False

    def __init__(self, records: Optional[Iterable[InputRecord]] = None):
        self._by_email: Dict[str, InputRecord] = {}
        self._by_name_domain: Dict[Tuple[str, str], InputRecord] = {}
        if records:
            self.seed(records)

    def seed(self, records: Iterable[InputRecord]) -> None:
        """Make records discoverable; lookups for unseeded people return None."""
        for record in records:
            self._by_email[record.email.strip().lower()] = record
            domain = record.email_domain
            if domain:
                self._by_name_domain[(normalize(record.name), domain)] = record

    def lookup_by_email(self, email: str) -> Optional[PersonMatch]:
        record = self._by_email.get(email.strip().lower())
        if record is None:
            return None
        return build_person(record)

    def lookup_by_name_and_domain(self, name: str, domain: str) -> Optional[PersonMatch]:
        record = self._by_name_domain.get((normalize(name), domain.strip().lower()))
        if record is None:
            return None
        return build_person(record)

    def check_connection(self) -> ConnectionReport:
        logging.warning("No Apollo API key configured - using deterministic mock data", extra={"provider": self.source_name})
        return ConnectionReport(
            success=False,
            message="No Apollo API key configured - using mock data. Add APOLLO_API_KEY to .env for real results.",
            mode="mock",
            details={"reason": "no_api_key"},
        )


def _register():
    register(DeterministicPeopleSource.source_name, DeterministicPeopleSource)


_register()
