from __future__ import annotations

from datetime import datetime, timezone

import pytest

from models import InputRecord, MatchTier, PersonMatch, ResolutionStatus
from models.person_match import Organization, PhoneNumber
from services.resolver import NO_MATCH_MESSAGE, CandidateResolver
from services.scoring import MatchScorer
from sources.errors import FatalSourceError, RateLimitedError, TransientSourceError


FIXED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class ScriptedSource:
    """Answers each strategy from a fixed value; exceptions are raised."""

    source_name = "scripted"
    live = False

    def __init__(self, by_email=None, by_name_domain=None):
        self.by_email = by_email
        self.by_name_domain = by_name_domain
        self.calls = []

    def _answer(self, value):
        if isinstance(value, Exception):
            raise value
        return value

    def lookup_by_email(self, email):
        self.calls.append(("email", email))
        return self._answer(self.by_email)

    def lookup_by_name_and_domain(self, name, domain):
        self.calls.append(("name_domain", name, domain))
        return self._answer(self.by_name_domain)


def _record(email: str = "jane@x.com") -> InputRecord:
    return InputRecord(id="emp_b_1", name="Jane Doe", email=email, company="Acme", position="Engineer")


def _jane() -> PersonMatch:
    return PersonMatch(
        name="Jane Doe",
        email="jane@x.com",
        title="Senior Engineer",
        organization=Organization(name="Acme Inc."),
        linkedin_url="https://www.linkedin.com/in/jane-doe/",
        city="Austin",
        state="TX",
        country="United States",
        phone_numbers=[PhoneNumber(raw_number="+1 555 0100"), PhoneNumber(raw_number=None)],
    )


def _resolver(source) -> CandidateResolver:
    return CandidateResolver(source, MatchScorer(), clock=lambda: FIXED)


def test_email_strategy_wins_without_fallback():
    source = ScriptedSource(by_email=_jane(), by_name_domain=AssertionError("must not be called"))
    outcome = _resolver(source).resolve(_record())

    assert source.calls == [("email", "jane@x.com")]
    assert outcome.status == ResolutionStatus.EXACT
    assert outcome.strategy == "email"
    assert outcome.match_count == 4
    assert outcome.profile_url == "https://linkedin.com/in/jane-doe"
    assert outcome.profile.location == "Austin, TX, United States"
    assert outcome.profile.phone_numbers == ["+1 555 0100"]
    assert outcome.profile.linkedin_verified is True
    assert outcome.processed_at == FIXED
    assert outcome.error_message is None


def test_falls_back_to_name_and_email_domain():
    source = ScriptedSource(by_email=None, by_name_domain=_jane())
    outcome = _resolver(source).resolve(_record(email="Jane@X.com"))

    assert source.calls == [("email", "Jane@X.com"), ("name_domain", "Jane Doe", "x.com")]
    assert outcome.strategy == "name_domain"
    assert outcome.tier == MatchTier.EXACT


def test_email_without_domain_only_tries_email():
    source = ScriptedSource(by_email=None, by_name_domain=_jane())
    outcome = _resolver(source).resolve(_record(email="jane@"))

    assert source.calls == [("email", "jane@")]
    assert outcome.status == ResolutionStatus.NO_DATA_FOUND


def test_nothing_found_is_no_data_reported_as_invalid():
    outcome = _resolver(ScriptedSource()).resolve(_record())

    assert outcome.status == ResolutionStatus.NO_DATA_FOUND
    assert outcome.tier == MatchTier.INVALID
    assert outcome.error_message == NO_MATCH_MESSAGE
    assert outcome.profile is None
    assert outcome.match_count == 0


def test_transient_fault_moves_on_to_next_strategy():
    source = ScriptedSource(by_email=RateLimitedError("slow down", retry_after_seconds=3), by_name_domain=_jane())
    outcome = _resolver(source).resolve(_record())

    assert outcome.strategy == "name_domain"
    assert outcome.status == ResolutionStatus.EXACT


def test_exhausted_strategies_keep_last_transient_message():
    source = ScriptedSource(
        by_email=TransientSourceError("Network error"),
        by_name_domain=TransientSourceError("Apollo API error (502)"),
    )
    outcome = _resolver(source).resolve(_record())

    assert outcome.status == ResolutionStatus.INVALID
    assert outcome.error_message == "Apollo API error (502)"


def test_fatal_fault_propagates_immediately():
    source = ScriptedSource(by_email=FatalSourceError("bad key", status_code=401), by_name_domain=_jane())
    with pytest.raises(FatalSourceError):
        _resolver(source).resolve(_record())
    assert source.calls == [("email", "jane@x.com")]


def test_unexpected_lookup_error_is_absorbed():
    source = ScriptedSource(by_email=KeyError("boom"), by_name_domain=None)
    outcome = _resolver(source).resolve(_record())

    assert outcome.status == ResolutionStatus.INVALID
    assert "Unexpected error during email lookup" in outcome.error_message


def test_candidate_name_built_from_first_and_last():
    person = PersonMatch(first_name="Jane", last_name="Doe", email="jane@x.com")
    outcome = _resolver(ScriptedSource(by_email=person)).resolve(_record())

    assert outcome.profile.verified_name == "Jane Doe"
    assert outcome.field_matches.name is True
    assert outcome.field_matches.company is False
    assert outcome.status == ResolutionStatus.PARTIAL
    assert outcome.profile_url is None
