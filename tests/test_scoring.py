from __future__ import annotations

import pytest

from models import CandidateProfile, InputRecord, MatchTier, UNKNOWN_COMPANY
from services.scoring import MatchScorer, TierThresholds


def _record(**overrides) -> InputRecord:
    data = {"id": "emp_t_1", "name": "Jane Doe", "email": "jane@x.com", "company": "Acme", "position": "Engineer"}
    data.update(overrides)
    return InputRecord(**data)


def test_all_four_fields_match_is_exact():
    candidate = CandidateProfile(
        verified_name="Jane Doe",
        verified_email="jane@x.com",
        verified_company="Acme Inc.",
        verified_position="Senior Engineer",
    )
    result = MatchScorer().score(_record(), candidate)
    assert result.match_count == 4
    assert result.tier == MatchTier.EXACT


def test_only_email_match_is_invalid():
    candidate = CandidateProfile(
        verified_name="Bob Roe",
        verified_email="jane@x.com",
        verified_company="Zenith",
        verified_position="Accountant",
    )
    result = MatchScorer().score(_record(), candidate)
    assert result.matches.email is True
    assert result.match_count == 1
    assert result.tier == MatchTier.INVALID


def test_three_matches_is_partial():
    candidate = CandidateProfile(
        verified_name="Doe Jane",
        verified_email="jane@x.com",
        verified_company="Acme",
        verified_position="Accountant",
    )
    result = MatchScorer().score(_record(), candidate)
    assert (result.matches.name, result.matches.email, result.matches.company, result.matches.position) == (
        True,
        True,
        True,
        False,
    )
    assert result.tier == MatchTier.PARTIAL


def test_every_field_is_reported_even_when_nothing_matches():
    result = MatchScorer().score(_record(), CandidateProfile())
    assert result.match_count == 0
    assert result.tier == MatchTier.INVALID


@pytest.mark.parametrize(
    "count,tier",
    [(0, MatchTier.INVALID), (1, MatchTier.INVALID), (2, MatchTier.PARTIAL), (3, MatchTier.PARTIAL), (4, MatchTier.EXACT)],
)
def test_default_threshold_mapping(count, tier):
    assert TierThresholds().tier_for(count) == tier


def test_sentinel_company_is_not_matched_by_default():
    record = _record(company=UNKNOWN_COMPANY)
    candidate = CandidateProfile(verified_company="Unknown Company")
    assert MatchScorer().score(record, candidate).matches.company is False
    assert MatchScorer(skip_sentinels=False).score(record, candidate).matches.company is True


def test_thresholds_come_from_settings(monkeypatch):
    monkeypatch.setenv("TIER_EXACT_THRESHOLD", "3")
    monkeypatch.setenv("TIER_PARTIAL_THRESHOLD", "1")
    scorer = MatchScorer.from_settings()
    assert scorer.thresholds == TierThresholds(exact=3, partial=1)
    candidate = CandidateProfile(verified_email="jane@x.com")
    assert scorer.score(_record(), candidate).tier == MatchTier.PARTIAL
