from __future__ import annotations

from models import InputRecord, ResolutionStatus
from services.resolver import CandidateResolver
from services.scoring import MatchScorer
from sources.mock import (
    SCENARIO_EXACT,
    SCENARIO_NOT_FOUND,
    DeterministicPeopleSource,
    build_person,
    scenario_for,
    stable_hash,
)


def _records(n: int = 30):
    return [
        InputRecord(
            id=f"emp_m_{i}",
            name=f"Person{i} Sample",
            email=f"person{i}@example{i % 4}.com",
            company=f"Company{i % 5}",
            position="Data Engineer",
        )
        for i in range(1, n + 1)
    ]


def test_hash_and_person_are_stable():
    record = _records(1)[0]
    assert stable_hash(record) == stable_hash(record.model_copy())
    assert build_person(record) == build_person(record)


def test_scenarios_drive_resolution():
    records = _records()
    source = DeterministicPeopleSource(records)
    resolver = CandidateResolver(source, MatchScorer())

    for record in records:
        outcome = resolver.resolve(record)
        scenario = scenario_for(record)
        if scenario == SCENARIO_EXACT:
            assert outcome.status == ResolutionStatus.EXACT
            assert outcome.match_count == 4
        elif scenario == SCENARIO_NOT_FOUND:
            assert outcome.status == ResolutionStatus.NO_DATA_FOUND
        else:
            assert outcome.profile is not None
            assert outcome.field_matches.email is True


def test_repeated_runs_agree():
    records = _records()
    first = [CandidateResolver(DeterministicPeopleSource(records), MatchScorer()).resolve(r).status for r in records]
    second = [CandidateResolver(DeterministicPeopleSource(records), MatchScorer()).resolve(r).status for r in records]
    assert first == second


def test_unseeded_lookups_return_nothing():
    source = DeterministicPeopleSource()
    assert source.lookup_by_email("nobody@example.com") is None
    assert source.lookup_by_name_and_domain("No Body", "example.com") is None


def test_name_and_domain_lookup_uses_normalized_name():
    record = _records(1)[0]
    source = DeterministicPeopleSource([record])
    expected = build_person(record)
    assert source.lookup_by_name_and_domain("  person1   SAMPLE ", "Example1.com") == expected


def test_connection_report_is_mock_mode():
    report = DeterministicPeopleSource().check_connection()
    assert report.mode == "mock"
    assert report.success is False
