from .input_record import InputRecord, UNKNOWN_COMPANY, UNKNOWN_POSITION
from .candidate_profile import CandidateProfile
from .match_result import FieldMatches, MatchResult, MatchTier
from .enrichment_outcome import EnrichmentOutcome, ResolutionStatus
from .batch_state import BatchEntry, BatchState, BatchStateError, RecordState, RunStatus, TIER_FILTERS
from .person_match import PersonMatch, PeopleMatchResponse, PeopleSearchResponse

__all__ = [
    "InputRecord",
    "UNKNOWN_COMPANY",
    "UNKNOWN_POSITION",
    "CandidateProfile",
    "FieldMatches",
    "MatchResult",
    "MatchTier",
    "EnrichmentOutcome",
    "ResolutionStatus",
    "BatchEntry",
    "BatchState",
    "BatchStateError",
    "RecordState",
    "RunStatus",
    "TIER_FILTERS",
    "PersonMatch",
    "PeopleMatchResponse",
    "PeopleSearchResponse",
]
