from __future__ import annotations

import csv
import io
from typing import Iterable, List, Optional

from models import BatchState, EnrichmentOutcome, MatchTier


CSV_HEADERS = [
    "Name",
    "Email",
    "Company",
    "Position",
    "Contact",
    "Status",
    "LinkedIn URL",
    "Name in API",
    "Email in API",
    "Company in API",
    "Position in API",
    "LinkedIn Verified",
    "Processed At",
]

# Lets Excel detect UTF-8 when opening the file directly
BOM = "\ufeff"


def outcome_to_row(outcome: EnrichmentOutcome) -> List[str]:
    record = outcome.record
    profile = outcome.profile
    return [
        record.name or "",
        record.email or "",
        record.company or "",
        record.position or "",
        record.contact or "",
        outcome.tier.value,
        outcome.profile_url or "",
        profile.verified_name if profile else "",
        profile.verified_email if profile else "",
        profile.verified_company if profile else "",
        profile.verified_position if profile else "",
        "Yes" if profile and profile.linkedin_verified else "No",
        outcome.processed_at.isoformat(),
    ]


def outcomes_to_rows(outcomes: Iterable[EnrichmentOutcome]) -> List[List[str]]:
    return [outcome_to_row(o) for o in outcomes]


def to_csv(outcomes: Iterable[EnrichmentOutcome]) -> str:
    """Every cell quoted, rows joined with newlines, BOM-prefixed."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    writer.writerows(outcomes_to_rows(outcomes))
    return BOM + buffer.getvalue().rstrip("\n")


def select_outcomes(state: BatchState, tier_filter: Optional[str] = None) -> List[EnrichmentOutcome]:
    """Resolved outcomes in input order, optionally limited to one tier ("all" keeps every tier)."""
    outcomes = state.outcomes
    if tier_filter is None or tier_filter == "all":
        return outcomes
    tier = MatchTier(tier_filter)
    return [o for o in outcomes if o.tier == tier]
