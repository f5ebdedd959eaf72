"""
Field-level equivalence predicates used to compare an uploaded record with a
candidate profile from the people-data source.
"""

from __future__ import annotations

import re
from typing import Optional

from services.normalization import normalize, tokens


CORPORATE_SUFFIXES = [
    "inc",
    "corp",
    "llc",
    "ltd",
    "company",
    "co",
    "solutions",
    "technologies",
    "tech",
    "systems",
    "group",
    "corporation",
]

SENIORITY_TERMS = [
    "junior",
    "senior",
    "lead",
    "principal",
    "staff",
    "sr",
    "jr",
    "chief",
    "head",
    "director",
    "executive",
]

_SUFFIX_PATTERN = re.compile(r"\b(" + "|".join(CORPORATE_SUFFIXES) + r")\b")
_SENIORITY_PATTERN = re.compile(r"\b(" + "|".join(SENIORITY_TERMS) + r")\b")


def _strip_terms(normalized: str, pattern: re.Pattern) -> str:
    return " ".join(pattern.sub(" ", normalized).split())


def _cores_match(core_a: str, core_b: str) -> bool:
    # A side made only of vocabulary terms has no core left to compare
    if not core_a or not core_b:
        return False
    return core_a == core_b or core_a in core_b or core_b in core_a


def emails_match(a: Optional[str], b: Optional[str]) -> bool:
    if not a or not b:
        return False
    return a.strip().lower() == b.strip().lower()


def names_match(a: Optional[str], b: Optional[str]) -> bool:
    """Exact normalized equality, or first/last tokens equal in either order."""
    if not a or not b:
        return False
    norm_a, norm_b = normalize(a), normalize(b)
    if not norm_a or not norm_b:
        return False
    if norm_a == norm_b:
        return True

    parts_a, parts_b = tokens(norm_a), tokens(norm_b)
    if len(parts_a) < 2 or len(parts_b) < 2:
        return False
    first_a, last_a = parts_a[0], parts_a[-1]
    first_b, last_b = parts_b[0], parts_b[-1]
    return (first_a == first_b and last_a == last_b) or (first_a == last_b and last_a == first_b)


def companies_match(a: Optional[str], b: Optional[str]) -> bool:
    """Equal after dropping corporate suffixes, or one core contains the other."""
    if not a or not b:
        return False
    norm_a, norm_b = normalize(a), normalize(b)
    if not norm_a or not norm_b:
        return False
    if norm_a == norm_b:
        return True
    return _cores_match(_strip_terms(norm_a, _SUFFIX_PATTERN), _strip_terms(norm_b, _SUFFIX_PATTERN))


def positions_match(a: Optional[str], b: Optional[str]) -> bool:
    """Equal after dropping seniority terms, or one core contains the other."""
    if not a or not b:
        return False
    norm_a, norm_b = normalize(a), normalize(b)
    if not norm_a or not norm_b:
        return False
    if norm_a == norm_b:
        return True
    return _cores_match(
        _strip_terms(norm_a, _SENIORITY_PATTERN), _strip_terms(norm_b, _SENIORITY_PATTERN)
    )
