from __future__ import annotations

from typing import Optional, Protocol

from models import PersonMatch


class PeopleSourcePort(Protocol):
    """Black-box people lookup: zero or one candidate per query.

    Returns None when the source has no record; raises sources.errors types for faults.
    """

    source_name: str
    live: bool

    def lookup_by_email(self, email: str) -> Optional[PersonMatch]:
        ...

    def lookup_by_name_and_domain(self, name: str, domain: str) -> Optional[PersonMatch]:
        ...
