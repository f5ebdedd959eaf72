from __future__ import annotations

from pydantic import BaseModel, ConfigDict


UNKNOWN_COMPANY = "Unknown Company"
UNKNOWN_POSITION = "Unknown Position"


class InputRecord(BaseModel):
    """One uploaded employee row: the ground-truth side of every comparison."""

    id: str
    name: str
    email: str
    company: str = UNKNOWN_COMPANY
    position: str = UNKNOWN_POSITION
    contact: str | None = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    @property
    def email_domain(self) -> str | None:
        """Host part of the email, or None when the address has no domain segment."""
        _, sep, domain = self.email.strip().partition("@")
        domain = domain.strip().lower()
        if not sep or not domain:
            return None
        return domain
