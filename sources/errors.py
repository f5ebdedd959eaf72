from __future__ import annotations

from typing import Optional


class SourceError(Exception):
    """Base class for faults raised by a people-data source."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransientSourceError(SourceError):
    """One lookup failed (network, timeout, bad response); other lookups may still succeed."""


class RateLimitedError(TransientSourceError):
    """Request budget exhausted, locally or upstream (HTTP 429)."""

    def __init__(self, message: str, retry_after_seconds: Optional[float] = None, status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code)
        self.retry_after_seconds = retry_after_seconds


class FatalSourceError(SourceError):
    """Every subsequent call will fail the same way (bad key, forbidden, login page)."""
