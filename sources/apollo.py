"""
Apollo people-data API client.

Faults are classified at this boundary: authentication problems become
FatalSourceError, everything else that can go wrong with a single request
becomes TransientSourceError. "Not found" is returned as None.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from config.settings import Settings, get_settings
from models import PeopleMatchResponse, PeopleSearchResponse, PersonMatch
from sources.base import ConnectionReport
from sources.errors import FatalSourceError, RateLimitedError, SourceError, TransientSourceError
from sources.registry import register
from utils.rate_limiter import RateLimitExceeded, SlidingWindowRateLimiter


MATCH_ENDPOINT = "/api/v1/people/match"
SEARCH_ENDPOINT = "/api/v1/mixed_people/search"


def _retry_after(response: Any) -> Optional[float]:
    value = response.headers.get("Retry-After") if response.headers else None
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class ApolloPeopleSource:
    source_name = "apollo"
    live = True

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
        limiter: Optional[SlidingWindowRateLimiter] = None,
    ):
        self.settings = settings or get_settings()
        self.api_key = self.settings.apollo_api_key
        if not self.api_key:
            raise ValueError("APOLLO_API_KEY must be set in .env file to use the Apollo source")
        self.base_url = self.settings.apollo_api_url.rstrip("/")
        self.session = session or requests.Session()
        self.limiter = limiter or SlidingWindowRateLimiter(
            max_requests=self.settings.apollo_rate_limit_per_minute,
            window_seconds=60.0,
            block=self.settings.rate_limit_mode == "wait",
        )
        self.api_calls_made = 0

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Cache-Control": "no-cache",
            "Accept": "application/json",
            "X-Api-Key": self.api_key or "",
        }

    def _post(self, endpoint: str, body: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """POST JSON and return the decoded body, or None on HTTP 404."""
        try:
            self.limiter.acquire()
        except RateLimitExceeded as exc:
            raise RateLimitedError(str(exc), retry_after_seconds=exc.retry_after_seconds) from exc

        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.post(
                url,
                json=body,
                headers=self._headers(),
                timeout=self.settings.request_timeout_seconds,
            )
        except requests.exceptions.Timeout as exc:
            raise TransientSourceError(f"Apollo API request timed out: {exc}") from exc
        except requests.exceptions.RequestException as exc:
            raise TransientSourceError(f"Network error: unable to connect to Apollo API ({exc})") from exc
        self.api_calls_made += 1

        status = response.status_code
        content_type = (response.headers.get("Content-Type") or "").lower() if response.headers else ""
        if "text/html" in content_type:
            raise FatalSourceError(
                f"Apollo API returned HTML instead of JSON; check the API key and endpoint (status {status})",
                status_code=status,
            )
        if status == 401:
            raise FatalSourceError("Apollo API authentication failed; check your API key", status_code=status)
        if status == 403:
            raise FatalSourceError("Apollo API access forbidden; check your API key permissions", status_code=status)
        if status == 429:
            raise RateLimitedError(
                "Apollo API rate limit exceeded; wait before making more requests",
                retry_after_seconds=_retry_after(response),
                status_code=status,
            )
        if status == 404:
            return None
        if status < 200 or status >= 300:
            raise TransientSourceError(f"Apollo API error ({status}): {response.text[:300]}", status_code=status)

        try:
            data = response.json()
        except ValueError as exc:
            raise TransientSourceError(f"Apollo API returned a malformed body (status {status})", status_code=status) from exc
        if not isinstance(data, dict):
            raise TransientSourceError(f"Apollo API returned an unexpected body type: {type(data).__name__}")
        return data

    def _match(self, body: Dict[str, Any]) -> Optional[PersonMatch]:
        started = time.time()
        data = self._post(MATCH_ENDPOINT, body)
        logging.debug(
            f"people/match answered in {int((time.time() - started) * 1000)}ms",
            extra={"provider": self.source_name},
        )
        if data is None:
            return None
        try:
            return PeopleMatchResponse.model_validate(data).person
        except ValidationError as exc:
            raise TransientSourceError(
                f"Apollo API response did not match the expected shape: {exc.error_count()} errors"
            ) from exc

    def lookup_by_email(self, email: str) -> Optional[PersonMatch]:
        return self._match({"email": email, "reveal_personal_emails": False})

    def lookup_by_name_and_domain(self, name: str, domain: str) -> Optional[PersonMatch]:
        return self._match({"name": name, "domain": domain, "reveal_personal_emails": False})

    def search_people(
        self,
        per_page: int = 10,
        q: Optional[str] = None,
        person_titles: Optional[List[str]] = None,
        person_locations: Optional[List[str]] = None,
        organization_domains: Optional[List[str]] = None,
    ) -> List[PersonMatch]:
        body: Dict[str, Any] = {"per_page": per_page}
        if q:
            body["q"] = q
        if person_titles:
            body["person_titles"] = person_titles
        if person_locations:
            body["person_locations"] = person_locations
        if organization_domains:
            body["q_organization_domains_list"] = organization_domains
        data = self._post(SEARCH_ENDPOINT, body)
        if data is None:
            return []
        try:
            return PeopleSearchResponse.model_validate(data).people
        except ValidationError as exc:
            raise TransientSourceError(f"Apollo search response did not match the expected shape: {exc.error_count()} errors") from exc

    def search_people_by_company(self, company_domain: str, titles: Optional[List[str]] = None) -> List[PersonMatch]:
        logging.info(f"Searching people by company domain {company_domain}", extra={"provider": self.source_name})
        return self.search_people(per_page=25, person_titles=titles or None, organization_domains=[company_domain])

    def check_connection(self) -> ConnectionReport:
        try:
            people = self.search_people(per_page=1)
        except SourceError as exc:
            logging.error(
                f"Apollo API connection test failed: {exc}",
                extra={"provider": self.source_name, "error": type(exc).__name__},
            )
            return ConnectionReport(
                success=False,
                message=f"Apollo API connection failed: {exc}",
                mode="live",
                details={"error": type(exc).__name__, "status_code": exc.status_code},
            )
        return ConnectionReport(
            success=True,
            message=f"Apollo API connection successful - found {len(people)} results",
            mode="live",
            details={"results": len(people)},
        )


def _register():
    register(ApolloPeopleSource.source_name, ApolloPeopleSource)


_register()
