from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PhoneNumber(BaseModel):
    raw_number: str | None = None

    model_config = ConfigDict(extra="ignore")


class Organization(BaseModel):
    name: str | None = None
    primary_domain: str | None = None
    website_url: str | None = None

    model_config = ConfigDict(extra="ignore")


class PersonMatch(BaseModel):
    """Lenient shape of a person object returned by the people-data API."""

    id: str | None = None
    name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    title: str | None = None
    email: str | None = None
    linkedin_url: str | None = None
    photo_url: str | None = None
    headline: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    organization: Organization | None = None
    phone_numbers: list[PhoneNumber] | None = None

    model_config = ConfigDict(extra="ignore")


class PeopleMatchResponse(BaseModel):
    person: PersonMatch | None = None

    model_config = ConfigDict(extra="ignore")


class PeopleSearchResponse(BaseModel):
    people: list[PersonMatch] = Field(default_factory=list)
    pagination: dict | None = None

    model_config = ConfigDict(extra="ignore")
