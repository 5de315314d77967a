from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel

from app.schemas.profile import UnifiedProfile


class NameQuery(BaseModel):
    first_name: str
    last_name: str
    city: str | None = None
    state: str | None = None  # full name or two-letter abbreviation
    zip: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class RunStatus(StrEnum):
    success = "success"
    no_results = "no_results"
    failed = "failed"


class ScraperRunResult(BaseModel):
    source: str
    status: RunStatus
    profiles_found: int | None = None
    duration_ms: int | None = None
    error: str | None = None


class SearchOutcome(BaseModel):
    profiles: list[UnifiedProfile] = []
    runs: list[ScraperRunResult] = []


class SearchRequest(BaseModel):
    first_name: str
    last_name: str
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    source: str | None = None
    search_all: bool = False


class PhoneSearchRequest(BaseModel):
    phone: str
    source: str | None = None
    search_all: bool = False


class DetailRequest(BaseModel):
    source: str
    url: str


class SearchResponse(BaseModel):
    profiles: list[UnifiedProfile]
    count: int
    scraper_runs: list[ScraperRunResult] = []
    available_sources: list[str] = []


class DetailResponse(BaseModel):
    profile: UnifiedProfile | None = None


class SourcesResponse(BaseModel):
    name_sources: list[str]
    phone_sources: list[str]


class ZipLookupResponse(BaseModel):
    zip_code: str
    state_name: str
