import logging

from fastapi import APIRouter, HTTPException

from app.dependencies import EngineDep, SettingsDep
from app.exceptions.custom import InvalidSearchError
from app.mappers.locality import zip_to_state
from app.mappers.phone import digits_only
from app.schemas.search import (
    DetailRequest,
    DetailResponse,
    NameQuery,
    PhoneSearchRequest,
    SearchRequest,
    SearchResponse,
    SourcesResponse,
    ZipLookupResponse,
)
from app.services.engine import PhoneSource

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@router.get("/sources", response_model=SourcesResponse)
async def list_sources(engine: EngineDep) -> SourcesResponse:
    return SourcesResponse(
        name_sources=engine.list_sources(),
        phone_sources=engine.list_phone_sources(),
    )


@router.post("/search", response_model=SearchResponse)
async def search_people(
    request: SearchRequest,
    engine: EngineDep,
    settings: SettingsDep,
) -> SearchResponse:
    if not request.first_name.strip():
        raise InvalidSearchError("first_name is required", field="first_name")
    if not request.last_name.strip():
        raise InvalidSearchError("last_name is required", field="last_name")

    state = request.state
    if request.zip and not state:
        state = zip_to_state(request.zip) or None
        logger.info("Resolved ZIP %s to state %s", request.zip, state)

    query = NameQuery(
        first_name=request.first_name.strip(),
        last_name=request.last_name.strip(),
        city=request.city,
        state=state,
        zip=request.zip,
    )
    sources = None if request.search_all else [request.source or settings.default_source]
    outcome = await engine.search(sources, query)
    return SearchResponse(
        profiles=outcome.profiles,
        count=len(outcome.profiles),
        scraper_runs=outcome.runs,
        available_sources=engine.list_sources(),
    )


@router.post("/search/phone", response_model=SearchResponse)
async def search_phone(request: PhoneSearchRequest, engine: EngineDep) -> SearchResponse:
    if not digits_only(request.phone):
        raise InvalidSearchError("phone must contain digits", field="phone")

    sources = None if request.search_all else [request.source or PhoneSource.numlookup]
    outcome = await engine.search_phone(sources, request.phone)
    return SearchResponse(
        profiles=outcome.profiles,
        count=len(outcome.profiles),
        scraper_runs=outcome.runs,
        available_sources=engine.list_phone_sources(),
    )


@router.post("/details", response_model=DetailResponse)
async def profile_details(request: DetailRequest, engine: EngineDep) -> DetailResponse:
    if not request.url.strip():
        raise InvalidSearchError("url is required", field="url")
    profile = await engine.scrape_details(request.source, request.url)
    return DetailResponse(profile=profile)


@router.get("/zip/{zip_code}", response_model=ZipLookupResponse)
async def lookup_zip(zip_code: str) -> ZipLookupResponse:
    state = zip_to_state(zip_code)
    if not state:
        raise HTTPException(status_code=404, detail="Unknown ZIP code")
    return ZipLookupResponse(zip_code=zip_code, state_name=state)
