import logging
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from app.config import Settings
from app.exceptions.custom import InvalidSearchError
from app.exceptions.handlers import invalid_search_error_handler
from app.routers.search import router as search_router
from app.services.engine import build_engine
from app.services.fetcher import ProxyFetcher
from app.services.html_parser import make_parser


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        fetcher = ProxyFetcher(client, settings.proxy_urls, settings.user_agent)
        app.state.settings = settings
        app.state.engine = build_engine(fetcher, make_parser(settings.html_parser))

        yield


app = FastAPI(title="People Search", lifespan=lifespan)

app.add_exception_handler(InvalidSearchError, invalid_search_error_handler)

app.include_router(search_router)
