import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from .custom import InvalidSearchError

logger = logging.getLogger(__name__)


async def invalid_search_error_handler(_request: Request, exc: InvalidSearchError) -> JSONResponse:
    logger.warning("Invalid search: %s (field=%s)", exc.message, exc.field)
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "field": exc.field},
    )
