from __future__ import annotations

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from termify.documents.errors import SegmentationServiceError, TermifyError

logger = logging.getLogger(__name__)


class ErrorBody(BaseModel):
    """Every failure is answered with a single human-readable message."""

    error: str


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorBody(error=message).model_dump())


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    detail_parts = []
    for err in exc.errors():
        loc = " -> ".join(str(l) for l in err["loc"] if l != "body")
        msg = err["msg"].removeprefix("Value error, ")
        detail_parts.append(f"{loc}: {msg}" if loc else msg)
    return _error_response(400, "; ".join(detail_parts) or "Invalid request")


async def termify_exception_handler(request: Request, exc: TermifyError) -> JSONResponse:
    if isinstance(exc, SegmentationServiceError):
        logger.error(
            "Upstream segmentation failure %s on %s: %.500s",
            exc.upstream_status,
            request.url.path,
            exc.upstream_body,
        )
    elif exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    else:
        logger.info("Rejected request on %s: %s", request.url.path, exc.message)
    return _error_response(exc.status_code, exc.message)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Error in %s", request.url.path)
    return _error_response(500, "Unknown error occurred")
