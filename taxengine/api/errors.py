# taxengine/api/errors.py
"""Map domain errors onto HTTP responses in the standard envelope."""

from __future__ import annotations

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from taxengine.api.v1.envelope import error
from taxengine.domain.errors import (
    FilingLocked,
    InvalidInput,
    InvalidJurisdiction,
    NotFound,
    RateNotFound,
    RepositoryUnavailable,
    TaxEngineError,
)

logger = logging.getLogger("api.errors")

STATUS_BY_ERROR: dict[type[TaxEngineError], int] = {
    InvalidInput: status.HTTP_400_BAD_REQUEST,
    InvalidJurisdiction: status.HTTP_400_BAD_REQUEST,
    NotFound: status.HTTP_404_NOT_FOUND,
    FilingLocked: status.HTTP_409_CONFLICT,
    # Missing rate configuration is an operator problem; retrying will not help
    RateNotFound: status.HTTP_500_INTERNAL_SERVER_ERROR,
    RepositoryUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(exc: TaxEngineError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_tax_engine_error(request: Request, exc: TaxEngineError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=code,
        content=error(exc.message, errors=[{"code": exc.code}]),
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(TaxEngineError, handle_tax_engine_error)
