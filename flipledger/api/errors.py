"""Map domain exceptions onto HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..domain.exceptions import (
    AlreadyRegistered,
    AuthenticationFailed,
    InvalidRequest,
    InvariantViolation,
    LedgerError,
    NoCardsAvailable,
    PickLocked,
    RoundRegression,
    UpstreamUnavailable,
    UserNotFound,
)
from .schemas import ErrorResponse

logger = logging.getLogger(__name__)

# first match wins, so subclasses go before their bases
_STATUS_BY_ERROR: tuple[tuple[type[LedgerError], int], ...] = (
    (AuthenticationFailed, status.HTTP_403_FORBIDDEN),
    (UserNotFound, status.HTTP_404_NOT_FOUND),
    (AlreadyRegistered, status.HTTP_409_CONFLICT),
    (PickLocked, status.HTTP_409_CONFLICT),
    (RoundRegression, status.HTTP_409_CONFLICT),
    (InvariantViolation, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (NoCardsAvailable, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (UpstreamUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
    (InvalidRequest, status.HTTP_400_BAD_REQUEST),
)


def status_for(exc: LedgerError) -> int:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc)
    body = ErrorResponse(error=str(exc), code=exc.code, retryable=exc.retryable)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, ledger_error_handler)
