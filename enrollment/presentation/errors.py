import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from enrollment.domain.errors import (
    ConflictError,
    DeliveryError,
    DomainError,
    ExpiredError,
    InvalidCodeError,
    InvalidCredentialsError,
    NotFoundError,
    PersistenceError,
    TooManyAttemptsError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific class wins: lookups walk the exception's MRO.
STATUS_BY_ERROR: dict[type[DomainError], int] = {
    ValidationError: 422,
    InvalidCodeError: status.HTTP_400_BAD_REQUEST,
    InvalidCredentialsError: status.HTTP_401_UNAUTHORIZED,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    ExpiredError: status.HTTP_410_GONE,
    TooManyAttemptsError: status.HTTP_429_TOO_MANY_REQUESTS,
    DeliveryError: status.HTTP_502_BAD_GATEWAY,
    PersistenceError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(exc: DomainError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    code = status_for(exc)
    log = logger.warning if code >= 500 else logger.info
    log(
        "request failed",
        extra={
            "path": request.url.path,
            "error": type(exc).__name__,
            "status_code": code,
        },
    )
    headers = {"WWW-Authenticate": "Bearer"} if code == 401 else None
    return JSONResponse(status_code=code, content={"detail": exc.message}, headers=headers)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
