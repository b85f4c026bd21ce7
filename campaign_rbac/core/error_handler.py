"""
Exception handlers translating RBAC errors into HTTP responses

StoreUnavailable -> 503, MalformedIdentifier -> 400,
EntityNotFound -> 404, DuplicateEntity -> 409.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
import structlog

from campaign_rbac.core.exceptions import (
    DuplicateEntity,
    EntityNotFound,
    MalformedIdentifier,
    RBACError,
    StoreUnavailable,
)
from campaign_rbac.schemas.base import ErrorResponse

logger = structlog.get_logger()

STATUS_BY_ERROR = {
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    MalformedIdentifier: status.HTTP_400_BAD_REQUEST,
    EntityNotFound: status.HTTP_404_NOT_FOUND,
    DuplicateEntity: status.HTTP_409_CONFLICT,
}


def status_for(exc: RBACError) -> int:
    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def rbac_exception_handler(request: Request, exc: RBACError) -> JSONResponse:
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "RBAC error",
        path=request.url.path,
        method=request.method,
        code=exc.code,
        error=exc.message,
    )

    headers = {"Retry-After": "5"} if isinstance(exc, StoreUnavailable) else None
    body = ErrorResponse(error=exc.message, code=exc.code)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the RBAC error handlers on an application"""
    app.add_exception_handler(RBACError, rbac_exception_handler)
