"""Typed failures raised by the service layer.

Routers let these propagate; ``install_error_handlers`` renders them with the
same ``{"detail": ...}`` body FastAPI uses for ``HTTPException`` so clients see
one error shape. Raw database messages are logged, never returned.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class MenuHubError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Unexpected error"

    def __init__(self, detail: str | None = None, **context: Any) -> None:
        self.detail = detail or self.default_detail
        self.context = context
        super().__init__(self.detail)


class ValidationError(MenuHubError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid data"

    def __init__(self, detail: str | None = None, *, problems: Iterable[str] | None = None, **context: Any) -> None:
        self.problems = list(problems or [])
        if detail is None and self.problems:
            detail = "; ".join(self.problems)
        super().__init__(detail, **context)


class InvalidPricingState(ValidationError):
    default_detail = "Invalid pricing state"


class Unauthenticated(MenuHubError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Not authenticated"


class NoTenantContext(MenuHubError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "No restaurant context for this request"


class NotFound(MenuHubError):
    """Missing row for the current tenant.

    Rows owned by another tenant raise this same error with the same message.
    """

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"

    def __init__(self, entity: str, entity_id: Any = None, **context: Any) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found", entity_id=entity_id, **context)


class ConflictError(MenuHubError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class StorageFailure(MenuHubError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Storage is temporarily unavailable, please retry"


class UploadFailed(StorageFailure):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Upload failed, please retry"


def _error_body(exc: MenuHubError) -> dict[str, Any]:
    body: dict[str, Any] = {"detail": exc.detail}
    if isinstance(exc, ValidationError) and exc.problems:
        body["problems"] = exc.problems
    if isinstance(exc, ConflictError) and exc.context:
        body.update({key: value for key, value in exc.context.items() if key != "detail"})
    return body


async def _handle_menuhub_error(request: Request, exc: MenuHubError) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request failed error=%s detail=%s context=%s",
        type(exc).__name__,
        exc.detail,
        exc.context,
        extra={"endpoint": request.url.path, "method": request.method, "status_code": exc.status_code},
    )
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc))


async def _handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(
        "database failure on %s %s",
        request.method,
        request.url.path,
        extra={"endpoint": request.url.path, "method": request.method},
    )
    failure = StorageFailure()
    return JSONResponse(status_code=failure.status_code, content={"detail": failure.detail})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MenuHubError, _handle_menuhub_error)
    app.add_exception_handler(SQLAlchemyError, _handle_database_error)
