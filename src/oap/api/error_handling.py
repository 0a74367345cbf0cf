from __future__ import annotations

import logging
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from oap.api.dependencies import RateLimitExceededError
from oap.api.middleware.request_id import get_request_id
from oap.api.security import InvalidStaffCredentialsError, MissingStaffTokenError
from oap.application.use_cases.get_order import OrderNotFoundError
from oap.application.use_cases.place_order import InvalidOrderError, OrderPersistenceError
from oap.application.use_cases.settings import InvalidSettingError
from oap.application.use_cases.update_order_status import (
    InvalidOrderTransitionError,
    OrderConflictError,
)

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "internal server error"


def _error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            },
            "requestId": get_request_id(),
        },
        headers=headers,
    )


def _exception_handler(status_code: int, code: str):
    async def handler(_: Request, exc: Exception) -> JSONResponse:
        details = getattr(exc, "details", None)
        return _error_response(
            status_code=status_code,
            code=code,
            message=str(exc),
            details=details if isinstance(details, dict) else None,
        )

    return handler


async def _rate_limit_handler(_: Request, exc: Exception) -> JSONResponse:
    limit_exc = cast(RateLimitExceededError, exc)
    return _error_response(
        status_code=429,
        code="RATE_LIMIT_EXCEEDED",
        message=str(limit_exc),
        details={"retryAfterSeconds": limit_exc.retry_after_seconds},
        headers={"Retry-After": str(limit_exc.retry_after_seconds)},
    )


async def _persistence_handler(_: Request, exc: Exception) -> JSONResponse:
    # Already logged with context by the use case; the client gets nothing internal.
    return _error_response(status_code=500, code="INTERNAL_ERROR", message=INTERNAL_ERROR_MESSAGE)


async def _unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_exception", exc_info=exc)
    return _error_response(status_code=500, code="INTERNAL_ERROR", message=INTERNAL_ERROR_MESSAGE)


async def _http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    message = str(http_exc.detail) if http_exc.detail else "request failed"
    code = {
        400: "BAD_REQUEST",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
    }.get(http_exc.status_code, "HTTP_ERROR")
    return _error_response(status_code=http_exc.status_code, code=code, message=message)


def _error_path(location: tuple[Any, ...] | list[Any]) -> str:
    parts = list(location)
    if parts and parts[0] in {"body", "query", "path", "header"}:
        parts = parts[1:]
    return ".".join(str(part) for part in parts)


async def _validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    errors = [
        {"path": _error_path(error.get("loc", ())), "message": str(error.get("msg", "invalid"))}
        for error in validation_exc.errors()
    ]
    return _error_response(
        status_code=400,
        code="INVALID_REQUEST",
        message="request validation failed",
        details={"errors": errors},
    )


def register_exception_handlers(app: FastAPI) -> None:
    mappings: list[tuple[type[Exception], int, str]] = [
        (InvalidOrderError, 400, "INVALID_ORDER"),
        (InvalidSettingError, 400, "INVALID_SETTING"),
        (OrderNotFoundError, 404, "ORDER_NOT_FOUND"),
        (InvalidOrderTransitionError, 409, "INVALID_ORDER_TRANSITION"),
        (OrderConflictError, 409, "CONFLICT"),
        (MissingStaffTokenError, 401, "NO_TOKEN"),
        (InvalidStaffCredentialsError, 401, "INVALID_TOKEN"),
    ]

    for exc_cls, status_code, code in mappings:
        app.add_exception_handler(exc_cls, _exception_handler(status_code, code))

    app.add_exception_handler(RateLimitExceededError, _rate_limit_handler)
    app.add_exception_handler(OrderPersistenceError, _persistence_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
