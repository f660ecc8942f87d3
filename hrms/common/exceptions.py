"""Custom exceptions and the ``{"error": ...}`` JSON error handlers."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → ``{"error": detail}``."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        self.errors = errors
        super().__init__(detail)


class BadRequestException(AppException):
    """400 — missing or malformed input, unknown module/action."""

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=400, detail=detail)


class UnauthorizedException(AppException):
    """401 — missing, invalid or expired credentials."""

    def __init__(self, detail: str = "Unauthorized") -> None:
        super().__init__(status_code=401, detail=detail)


class ForbiddenException(AppException):
    """403 — insufficient permissions."""

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(status_code=403, detail=detail)


class NotFoundException(AppException):
    """404 — entity not found."""

    def __init__(self, entity_type: str, entity_id: Any = None, *, detail: Optional[str] = None) -> None:
        if detail is None:
            detail = (
                f"{entity_type} not found"
                if entity_id is None
                else f"{entity_type} with id '{entity_id}' does not exist."
            )
        super().__init__(status_code=404, detail=detail)


class ValidationException(AppException):
    """400 — business-logic validation failures keyed by field."""

    def __init__(self, errors: dict[str, list[str]], detail: Optional[str] = None) -> None:
        if detail is None:
            detail = "; ".join(msg for msgs in errors.values() for msg in msgs)
        super().__init__(status_code=400, detail=detail, errors=errors)


class ExternalServiceError(AppException):
    """500 — an outbound integration is unconfigured or failed."""

    def __init__(self, service: str, detail: str) -> None:
        self.service = service
        super().__init__(status_code=500, detail=detail)


# ── Body builder ────────────────────────────────────────────────────

def _build_error_body(exc: AppException) -> dict[str, Any]:
    body: dict[str, Any] = {"error": exc.detail}
    if exc.errors:
        body["errors"] = exc.errors
    return body


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=_build_error_body(exc))


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        name = (
            ".".join(str(p) for p in loc[1:])
            if len(loc) > 1
            else str(loc[0]) if loc else "unknown"
        )
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    summary = "; ".join(f"{name}: {msgs[0]}" for name, msgs in field_errors.items())
    return JSONResponse(
        status_code=400,
        content={"error": summary or "Request validation failed.", "errors": field_errors},
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc) or exc.__class__.__name__})


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected_error)
