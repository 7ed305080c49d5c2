"""Global error handlers. Every failure becomes a JSON ``{"detail": ...}`` body."""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from questlog.errors import BackendError, QuestlogError, ValidationError

logger = structlog.get_logger()


def _error_response(status_code: int, detail: Any, **extra: Any) -> JSONResponse:  # noqa: ANN401
    return JSONResponse(status_code=status_code, content={"detail": detail, **extra})


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(QuestlogError)
    async def questlog_error_handler(request: Request, exc: QuestlogError) -> JSONResponse:
        """Map each failure kind to its status code."""
        if isinstance(exc, BackendError):
            # Driver text stays in the log; clients only see the generic detail.
            logger.error("backend_unavailable", cause=repr(exc.__cause__))
        return _error_response(exc.status_code, exc.detail)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Unknown routes and disallowed methods."""
        return _error_response(exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed payloads are a 400."""
        return _error_response(
            ValidationError.status_code,
            "Validation error",
            errors=jsonable_encoder(exc.errors()),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_exception", error=str(exc), exc_info=exc)
        return _error_response(500, "Internal server error")
