"""Error responses and request-scoped logging for the release-notes relay.

Domain errors raised before a stream opens become `{error, details}` bodies;
anything else falls through to the `ErrorResponse` envelope. Log records carry
the request's correlation id, and their structured fields are redacted so
neither credentials nor diff text reach the logs.
"""

import logging
import sys
import traceback
import uuid
from collections.abc import MutableMapping
from contextvars import ContextVar
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pythonjsonlogger.json import JsonFormatter
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import get_settings
from core.security_config import get_allowed_error_fields, redact
from schemas.api import ErrorResponse
from schemas.notes import GenerationErrorResponse
from services.notes.exceptions import (
    GenerationValidationError,
    ReleaseNotesError,
    UpstreamError,
)


_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

logger = logging.getLogger(__name__)


def get_correlation_id() -> str:
    """Return the current request's correlation id, minting one if unset."""
    correlation_id = _correlation_id_var.get()
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
        _correlation_id_var.set(correlation_id)
    return correlation_id


def set_correlation_id(correlation_id: str | None) -> None:
    _correlation_id_var.set(correlation_id)


class CorrelatedLogger(logging.LoggerAdapter):
    """Logger adapter that stamps records with the correlation id.

    Structured fields are passed as keyword arguments and redacted before
    they are attached. In production they become top-level keys of the JSON
    record; elsewhere they ride along as `structured_data` and the message is
    prefixed with the correlation id.
    """

    def __init__(self, name: str) -> None:
        super().__init__(logging.getLogger(name), {})

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        exc_info = kwargs.pop("exc_info", None)
        correlation_id = get_correlation_id()
        fields = {"correlation_id": correlation_id, **redact(dict(kwargs))}
        kwargs.clear()
        if exc_info is not None:
            kwargs["exc_info"] = exc_info

        if get_settings().ENVIRONMENT == "production":
            kwargs["extra"] = fields
            return msg, kwargs
        kwargs["extra"] = {"structured_data": fields}
        return f"[{correlation_id}] {msg}", kwargs


request_logger = CorrelatedLogger(__name__)


async def release_notes_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Map domain errors raised before a stream opens to `{error, details}`."""
    if isinstance(exc, GenerationValidationError):
        request_logger.warning(
            "Rejected generation request", error_code=exc.error_code
        )
        return JSONResponse(
            status_code=400,
            content=GenerationErrorResponse(error=exc.message).model_dump(
                exclude_none=True
            ),
        )

    if isinstance(exc, UpstreamError):
        request_logger.error(
            "Upstream generation failed",
            error_code=exc.error_code,
            details=exc.details,
        )
        return JSONResponse(
            status_code=500,
            content=GenerationErrorResponse(
                error=exc.message, details=exc.details
            ).model_dump(exclude_none=True),
        )

    if isinstance(exc, ReleaseNotesError):
        request_logger.error("Release notes error", error_code=exc.error_code)
        return JSONResponse(
            status_code=500,
            content=GenerationErrorResponse(error=exc.message).model_dump(
                exclude_none=True
            ),
        )

    return await global_exception_handler(request, exc)


def _build_error_response(
    *,
    correlation_id: str,
    error_type: str,
    message: str,
    environment: str,
    details: dict[str, Any] | None = None,
    traceback_str: str | None = None,
    exception_type: str | None = None,
    validation_errors: Any | None = None,
    status_code: int = 500,
) -> JSONResponse:
    """Construct a sanitized JSON error response respecting environment rules."""
    allowed_fields = get_allowed_error_fields(environment)

    error_body: dict[str, Any] = {
        "correlation_id": correlation_id,
        "type": error_type,
    }
    optional = {
        "details": details,
        "traceback": traceback_str,
        "exception_type": exception_type,
        "validation_errors": validation_errors,
    }
    for field, value in optional.items():
        if field in allowed_fields and value is not None:
            error_body[field] = value

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            message=message,
            error=error_body,
            success=False,
        ).model_dump(),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler providing structured, sanitized responses."""
    environment = get_settings().ENVIRONMENT
    correlation_id = get_correlation_id()

    if isinstance(exc, StarletteHTTPException):
        return _build_error_response(
            correlation_id=correlation_id,
            error_type="http_error",
            message="An HTTP error occurred",
            environment=environment,
            details={"detail": exc.detail},
            exception_type=exc.__class__.__name__,
            status_code=exc.status_code,
        )

    if isinstance(exc, ValidationError | RequestValidationError):
        # The offending input can be a whole diff
        validation_errors = jsonable_encoder(
            [
                {key: value for key, value in error.items() if key != "input"}
                for error in exc.errors()
            ]
        )
        request_logger.warning(
            "Validation error", validation_errors=validation_errors
        )
        return _build_error_response(
            correlation_id=correlation_id,
            error_type="validation_error",
            message="Invalid request data provided",
            environment=environment,
            validation_errors=validation_errors,
            status_code=422,
        )

    request_logger.exception(
        "Unhandled exception", exception_type=exc.__class__.__name__, error=str(exc)
    )
    traceback_str: str | None = None
    if environment != "production":
        traceback_str = "".join(traceback.format_exception(exc)).strip()

    return _build_error_response(
        correlation_id=correlation_id,
        error_type="internal_server_error",
        message="An internal error occurred",
        environment=environment,
        traceback_str=traceback_str,
        exception_type=exc.__class__.__name__,
    )


def setup_logging() -> None:
    """Configure application logging once per process."""
    settings = get_settings()
    log_level = logging.DEBUG if settings.ENVIRONMENT == "development" else logging.INFO
    root_logger = logging.getLogger()

    # Idempotent: leave existing handlers (uvicorn, pytest) alone
    if root_logger.handlers:
        return

    formatter: logging.Formatter
    if settings.ENVIRONMENT == "production":
        formatter = JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(log_level)

    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)

    if settings.ENVIRONMENT == "production":
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)
