"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. Services raise the subclasses for
every expected failure; the global exception handler converts them to
consistent JSON responses.

Non-AppError exceptions are logged and bubble up as 500s (with Sentry
reporting in production).
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.logging import get_logger

log = get_logger(__name__)


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"


class AccountUnavailableError(AppError):
    """Account is missing, expired or unverified. One message for all three."""

    status_code = 400
    error_code = "account_unavailable"


class InvalidCredentialError(AppError):
    """Wrong or expired OTP, reset token or password."""

    status_code = 400
    error_code = "invalid_credential"


class AuthenticationError(AppError):
    status_code = 401
    error_code = "authentication_error"


class OtpRequiredError(AppError):
    """Password step attempted without a verified login OTP."""

    status_code = 403
    error_code = "otp_required"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class ConflictError(AppError):
    status_code = 409
    error_code = "conflict"


class RateLimitError(AppError):
    status_code = 429
    error_code = "rate_limit_exceeded"


class InternalError(AppError):
    status_code = 500
    error_code = "internal_error"


class EmailDeliveryError(AppError):
    """Email could not be sent. State written before the send is kept."""

    status_code = 502
    error_code = "email_delivery_failed"


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = [str(part) for part in first.get("loc", ()) if part != "body"]
        message = str(first.get("msg", "Invalid request"))
        # pydantic prefixes messages raised from validators with "Value error, "
        message = message.removeprefix("Value error, ")
        error = ValidationError(message, field=".".join(loc) or None)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        log.error(
            "unhandled_exception",
            path=request.url.path,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "An internal server error occurred.", "code": "internal_error"},
        )
