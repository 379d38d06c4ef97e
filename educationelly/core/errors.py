"""Application error hierarchy and the JSON shape every error response takes."""

import enum
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from educationelly.core import config

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_body(self) -> dict:
        return {"error": self.message}

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.to_body())


class ValidationError(AppError):
    """Raised when request input is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, details: list[dict], message: str = "Validation failed"):
        self.details = details
        super().__init__(message)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}])

    def to_body(self) -> dict:
        return {"error": self.message, "details": self.details}


class AuthErrorKind(str, enum.Enum):
    MISSING = "missing"
    INVALID = "invalid"
    EXPIRED = "expired"
    INVALID_CREDENTIALS = "invalid_credentials"


_AUTH_MESSAGES = {
    AuthErrorKind.MISSING: "Unauthorized",
    AuthErrorKind.INVALID: "Invalid token",
    AuthErrorKind.EXPIRED: "Token expired",
    AuthErrorKind.INVALID_CREDENTIALS: "Invalid email or password",
}


class AuthError(AppError):
    """Raised for missing, invalid or expired tokens and bad credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, kind: AuthErrorKind, message: str | None = None):
        self.kind = kind
        super().__init__(message or _AUTH_MESSAGES[kind])

    def to_response(self) -> JSONResponse:
        response = super().to_response()
        response.headers["WWW-Authenticate"] = "Bearer"
        return response


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class RateLimitError(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class _ServerError(AppError):
    """Server-side failure whose underlying cause is only exposed outside production."""

    def __init__(self, message: str, original_error: Exception | str | None = None):
        self.original_error = original_error
        super().__init__(message)

    def to_body(self) -> dict:
        body = {"error": self.message}
        if self.original_error is not None and not config.is_production():
            body["details"] = str(self.original_error)
        return body


class StoreError(_ServerError):
    """Raised when the database is unreachable or an operation on it fails."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class UpstreamError(_ServerError):
    """Raised when an external service (AI gateway) fails.

    The upstream reason, and the HTTP status when there was one, are returned
    in every environment.
    """

    def __init__(
        self,
        message: str,
        original_error: Exception | str | None = None,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        upstream_status: int | None = None,
    ):
        self.status_code = status_code
        self.upstream_status = upstream_status
        super().__init__(message, original_error)

    def to_body(self) -> dict:
        body = {"error": self.message}
        if self.original_error is not None:
            body["message"] = str(self.original_error)
        if self.upstream_status is not None:
            body["upstreamStatus"] = self.upstream_status
        return body


def _field_name(location: tuple) -> str:
    parts = [str(part) for part in location if part not in ("body", "path", "query")]
    return ".".join(parts) or "body"


def request_validation_details(exc: RequestValidationError) -> list[dict]:
    details = []
    for error in exc.errors():
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.append({"field": _field_name(tuple(error.get("loc", ()))), "message": message})
    return details


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, _ServerError):
        logger.error(
            "%s %s failed: %s (%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.original_error,
            exc_info=exc,
        )
    return exc.to_response()


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return ValidationError(request_validation_details(exc)).to_response()


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
