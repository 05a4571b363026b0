"""Error taxonomy shared by the VLab HTTP services.

Every error carries the HTTP status it maps to and a public message. The
message is what the caller sees; anything more detailed is logged
server-side only.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import NoResultFound
from starlette.exceptions import HTTPException

__all__ = [
    "VLabError",
    "ValidationFailed",
    "AuthenticationFailed",
    "PermissionDenied",
    "NotFound",
    "PayloadTooLarge",
    "RateLimitExceeded",
    "UpstreamError",
    "error_response",
    "install_error_handlers",
]

logger = structlog.get_logger(__name__)


class VLabError(Exception):
    """Base class for errors surfaced to HTTP callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(VLabError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthenticationFailed(VLabError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class PermissionDenied(VLabError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFound(VLabError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class PayloadTooLarge(VLabError):
    status_code = 413
    default_message = "Request body too large"


class RateLimitExceeded(VLabError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Rate limit exceeded. Please try again later."

    def __init__(self, message: str | None = None, *, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamError(VLabError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Upstream service error"


def error_response(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def install_error_handlers(app: FastAPI) -> None:
    """Render every failure as ``{"error": message}`` with a matching status."""

    @app.exception_handler(VLabError)
    async def _handle_vlab_error(request: Request, exc: VLabError):
        headers = None
        if isinstance(exc, RateLimitExceeded) and exc.retry_after is not None:
            headers = {"Retry-After": str(exc.retry_after)}
        return error_response(exc.status_code, exc.message, headers)

    @app.exception_handler(HTTPException)
    async def _handle_http_error(request: Request, exc: HTTPException):
        return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def _handle_request_validation(request: Request, exc: RequestValidationError):
        fields = sorted({".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()})
        message = "Invalid request"
        if fields and any(fields):
            message = f"Invalid request: {', '.join(f for f in fields if f)}"
        return error_response(status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(NoResultFound)
    async def _handle_not_found(request: Request, exc: NoResultFound):
        return error_response(status.HTTP_404_NOT_FOUND, str(exc) or "Not found")

    @app.exception_handler(PermissionError)
    async def _handle_forbidden(request: Request, exc: PermissionError):
        return error_response(status.HTTP_403_FORBIDDEN, str(exc) or "Forbidden")

    @app.exception_handler(Exception)
    async def _handle_unexpected(request: Request, exc: Exception):
        logger.exception(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
