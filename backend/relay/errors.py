"""HTTP-facing errors and their JSON rendering.

Every error leaves the API as ``{"error": <title>, "message": <detail>}``.
Provider failures never reach this layer; the orchestrator absorbs them.
"""
import logging
from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

ERROR_TITLES = {
    400: "Bad Request",
    413: "Payload Too Large",
    429: "Too Many Requests",
    500: "Internal Server Error",
}


class RelayError(Exception):
    """Base exception for errors surfaced to API callers."""
    def __init__(self, message: str, status_code: int = 500, headers: Optional[Dict[str, str]] = None):
        self.message = message
        self.status_code = status_code
        self.headers = headers or {}
        super().__init__(message)


class ThreadValidationError(RelayError):
    """Raised when a request body is missing or has malformed fields."""
    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class RateLimitedError(RelayError):
    """Raised when a client has used up its request quota."""
    def __init__(self, message: str = "Rate limit exceeded. Please try again later.", retry_after: Optional[str] = None):
        headers = {"Retry-After": retry_after} if retry_after else None
        super().__init__(message, status_code=429, headers=headers)


class PayloadTooLargeError(RelayError):
    """Raised when a request body exceeds the configured ceiling."""
    def __init__(self, max_bytes: int):
        super().__init__(f"Request body exceeds {max_bytes} bytes", status_code=413)


class InternalRelayError(RelayError):
    """Raised for unexpected failures; the message stays generic."""
    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, status_code=500)


def error_body(status_code: int, message: str) -> dict:
    return {"error": ERROR_TITLES.get(status_code, "Error"), "message": message}


async def _relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.message),
        headers=exc.headers or None,
    )


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request body"
    logger.info(f"Rejected request to {request.url.path}: {message}")
    return JSONResponse(status_code=400, content=error_body(400, message))


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=error_body(500, "Internal server error"))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RelayError, _relay_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
