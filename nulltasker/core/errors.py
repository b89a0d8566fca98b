"""Domain-level exception primitives with stable machine-readable codes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from fastapi.responses import JSONResponse


@dataclass(eq=False)
class DomainError(Exception):
    """Error with a stable code and HTTP mapping."""

    code: str
    http_status: int
    message: str
    details: Optional[Any] = None

    def __str__(self) -> str:
        return self.message


class ValidationFailedError(DomainError):
    def __init__(self, message: str, code: str = "VALIDATION_ERROR", details: Any = None):
        super().__init__(code=code, http_status=400, message=message, details=details)


class AuthenticationError(DomainError):
    def __init__(self, message: str, code: str = "INVALID_CREDENTIALS", details: Any = None):
        super().__init__(code=code, http_status=401, message=message, details=details)


class InvalidTokenError(DomainError):
    """Raised for malformed, expired or mis-signed tokens alike."""

    def __init__(self, message: str = "Invalid or expired token", code: str = "INVALID_TOKEN",
                 http_status: int = 401):
        super().__init__(code=code, http_status=http_status, message=message)


class ForbiddenError(DomainError):
    def __init__(self, message: str, code: str = "FORBIDDEN", details: Any = None):
        super().__init__(code=code, http_status=403, message=message, details=details)


class NotFoundError(DomainError):
    def __init__(self, message: str, code: str = "NOT_FOUND", details: Any = None):
        super().__init__(code=code, http_status=404, message=message, details=details)


class ConflictError(DomainError):
    def __init__(self, message: str, code: str = "CONFLICT_ERROR", details: Any = None):
        super().__init__(code=code, http_status=409, message=message, details=details)


class StorageError(DomainError):
    """Storage failure. The message is generic; the cause stays in the logs."""

    def __init__(self, message: str = "A server error occurred", code: str = "SERVER_ERROR"):
        super().__init__(code=code, http_status=500, message=message)


def error_payload(code: str, message: str, errors: Any = None) -> dict:
    payload: dict[str, Any] = {
        "success": False,
        "errorCode": code,
        "message": message,
    }
    if errors is not None:
        payload["errors"] = errors
    return payload


def build_error_response(exc: DomainError) -> JSONResponse:
    """Render a DomainError as the structured JSON error body."""
    headers = None
    if exc.http_status == 401:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.http_status,
        content=error_payload(exc.code, exc.message, exc.details),
        headers=headers,
    )
