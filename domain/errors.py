"""
Domain: typed errors carried from services to the HTTP layer.

Every error carries the HTTP status it maps to and a human-readable message.
Routers translate `ServiceError` into `{"error": message}` with that status;
anything else becomes a generic 500.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional


class ServiceError(Exception):
    """Base class for expected, client-visible failures."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = dict(details or {})


class ValidationError(ServiceError):
    """Missing or malformed input."""

    status_code = 400


class AuthorizationError(ServiceError):
    """Missing session (401) or insufficient privileges (403)."""

    status_code = 401


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    """Request conflicts with current state (e.g. UID already claimed)."""

    status_code = 409


class NotResolvableError(ServiceError):
    """No retailer could be determined for the request."""

    status_code = 400


__all__ = [
    "ServiceError",
    "ValidationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "NotResolvableError",
]
