"""
Domain exceptions raised by the CMS services.

Each carries the HTTP status and error code it maps to; the handlers in
``responses`` turn them into the standard error envelope.
"""
from typing import Any, Dict, Optional


class CmsError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(CmsError):
    """Malformed or missing field, duplicate slug, unresolved reference."""

    status_code = 400
    code = "VALIDATION_ERROR"


class AuthenticationError(CmsError):
    """Missing, expired or invalid credentials."""

    status_code = 401
    code = "UNAUTHORIZED"


class AuthorizationError(CmsError):
    """Role or ownership check failed."""

    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(CmsError):
    status_code = 404
    code = "NOT_FOUND"

    @classmethod
    def for_resource(cls, resource: str, key: str, value: str) -> "NotFoundError":
        return cls(f"{resource} with {key} {value} not found", {key: value})


class ConflictError(CmsError):
    """Blocked delete, duplicate unique field, illegal status transition."""

    status_code = 409
    code = "CONFLICT"
