"""Domain errors raised by services and rendered by ``planform.main``."""

from __future__ import annotations

from typing import Any, Optional


class PlanformError(Exception):
    status_code = 500
    error = "internal_error"
    default_message = "internal server error"

    def __init__(self, message: Optional[str] = None, details: Any = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class Unauthorized(PlanformError):
    status_code = 401
    error = "unauthorized"
    default_message = "Unauthorized"


class Forbidden(PlanformError):
    status_code = 403
    error = "forbidden"
    default_message = "Access denied"


class NotFound(PlanformError):
    status_code = 404
    error = "not_found"
    default_message = "Not found"


class ValidationError(PlanformError):
    status_code = 400
    error = "validation_error"
    default_message = "Validation error"


class QuotaExhausted(PlanformError):
    status_code = 403
    error = "quota_exhausted"
    default_message = "You have no remaining runs. Upgrade your plan to submit more ideas."


class Conflict(PlanformError):
    status_code = 409
    error = "conflict"
    default_message = "Conflict"


class UpstreamUnavailable(PlanformError):
    status_code = 502
    error = "upstream_unavailable"
    default_message = "The assistant is unavailable right now. Please try again."
