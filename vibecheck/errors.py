"""
Error taxonomy for the guardian verification flow.

Every error carries the HTTP status and the exact message the client sees.
Messages must never include provider error text, stack traces or ids.
"""

from __future__ import annotations

from typing import Any

GENERIC_ERROR_MESSAGE = "An error occurred processing your request. Please try again."


class GuardianError(Exception):
    """Base class. Rendered as {"ok": false, "error": message, ...}."""

    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, *, details: str | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        # Extra top-level fields merged into the response body (e.g. verified=False)
        self.extra: dict[str, Any] = {}
        super().__init__(self.message)

    @property
    def headers(self) -> dict[str, str] | None:
        return None

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"ok": False, **self.extra, "error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class Unauthorized(GuardianError):
    status_code = 401
    default_message = "Unauthorized"


class ValidationError(GuardianError):
    status_code = 400
    default_message = "Invalid input format"


class RateLimitExceeded(GuardianError):
    status_code = 429
    default_message = "Rate limit exceeded. Please try again tomorrow."

    def __init__(self, message: str | None = None, *, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after

    @property
    def headers(self) -> dict[str, str] | None:
        if self.retry_after is None:
            return None
        return {"Retry-After": str(self.retry_after)}


class NotFound(GuardianError):
    default_message = "Verification request not found"


class Expired(GuardianError):
    default_message = "Verification code has expired. Please request a new one."


class InvalidCode(GuardianError):
    default_message = "Invalid verification code"


class GuardianAccountRequired(GuardianError):
    default_message = "Guardian must have a registered parent account to complete verification."


class DependencyFailure(GuardianError):
    status_code = 500
    default_message = GENERIC_ERROR_MESSAGE
