"""
Error taxonomy for crawler configuration syncs.

Every failure carries a ``kind`` (stable name reported by the handlers) and a
``retryable`` flag the caller-side retry policy keys on. Messages and details
must never carry the database password.
"""

from typing import Any, Optional


class CrawlerSyncError(Exception):
    """Base exception for all sync failures."""

    kind = "Unknown"
    retryable = False

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class SettingsError(CrawlerSyncError):
    """Deployment settings are missing or invalid."""

    kind = "InvalidSettings"


# -------- Credential resolution --------


class ResolveError(CrawlerSyncError):
    """Base for secret store failures."""


class NotFound(ResolveError):
    kind = "NotFound"


class AccessDenied(ResolveError):
    kind = "AccessDenied"


class MalformedSecret(ResolveError):
    """The secret exists but its structured value is unusable."""

    kind = "MalformedSecret"

    def __init__(self, message: str, missing_fields: Optional[list[str]] = None, details=None):
        self.missing_fields = list(missing_fields or [])
        details = dict(details or {})
        if self.missing_fields:
            details["missing_fields"] = self.missing_fields
        super().__init__(message, details)


class StoreUnavailable(ResolveError):
    kind = "StoreUnavailable"
    retryable = True


# -------- Configuration / submission --------


class ConfigureError(CrawlerSyncError):
    """Base for crawler configuration failures."""


class ConnectionBuildFailure(ConfigureError):
    kind = "ConnectionBuildFailure"


class SubmissionRejected(ConfigureError):
    """The crawler service refused the payload.

    ``retryable`` is set per instance: a rejection caused by a concurrent
    conflicting update (or throttling) may succeed on a later attempt.
    """

    kind = "SubmissionRejected"

    def __init__(self, message: str, retryable: bool = False, details=None):
        self.retryable = retryable
        super().__init__(message, details)


class SubmissionTimeout(ConfigureError):
    kind = "SubmissionTimeout"
    retryable = True
