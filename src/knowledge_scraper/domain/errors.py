"""Domain-specific errors.

These errors are mapped to HTTP status codes in the transport layer and to
job failure metadata in the job manager.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class ScraperDomainError(Exception):
    """Base class for all domain errors."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.info = DomainErrorInfo(code=self.code, message=message, detail=detail)


@dataclass(frozen=True)
class DomainErrorInfo:
    code: str
    message: str
    detail: Optional[str] = None


class InvalidInputError(ScraperDomainError):
    """Raised when request/option validation fails."""

    code = "INVALID_INPUT"


class NavigationError(ScraperDomainError):
    """The browser could not load the page (DNS, TLS, HTTP-level failures)."""

    code = "NAVIGATION_FAILED"


class NetworkTimeoutError(ScraperDomainError):
    code = "NETWORK_TIMEOUT"


class OrganizationError(ScraperDomainError):
    """The LLM organizer call itself failed."""

    code = "ORGANIZATION_FAILED"


class ExportError(ScraperDomainError):
    """Export requested on a job that cannot produce it."""

    code = "EXPORT_FAILED"


class JobNotFoundError(ScraperDomainError):
    code = "JOB_NOT_FOUND"


class InvalidStateTransitionError(ScraperDomainError):
    code = "INVALID_STATE_TRANSITION"


class DatabaseError(ScraperDomainError):
    code = "DATABASE_ERROR"
