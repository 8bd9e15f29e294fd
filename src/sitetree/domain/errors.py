"""Domain-specific errors.

Tree construction recovers from these per link; the HTTP layer maps the
ones that escape to status codes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class SiteTreeDomainError(Exception):
    """Base class for all domain errors."""


@dataclass(frozen=True)
class DomainErrorInfo:
    code: str
    message: str
    detail: Optional[str] = None


class InvalidURLError(SiteTreeDomainError):
    """Raised when a URL cannot be placed in a site tree."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.info = DomainErrorInfo(code="INVALID_URL", message=message, detail=detail)


class StorageError(SiteTreeDomainError):
    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.info = DomainErrorInfo(code="STORAGE_ERROR", message=message, detail=detail)
