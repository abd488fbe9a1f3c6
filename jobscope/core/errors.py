"""Exceptions raised across the scraping and query boundaries."""
from typing import Optional


class JobscopeError(Exception):
    """Base class for all jobscope errors."""


class FetchError(JobscopeError):
    """Raised when a page could not be retrieved (network error or non-2xx status)."""

    def __init__(self, url: str, reason: str, status: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status = status
        super().__init__(f"{reason} ({url})")


class DatasetNotFoundError(JobscopeError):
    """Raised when no stored snapshot exists for a company."""

    def __init__(self, company: str):
        self.company = company
        super().__init__(f"No dataset stored for company '{company}'")


class UnknownRulesVersionError(JobscopeError):
    """Raised when a title rule set version is not registered."""

    def __init__(self, version: str):
        self.version = version
        super().__init__(f"Unknown rules version '{version}'")
