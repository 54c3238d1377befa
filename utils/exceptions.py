"""
Custom Exceptions
Error hierarchy for the search portal.
"""
from typing import Optional


class SearchPortalError(Exception):
    """Base error for the search portal."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(SearchPortalError):
    """Missing or invalid configuration (for example no provider API key)."""
    pass


class InvalidQueryError(SearchPortalError):
    """Rejected search query."""
    pass


class ProviderRequestError(SearchPortalError):
    """Search provider call failed with an HTTP-like status code."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: int = 500,
        **kwargs,
    ):
        super().__init__(message, kwargs)
        self.provider = provider
        self.status_code = int(status_code)


class StorageError(SearchPortalError):
    """Storage error"""
    pass


class CacheError(StorageError):
    """Cache read/write error"""
    pass


class RelevanceHarnessError(SearchPortalError):
    """Golden-case, report, or baseline file problem."""
    pass
