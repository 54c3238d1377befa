"""
Utils Module
Logging setup and the shared error hierarchy.
"""
from .logger import setup_logger, configure_package_logging
from .exceptions import (
    SearchPortalError,
    ConfigurationError,
    InvalidQueryError,
    ProviderRequestError,
    StorageError,
    CacheError,
    RelevanceHarnessError,
)

__all__ = [
    "setup_logger",
    "configure_package_logging",
    "SearchPortalError",
    "ConfigurationError",
    "InvalidQueryError",
    "ProviderRequestError",
    "StorageError",
    "CacheError",
    "RelevanceHarnessError",
]
