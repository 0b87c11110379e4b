"""
Shared error handling for the content repository layer.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Serializable view of a repository error."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class ContentRepositoryException(Exception):
    """Base exception for the content repository layer."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_detail(self) -> ErrorDetail:
        """Convert to a serializable error detail."""
        return ErrorDetail(code=self.code, message=self.message, details=self.details)


class ConfigurationError(ContentRepositoryException):
    """Entity type or registry is misconfigured."""

    def __init__(self, message: str = "Configuration error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class InvalidArgumentError(ContentRepositoryException):
    """A required argument is missing or empty."""

    def __init__(self, message: str = "Invalid argument", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_ARGUMENT", message, details)


class CacheStoreError(ContentRepositoryException):
    """The cache backend failed."""

    def __init__(self, backend: str, message: str = "Cache store error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_STORE_ERROR", f"{backend}: {message}", details)
