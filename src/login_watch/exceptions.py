"""Exceptions raised by Login Watch.

Missing optional data (no geolocation, thin history) is never an error;
detectors simply skip. Only configuration and storage problems surface
as exceptions.
"""

from typing import Any, Optional


class LoginWatchError(Exception):
    """Base exception for all Login Watch errors.

    Attributes:
        message: Human-readable error message.
        code: Machine-readable error code.
        details: Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        code: str = "LOGIN_WATCH_ERROR",
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(LoginWatchError):
    """Raised when an engine threshold is invalid."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, code="CONFIG_ERROR", details=details)


class StorageError(LoginWatchError):
    """Raised when the attempt or alert store cannot be read or written.

    A failed analysis must never be mistaken for a clean login, so callers
    receive this instead of an empty alert list.
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, code="STORAGE_ERROR", details=details)
