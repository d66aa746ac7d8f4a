"""
Custom exceptions for the Flashsync application.

This module defines domain-specific exceptions for image selection and the
firmware update check, together with the policy table that decides whether a
failure is shown to the user or only logged.
"""

from enum import Enum
from typing import Dict, Type


class FlashsyncError(Exception):
    """
    Base exception for all Flashsync errors.

    All custom exceptions in Flashsync should inherit from this class
    to allow for easy catching of all application-specific errors.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(FlashsyncError):
    """Exception raised when configuration is invalid or missing."""

    pass


class ConfigFileError(ConfigurationError):
    """Exception raised when the configuration file cannot be read or parsed."""

    pass


# =============================================================================
# Selection Errors
# =============================================================================


class UnsupportedFormatError(FlashsyncError):
    """
    Exception raised when an image's extension is not a supported format.

    Attributes:
        path: The image path that was rejected.
    """

    def __init__(
        self, message: str, path: str | None = None, details: str | None = None
    ) -> None:
        super().__init__(message, details)
        self.path = path


class MetadataExtractionError(FlashsyncError):
    """
    Exception raised when image metadata cannot be read from a path.

    Attributes:
        path: The image path that failed.
    """

    def __init__(
        self, message: str, path: str | None = None, details: str | None = None
    ) -> None:
        super().__init__(message, details)
        self.path = path


# =============================================================================
# Update Check Errors
# =============================================================================


class DirectoryUnreadableError(FlashsyncError):
    """
    Exception raised when the downloads directory is missing or unreadable.

    Attributes:
        path: The directory that could not be listed.
    """

    def __init__(
        self, message: str, path: str | None = None, details: str | None = None
    ) -> None:
        super().__init__(message, details)
        self.path = path


class ReleaseFetchError(FlashsyncError):
    """
    Exception raised when the latest-release query fails or returns bad data.

    This covers connection failures, HTTP errors, undecodable JSON and
    responses without a downloadable asset.

    Attributes:
        url: The endpoint that was queried.
        status_code: The HTTP status code, when one was received.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url
        self.status_code = status_code


class InvalidVersionFormatError(FlashsyncError):
    """
    Exception raised when a string does not parse as a dotted numeric version.

    Attributes:
        value: The offending version string.
    """

    def __init__(
        self, message: str, value: str | None = None, details: str | None = None
    ) -> None:
        super().__init__(message, details)
        self.value = value


class DownloadError(FlashsyncError):
    """
    Exception raised when a firmware download fails.

    Attributes:
        url: The URL that was being downloaded.
        status_code: The HTTP status code, when one was received.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url
        self.status_code = status_code


# =============================================================================
# Failure Policy
# =============================================================================


class FailurePolicy(Enum):
    """How a failure kind reaches the user."""

    SURFACE = "surface"
    LOG_ONLY = "log-only"


FAILURE_POLICY: Dict[Type[FlashsyncError], FailurePolicy] = {
    UnsupportedFormatError: FailurePolicy.SURFACE,
    MetadataExtractionError: FailurePolicy.SURFACE,
    ConfigurationError: FailurePolicy.SURFACE,
    DirectoryUnreadableError: FailurePolicy.LOG_ONLY,
    ReleaseFetchError: FailurePolicy.LOG_ONLY,
    InvalidVersionFormatError: FailurePolicy.LOG_ONLY,
    DownloadError: FailurePolicy.LOG_ONLY,
}


def failure_policy(error: BaseException) -> FailurePolicy:
    """
    Resolve the policy for an error instance.

    The error's class hierarchy is walked so subclasses inherit the policy of
    the nearest registered ancestor. Errors that are not registered are only
    logged.
    """
    for klass in type(error).__mro__:
        policy = FAILURE_POLICY.get(klass)
        if policy is not None:
            return policy
    return FailurePolicy.LOG_ONLY
