"""
Error types for s3-upload.

Every failure is raised as an ``UploadError`` carrying the action name it
is logged under. The command-line entry point is the only place that turns
these into an exit code.
"""

from typing import Optional


class UploadError(Exception):
    """Base class for all upload failures."""

    def __init__(self, action: str, message: str) -> None:
        super().__init__(message)
        self.action = action


class ConfigurationError(UploadError):
    """Raised for invalid flags, settings, or an unknown upload method."""
    pass


class CredentialsError(UploadError):
    """Raised when a required credential environment variable is missing."""
    pass


class StorageError(UploadError):
    """Raised when the storage service or the external tool fails."""

    def __init__(
        self,
        action: str,
        message: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(action, message)
        self.cause = cause

    @property
    def error_type(self) -> str:
        """Name of the underlying error type, used for metric labels."""
        return type(self.cause).__name__ if self.cause is not None else type(self).__name__
