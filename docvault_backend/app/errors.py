"""Exceptions raised by the upload/delete engine.

Category classes describe *what* went wrong; ``UploadError`` and
``DeleteError`` wrap a category error and prefix its message with the file
it concerns, so nothing reaches the caller without that context.
"""
from __future__ import annotations

from typing import Iterable


class FileTransferError(Exception):
    """Base exception for every engine failure."""


class UploadPlatformError(FileTransferError):
    """Raised when the upload mechanism itself reported an error code."""

    def __init__(self, message: str, code: int) -> None:
        super().__init__(message)
        self.code = code


class PathError(FileTransferError):
    """Raised when the document root is unusable or a path escapes it."""


class FilenameError(FileTransferError):
    """Raised for empty, reserved, illegal or over-long filenames."""


class ValidationError(FileTransferError):
    """Raised when the pluggable validator rejects a file."""


class StorageError(FileTransferError):
    """Raised when creating, moving or removing files fails."""


class FileMissingError(StorageError):
    """Raised when a file expected on disk is not there."""


class AuthorizationError(FileTransferError):
    """Raised when a session tries to delete a file it does not own."""


class UploadError(FileTransferError):
    def __init__(self, filename: str, cause: Exception) -> None:
        super().__init__(f"{filename} upload failed: {cause}")
        self.filename = filename
        self.cause = cause


class DeleteError(FileTransferError):
    def __init__(self, filename: str, cause: Exception) -> None:
        super().__init__(f"{filename} delete failed: {cause}")
        self.filename = filename
        self.cause = cause


class BatchError(FileTransferError):
    """Aggregate of per-item failures, messages joined by newlines."""

    def __init__(self, errors: Iterable[Exception]) -> None:
        self.errors = list(errors)
        super().__init__("\n".join(str(e) for e in self.errors))

    def messages(self) -> list[str]:
        return [str(e) for e in self.errors]


def root_cause(exc: Exception) -> Exception:
    """Unwrap ``UploadError``/``DeleteError`` down to the category error."""
    while isinstance(exc, (UploadError, DeleteError)):
        exc = exc.cause
    return exc
