"""Exception hierarchy for the user subsystem.

Every error carries a ready-to-display ``message``, a stable ``error_code``
and the HTTP status the web layer should answer with.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

ERROR_CODE_VALIDATION_FAILED = "VALIDATION_FAILED"
ERROR_CODE_NOT_FOUND = "NOT_FOUND"
ERROR_CODE_USER_NOT_FOUND = "USER_NOT_FOUND"
ERROR_CODE_CONFLICT = "CONFLICT"
ERROR_CODE_DUPLICATE_USERNAME = "DUPLICATE_USERNAME"
ERROR_CODE_INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
ERROR_CODE_LOGIN_REQUIRED = "LOGIN_REQUIRED"
ERROR_CODE_STORAGE = "STORAGE_ERROR"
ERROR_CODE_STORAGE_WRITE_FAILED = "STORAGE_WRITE_FAILED"
ERROR_CODE_STORAGE_DELETE_FAILED = "STORAGE_DELETE_FAILED"
ERROR_CODE_UPLOAD_FAILED = "UPLOAD_FAILED"


class BlogError(Exception):
    """Base exception for all user subsystem errors."""

    status_code: int = 400
    default_error_code: str = ERROR_CODE_VALIDATION_FAILED

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(BlogError):
    """Raised when request input is missing or malformed."""


class NotFoundError(BlogError):
    """Raised when a referenced entity does not exist."""

    status_code = 404
    default_error_code = ERROR_CODE_NOT_FOUND


class UserNotFoundError(NotFoundError):
    default_error_code = ERROR_CODE_USER_NOT_FOUND


class ConflictError(BlogError):
    """Raised when an entity clashes with one that already exists."""

    default_error_code = ERROR_CODE_CONFLICT


class DuplicateUsernameError(ConflictError):
    default_error_code = ERROR_CODE_DUPLICATE_USERNAME


class InvalidCredentialsError(BlogError):
    """Raised when a username/password pair does not match any account."""

    default_error_code = ERROR_CODE_INVALID_CREDENTIALS


class AuthenticationRequiredError(BlogError):
    """Raised by the login gate for anonymous requests."""

    status_code = 401
    default_error_code = ERROR_CODE_LOGIN_REQUIRED


class StorageError(BlogError):
    """Raised when the profile image directory cannot be written or cleaned."""

    default_error_code = ERROR_CODE_STORAGE


class StorageWriteError(StorageError):
    default_error_code = ERROR_CODE_STORAGE_WRITE_FAILED


class StorageDeleteError(StorageError):
    default_error_code = ERROR_CODE_STORAGE_DELETE_FAILED


class UploadFailedError(StorageError):
    default_error_code = ERROR_CODE_UPLOAD_FAILED


__all__ = [
    "AuthenticationRequiredError",
    "BlogError",
    "ConflictError",
    "DuplicateUsernameError",
    "InvalidCredentialsError",
    "NotFoundError",
    "StorageDeleteError",
    "StorageError",
    "StorageWriteError",
    "UploadFailedError",
    "UserNotFoundError",
    "ValidationError",
]
