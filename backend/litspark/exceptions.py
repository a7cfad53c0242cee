"""
LitSpark Uploads — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for every failure the upload pipeline reports.
Why:   Each exception carries the HTTP status it maps to, so services can fail
       with a precise meaning and the global handlers format a consistent response.
How:   Each exception class carries a message, a numeric status code, a
       machine-readable error code and an optional context dict.
Who:   Raised by services; caught by the handlers registered in main.py.

Exception Hierarchy:
    LitSparkError (base)                 → 500
    ├── InvalidInputError                → 400 Bad Request (missing file/filename)
    ├── ValidationError                  → 400 Bad Request (type/extension/size rejected)
    │   └── UploadLimitError             → 400 Bad Request (multipart limits)
    ├── NotFoundError                    → 404 Not Found
    └── FileStorageError                 → 500 Internal Server Error

Retry semantics:
    InvalidInputError, ValidationError and NotFoundError are not retryable as-is.
    FileStorageError may be transient (disk full, I/O hiccup); it is surfaced
    to the caller and never retried internally.
"""

from typing import Any, Dict, List, Optional

# ── Machine-checkable reasons ─────────────────────────────────────────────
# Predicate rejections
INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
INVALID_FILE_EXTENSION = "INVALID_FILE_EXTENSION"
# Multipart limits (LIMIT_FILE_SIZE doubles as the size predicate's reason)
LIMIT_FILE_SIZE = "LIMIT_FILE_SIZE"
LIMIT_FILE_COUNT = "LIMIT_FILE_COUNT"
LIMIT_UNEXPECTED_FILE = "LIMIT_UNEXPECTED_FILE"


class LitSparkError(Exception):
    """
    Base exception for all LitSpark application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, only selectively returned)
        status_code: HTTP status the error maps to
        error_code:  Machine-readable error name used in response bodies
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class InvalidInputError(LitSparkError):
    """
    Raised when the caller omitted something the operation cannot work without.

    When:    No file in an upload, empty filename, filename that sanitizes to nothing.
    HTTP:    400 Bad Request
    """

    status_code = 400
    error_code = "invalid_input"

    def __init__(
        self,
        message: str = "Invalid input",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ValidationError(LitSparkError):
    """
    Raised when an uploaded file fails the type, extension or size checks.

    HTTP:    400 Bad Request

    `reasons` lists every failed check so the client can correct all of them
    in one resubmission, e.g.:
        {
            "error": "validation_error",
            "message": "File type not allowed. Allowed types: image/jpeg, image/png",
            "reason": "INVALID_FILE_TYPE",
            "details": {"reasons": ["INVALID_FILE_TYPE"], "allowed_types": [...]}
        }
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        reasons: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        self.reasons = list(reasons or [])
        if self.reasons:
            ctx["reasons"] = self.reasons
        super().__init__(message=message, context=ctx)
        self.field = field

    @property
    def reason(self) -> Optional[str]:
        return self.reasons[0] if self.reasons else None


class UploadLimitError(ValidationError):
    """
    Raised when a multipart body breaks one of the ingestion limits.

    reason is one of LIMIT_FILE_SIZE, LIMIT_FILE_COUNT, LIMIT_UNEXPECTED_FILE.
    """

    error_code = "upload_limit_exceeded"

    def __init__(
        self,
        reason: str,
        message: str,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, field=field, reasons=[reason], context=context)


class NotFoundError(LitSparkError):
    """
    Raised when a stored file does not exist in the requested partition.

    HTTP:    404 Not Found
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "File",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} '{resource_id}' not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FileStorageError(LitSparkError):
    """
    Raised when file system operations fail.

    What:    Could not write, read or delete a file on the storage volume.
    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500 Internal Server Error

    The underlying OSError is chained (`raise ... from`) and its text is kept
    in context for the server log; the client only sees `message`.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
