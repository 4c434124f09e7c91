"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"

    # Not found errors (404)
    ENTRY_NOT_FOUND = "ENTRY_NOT_FOUND"
    NOT_FOUND = "NOT_FOUND"

    # Routing errors raised by the framework
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    HTTP_ERROR = "HTTP_ERROR"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_TIME_RANGE = "INVALID_TIME_RANGE"
    PAGE_SIZE_EXCEEDED = "PAGE_SIZE_EXCEEDED"
    START_TIME_IN_FUTURE = "START_TIME_IN_FUTURE"
    END_TIME_IN_FUTURE = "END_TIME_IN_FUTURE"
    END_TIME_BEFORE_START_TIME = "END_TIME_BEFORE_START_TIME"
    END_TIME_NOT_ALLOWED = "END_TIME_NOT_ALLOWED"
    INVALID_GROUP_ENTRIES = "INVALID_GROUP_ENTRIES"
    INVALID_TIMEZONE = "INVALID_TIMEZONE"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Entry store unreachable (503)
    DATABASE_ERROR = "DATABASE_ERROR"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class ValidationError(AppException):
    """Request rejected by a business rule."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=400,
            details=details,
        )


class EntryNotFoundError(AppException):
    """Time log entry not found (or not owned by the caller)."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.ENTRY_NOT_FOUND,
            message=f"Time log entry not found: {entry_id}",
            status_code=404,
            details={"entry_id": entry_id},
        )


class InvalidTimeRangeError(ValidationError):
    """Range query with an inverted or zero-width window."""

    def __init__(self, start: str, end: str) -> None:
        super().__init__(
            message="Range start must be before range end",
            error_code=ErrorCode.INVALID_TIME_RANGE,
            details={"start_time": start, "end_time": end},
        )


class PageSizeExceededError(ValidationError):
    """Requested page size is above the configured cap."""

    def __init__(self, page_size: int, max_page_size: int) -> None:
        super().__init__(
            message=f"Page size {page_size} exceeds the maximum of {max_page_size}",
            error_code=ErrorCode.PAGE_SIZE_EXCEEDED,
            details={"page_size": page_size, "max_page_size": max_page_size},
        )


class InvalidGroupEntriesError(ValidationError):
    """Group edit referenced entries that are missing or owned by someone else."""

    def __init__(self, entry_ids: list[str]) -> None:
        super().__init__(
            message="Some entries cannot be updated; no entries were changed",
            error_code=ErrorCode.INVALID_GROUP_ENTRIES,
            details={"entry_ids": entry_ids},
        )


class InvalidTimezoneError(ValidationError):
    """Unknown IANA timezone name."""

    def __init__(self, timezone_name: str) -> None:
        super().__init__(
            message=f"Unknown timezone: {timezone_name}",
            error_code=ErrorCode.INVALID_TIMEZONE,
            details={"timezone": timezone_name},
        )


class ActiveEntryConflictError(Exception):
    """Another writer inserted an active entry for the same owner first.

    Raised by the entry store when the active-entry uniqueness constraint
    rejects an insert. The lifecycle service retries on it; it never reaches
    an API caller.
    """

    def __init__(self, owner_id: str) -> None:
        self.owner_id = owner_id
        super().__init__(f"Active entry already exists for owner {owner_id}")
