"""Centralized exception classes for the document preview service.

This module provides a hierarchy of custom exceptions with error codes,
HTTP status code mapping, and structured error details for consistent
error handling throughout the application.

Exception Hierarchy:
    PreviewError (base)
    ├── FetchError
    │   └── FileTooLargeError
    ├── ParseError
    │   ├── DocumentRenderError
    │   ├── SpreadsheetParseError
    │   └── EncodingError
    ├── SessionError
    │   ├── SessionNotFoundError
    │   ├── SessionExpiredError
    │   └── SheetIndexError
    └── ValidationError

Error Codes:
    All errors have a unique error code (e.g., "E1001") that can be used
    for programmatic error handling and documentation.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the application.

    Error codes are grouped by category:
    - E1xxx: Fetch errors
    - E2xxx: Parse/render errors
    - E3xxx: Session errors
    - E4xxx: Request validation errors
    - E9xxx: Internal/unexpected errors
    """

    # Fetch errors (E1xxx)
    FETCH_FAILED = "E1001"
    FILE_TOO_LARGE = "E1002"

    # Parse errors (E2xxx)
    PARSE_FAILED = "E2001"
    DOCUMENT_RENDER_FAILED = "E2002"
    SPREADSHEET_PARSE_FAILED = "E2003"
    ENCODING_ERROR = "E2004"

    # Session errors (E3xxx)
    SESSION_NOT_FOUND = "E3001"
    SESSION_EXPIRED = "E3002"
    INVALID_SHEET_INDEX = "E3003"

    # Validation errors (E4xxx)
    VALIDATION_ERROR = "E4001"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"


class PreviewError(Exception):
    """Base exception for all document preview errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
        http_status: HTTP status code for API responses (default 500).
    """

    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for API responses.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# Fetch Errors (E1xxx)
# =============================================================================


class FetchError(PreviewError):
    """Raised when the source bytes could not be retrieved.

    Covers both non-success responses and transport failures.
    """

    http_status: int = 502

    def __init__(
        self,
        message: str = "Failed to fetch file",
        source_url: str | None = None,
        status_code: int | None = None,
        error_code: ErrorCode = ErrorCode.FETCH_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with source information.

        Args:
            message: Error message.
            source_url: URL that was being fetched.
            status_code: HTTP status returned by the storage provider, if any.
            error_code: Error code.
            details: Additional details.
        """
        details = details or {}
        if source_url:
            details["source_url"] = source_url
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, error_code, details)
        self.source_url = source_url
        self.status_code = status_code


class FileTooLargeError(FetchError):
    """Raised when the fetched body exceeds the maximum preview size."""

    http_status: int = 413

    def __init__(
        self,
        file_size: int,
        max_size: int,
        source_url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with size information.

        Args:
            file_size: Bytes received before the limit was hit.
            max_size: Maximum allowed size in bytes.
            source_url: Optional source URL.
            details: Additional details.
        """
        details = details or {}
        details["file_size_bytes"] = file_size
        details["max_size_bytes"] = max_size
        super().__init__(
            message=(
                f"File size ({file_size} bytes) exceeds maximum "
                f"allowed size ({max_size} bytes)"
            ),
            source_url=source_url,
            error_code=ErrorCode.FILE_TOO_LARGE,
            details=details,
        )
        self.file_size = file_size
        self.max_size = max_size


# =============================================================================
# Parse Errors (E2xxx)
# =============================================================================


class ParseError(PreviewError):
    """Base class for failures raised by a parsing or rendering delegate."""

    http_status: int = 422

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.PARSE_FAILED,
        declared_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the type being parsed.

        Args:
            message: Error message, usually the delegate's own message.
            error_code: Error code.
            declared_type: Declared type of the content.
            details: Additional details.
        """
        details = details or {}
        if declared_type:
            details["declared_type"] = declared_type
        super().__init__(message, error_code, details)
        self.declared_type = declared_type


class DocumentRenderError(ParseError):
    """Raised when a word-processor document cannot be rendered."""

    def __init__(
        self,
        message: str,
        declared_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            error_code=ErrorCode.DOCUMENT_RENDER_FAILED,
            declared_type=declared_type,
            details=details,
        )


class SpreadsheetParseError(ParseError):
    """Raised when a workbook or delimited file cannot be parsed."""

    def __init__(
        self,
        message: str,
        declared_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            error_code=ErrorCode.SPREADSHEET_PARSE_FAILED,
            declared_type=declared_type,
            details=details,
        )


class EncodingError(ParseError):
    """Raised when delimited text content cannot be decoded."""

    def __init__(
        self,
        message: str,
        encoding: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with encoding information.

        Args:
            message: Error message.
            encoding: The encoding that caused the error.
            details: Additional details.
        """
        details = details or {}
        if encoding:
            details["encoding"] = encoding
        super().__init__(
            message,
            error_code=ErrorCode.ENCODING_ERROR,
            declared_type="csv",
            details=details,
        )
        self.encoding = encoding


# =============================================================================
# Session Errors (E3xxx)
# =============================================================================


class SessionError(PreviewError):
    """Base class for preview session errors."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.SESSION_NOT_FOUND,
        session_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if session_id:
            details["session_id"] = session_id
        super().__init__(message, error_code, details)
        self.session_id = session_id


class SessionNotFoundError(SessionError):
    """Raised when a session ID is not known."""

    http_status: int = 404

    def __init__(self, session_id: str) -> None:
        super().__init__(
            f"Session not found: {session_id}",
            error_code=ErrorCode.SESSION_NOT_FOUND,
            session_id=session_id,
        )


class SessionExpiredError(SessionError):
    """Raised when a session has been idle past its TTL."""

    http_status: int = 410

    def __init__(self, session_id: str) -> None:
        super().__init__(
            f"Session has expired: {session_id}",
            error_code=ErrorCode.SESSION_EXPIRED,
            session_id=session_id,
        )


class SheetIndexError(SessionError):
    """Raised when a sheet switch targets an index outside the collection."""

    http_status: int = 400

    def __init__(
        self,
        index: int,
        sheet_count: int,
        session_id: str | None = None,
    ) -> None:
        """Initialize with index information.

        Args:
            index: Requested sheet index.
            sheet_count: Number of sheets currently loaded.
            session_id: Optional session the switch was requested on.
        """
        super().__init__(
            f"Sheet index {index} is out of range for {sheet_count} sheet(s)",
            error_code=ErrorCode.INVALID_SHEET_INDEX,
            session_id=session_id,
            details={"index": index, "sheet_count": sheet_count},
        )
        self.index = index
        self.sheet_count = sheet_count


# =============================================================================
# Validation Errors (E4xxx)
# =============================================================================


class ValidationError(PreviewError):
    """Raised when request input fails validation."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)
        self.field = field
