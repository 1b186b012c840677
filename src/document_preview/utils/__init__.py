"""Utilities package for the document preview service.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from document_preview.utils.exceptions import (
    DocumentRenderError,
    EncodingError,
    ErrorCode,
    FetchError,
    FileTooLargeError,
    ParseError,
    PreviewError,
    SessionError,
    SessionExpiredError,
    SessionNotFoundError,
    SheetIndexError,
    SpreadsheetParseError,
    ValidationError,
)
from document_preview.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Exceptions
    "DocumentRenderError",
    "EncodingError",
    "ErrorCode",
    "FetchError",
    "FileTooLargeError",
    "ParseError",
    "PreviewError",
    "SessionError",
    "SessionExpiredError",
    "SessionNotFoundError",
    "SheetIndexError",
    "SpreadsheetParseError",
    "ValidationError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
