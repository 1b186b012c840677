"""Pydantic models and enums shared by the API and the preview services."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from document_preview.utils.exceptions import ErrorCode


class DeclaredType(str, Enum):
    """Closed set of file type tags a preview can be requested for."""

    PDF = "pdf"
    DOC = "doc"
    DOCX = "docx"
    XLS = "xls"
    XLSX = "xlsx"
    CSV = "csv"
    OTHER = "other"


class PreviewKind(str, Enum):
    """How a declared type is presented in the preview pane."""

    DOCUMENT = "document"
    SPREADSHEET = "spreadsheet"
    EMBED = "embed"
    FALLBACK = "fallback"


class FormatInfo(BaseModel):
    """Result of resolving a request's declared type."""

    declared_type: DeclaredType = Field(..., description="Resolved type tag")
    preview_kind: PreviewKind = Field(
        ..., description="Presentation used for the resolved type"
    )
    resolved_from: str = Field(
        ...,
        description="Which input decided the type: tag, mime_type, filename, url",
    )


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: str
    version: str


class PreviewRequestBody(BaseModel):
    """Body accepted by the one-shot preview and session endpoints."""

    source_url: str = Field(
        ..., min_length=1, description="URL resolving to the file bytes"
    )
    file_type: str | None = Field(
        default=None,
        description="Type tag such as 'xlsx'; inferred from name or URL if omitted",
    )
    mime_type: str | None = Field(
        default=None, description="Optional MIME type reported by storage"
    )
    display_name: str = Field(default="", description="Name shown to the user")


class PreviewStateResponse(BaseModel):
    """Snapshot of a preview's state for API clients."""

    source_url: str | None = Field(default=None, description="Fetched URL")
    declared_type: DeclaredType | None = Field(
        default=None, description="Declared type of the current request"
    )
    display_name: str = Field(default="", description="Name shown to the user")
    preview_kind: PreviewKind | None = Field(
        default=None, description="Presentation used for the declared type"
    )
    loading: bool = Field(..., description="Whether a load is in flight")
    error: str | None = Field(default=None, description="User-visible error")
    active_sheet_index: int = Field(default=0, description="Selected sheet")
    sheet_names: list[str] = Field(
        default_factory=list, description="Sheet names in workbook order"
    )
    active_rows: list[list[Any]] = Field(
        default_factory=list, description="Rows of the selected sheet"
    )
    document_html: str | None = Field(
        default=None, description="Rendered document view for word-processor files"
    )
    embed_url: str | None = Field(
        default=None, description="URL to embed natively (PDF)"
    )


class SessionResponse(PreviewStateResponse):
    """Preview state plus session bookkeeping."""

    session_id: str = Field(..., description="Preview session identifier")
    created_at: datetime = Field(..., description="When the session was created")
    updated_at: datetime = Field(..., description="Last time the session was used")


class ErrorDetail(BaseModel):
    """Error detail model for API error responses."""

    detail: str = Field(..., description="Human-readable error message")
    error_code: str | None = Field(
        default=None,
        description="Machine-readable error code (e.g., 'E1001')",
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details for debugging",
    )
    request_id: str | None = Field(
        default=None,
        description="Request ID for error correlation",
    )

    @classmethod
    def from_error_code(
        cls,
        error_code: ErrorCode,
        detail: str,
        details: dict[str, Any] | None = None,
        request_id: str | None = None,
    ) -> "ErrorDetail":
        """Create an ErrorDetail from an ErrorCode enum value."""
        return cls(
            detail=detail,
            error_code=error_code.value,
            details=details,
            request_id=request_id,
        )
