"""Declared type resolution and classification service.

This module maps the loose type information a caller has (a type tag, a
MIME type reported by storage, a display name or the URL itself) onto the
closed DeclaredType enum, and classifies each type into the PreviewKind the
pane uses to present it.
"""

from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

from document_preview.models import DeclaredType, FormatInfo, PreviewKind
from document_preview.utils.logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "FormatDetector",
    "EXTENSION_TO_DECLARED_TYPE",
    "MIME_TO_DECLARED_TYPE",
    "DECLARED_TYPE_TO_PREVIEW_KIND",
    "FILE_ICONS",
    "preview_kind_for",
]


# Mapping of file extensions to declared types
EXTENSION_TO_DECLARED_TYPE: dict[str, DeclaredType] = {
    ".pdf": DeclaredType.PDF,
    ".doc": DeclaredType.DOC,
    ".docx": DeclaredType.DOCX,
    ".xls": DeclaredType.XLS,
    ".xlsx": DeclaredType.XLSX,
    ".csv": DeclaredType.CSV,
}

# MIME types reported by storage providers
MIME_TO_DECLARED_TYPE: dict[str, DeclaredType] = {
    "application/pdf": DeclaredType.PDF,
    "application/msword": DeclaredType.DOC,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": (
        DeclaredType.DOCX
    ),
    "application/vnd.ms-excel": DeclaredType.XLS,
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": (
        DeclaredType.XLSX
    ),
    "text/csv": DeclaredType.CSV,
    "text/x-csv": DeclaredType.CSV,
    "application/csv": DeclaredType.CSV,
}

# Presentation by declared type
DECLARED_TYPE_TO_PREVIEW_KIND: dict[DeclaredType, PreviewKind] = {
    DeclaredType.PDF: PreviewKind.EMBED,
    DeclaredType.DOC: PreviewKind.FALLBACK,
    DeclaredType.DOCX: PreviewKind.DOCUMENT,
    DeclaredType.XLS: PreviewKind.SPREADSHEET,
    DeclaredType.XLSX: PreviewKind.SPREADSHEET,
    DeclaredType.CSV: PreviewKind.SPREADSHEET,
    DeclaredType.OTHER: PreviewKind.FALLBACK,
}

FILE_ICONS: dict[DeclaredType, str] = {
    DeclaredType.PDF: "\U0001f4c4",
    DeclaredType.DOC: "\U0001f4dd",
    DeclaredType.DOCX: "\U0001f4dd",
    DeclaredType.XLS: "\U0001f4ca",
    DeclaredType.XLSX: "\U0001f4ca",
    DeclaredType.CSV: "\U0001f4ca",
    DeclaredType.OTHER: "\U0001f4c1",
}


def preview_kind_for(declared_type: DeclaredType) -> PreviewKind:
    """Get the presentation used for a declared type."""
    return DECLARED_TYPE_TO_PREVIEW_KIND[declared_type]


class FormatDetector:
    """Resolves declared types from tags, MIME types, names and URLs.

    Resolution priority:
    1. An explicit tag ("xlsx", "XLSX", ".xlsx")
    2. The MIME type reported by storage
    3. The extension of the display name
    4. The extension of the URL path
    """

    def resolve(
        self,
        file_type: str | None = None,
        *,
        mime_type: str | None = None,
        filename: str | None = None,
        source_url: str | None = None,
    ) -> FormatInfo:
        """Resolve the declared type for a preview request.

        Args:
            file_type: Type tag supplied by the caller.
            mime_type: MIME type reported by storage.
            filename: Display name of the file.
            source_url: URL the bytes will be fetched from.

        Returns:
            FormatInfo with the declared type and its preview kind. Inputs
            that match nothing resolve to DeclaredType.OTHER.
        """
        candidates: list[tuple[str, DeclaredType | None]] = [
            ("tag", self.from_tag(file_type)),
            ("mime_type", self.from_mime_type(mime_type)),
            ("filename", self.from_filename(filename)),
            ("url", self.from_url(source_url)),
        ]
        for source, declared_type in candidates:
            if declared_type is not None:
                return self._build(declared_type, source)

        if file_type:
            logger.info("Unrecognized file type tag", file_type=file_type)
        return self._build(DeclaredType.OTHER, "default")

    @staticmethod
    def from_tag(tag: str | None) -> DeclaredType | None:
        if not tag:
            return None
        normalized = tag.strip().lower().lstrip(".")
        try:
            return DeclaredType(normalized)
        except ValueError:
            return None

    @staticmethod
    def from_mime_type(mime_type: str | None) -> DeclaredType | None:
        if not mime_type:
            return None
        base = mime_type.split(";", 1)[0].strip().lower()
        return MIME_TO_DECLARED_TYPE.get(base)

    @staticmethod
    def from_filename(filename: str | None) -> DeclaredType | None:
        if not filename:
            return None
        suffix = PurePosixPath(filename).suffix.lower()
        return EXTENSION_TO_DECLARED_TYPE.get(suffix)

    @classmethod
    def from_url(cls, source_url: str | None) -> DeclaredType | None:
        if not source_url:
            return None
        path = unquote(urlparse(source_url).path)
        return cls.from_filename(path)

    @staticmethod
    def _build(declared_type: DeclaredType, source: str) -> FormatInfo:
        return FormatInfo(
            declared_type=declared_type,
            preview_kind=preview_kind_for(declared_type),
            resolved_from=source,
        )
