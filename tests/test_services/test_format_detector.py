"""Tests for declared type resolution and classification."""

import pytest

from document_preview.models import DeclaredType, PreviewKind
from document_preview.services.format_detector import (
    DECLARED_TYPE_TO_PREVIEW_KIND,
    FILE_ICONS,
    FormatDetector,
    preview_kind_for,
)


@pytest.fixture
def detector() -> FormatDetector:
    return FormatDetector()


class TestPreviewKind:
    """Tests for the declared type to presentation mapping."""

    @pytest.mark.parametrize(
        ("declared_type", "expected"),
        [
            (DeclaredType.DOCX, PreviewKind.DOCUMENT),
            (DeclaredType.XLSX, PreviewKind.SPREADSHEET),
            (DeclaredType.XLS, PreviewKind.SPREADSHEET),
            (DeclaredType.CSV, PreviewKind.SPREADSHEET),
            (DeclaredType.PDF, PreviewKind.EMBED),
            (DeclaredType.DOC, PreviewKind.FALLBACK),
            (DeclaredType.OTHER, PreviewKind.FALLBACK),
        ],
    )
    def test_mapping(self, declared_type: DeclaredType, expected: PreviewKind) -> None:
        """Each declared type has exactly one presentation."""
        assert preview_kind_for(declared_type) is expected

    def test_every_type_is_mapped(self) -> None:
        """The mapping and icon tables cover the whole enum."""
        assert set(DECLARED_TYPE_TO_PREVIEW_KIND) == set(DeclaredType)
        assert set(FILE_ICONS) == set(DeclaredType)


class TestResolve:
    """Tests for FormatDetector.resolve."""

    @pytest.mark.parametrize("tag", ["xlsx", "XLSX", ".xlsx", "  xlsx "])
    def test_tag_is_normalized(self, detector: FormatDetector, tag: str) -> None:
        """Tags are matched case-insensitively with an optional dot."""
        info = detector.resolve(tag)

        assert info.declared_type is DeclaredType.XLSX
        assert info.preview_kind is PreviewKind.SPREADSHEET
        assert info.resolved_from == "tag"

    def test_tag_wins_over_other_inputs(self, detector: FormatDetector) -> None:
        """An explicit tag beats the MIME type, name and URL."""
        info = detector.resolve(
            "csv",
            mime_type="application/pdf",
            filename="report.docx",
            source_url="https://files.test/a.xlsx",
        )

        assert info.declared_type is DeclaredType.CSV

    def test_mime_type_with_parameters(self, detector: FormatDetector) -> None:
        """MIME parameters such as charset are ignored."""
        info = detector.resolve(mime_type="text/csv; charset=utf-8")

        assert info.declared_type is DeclaredType.CSV
        assert info.resolved_from == "mime_type"

    def test_office_mime_types(self, detector: FormatDetector) -> None:
        """Office Open XML MIME types resolve to their types."""
        docx = detector.resolve(
            mime_type=(
                "application/vnd.openxmlformats-officedocument."
                "wordprocessingml.document"
            )
        )
        xls = detector.resolve(mime_type="application/vnd.ms-excel")

        assert docx.declared_type is DeclaredType.DOCX
        assert xls.declared_type is DeclaredType.XLS

    def test_filename_extension(self, detector: FormatDetector) -> None:
        """The display name's extension is used when no tag is given."""
        info = detector.resolve(filename="Minutes.DOCX")

        assert info.declared_type is DeclaredType.DOCX
        assert info.resolved_from == "filename"

    def test_url_path_extension(self, detector: FormatDetector) -> None:
        """The URL path is the last resort; query strings are ignored."""
        info = detector.resolve(
            source_url="https://res.files.test/raw/upload/v1/My%20Budget.xls?dl=1"
        )

        assert info.declared_type is DeclaredType.XLS
        assert info.resolved_from == "url"

    def test_unknown_inputs_resolve_to_other(self, detector: FormatDetector) -> None:
        """Nothing recognizable falls back to OTHER, never an error."""
        info = detector.resolve(
            "pptx", filename="slides.pptx", source_url="https://files.test/x"
        )

        assert info.declared_type is DeclaredType.OTHER
        assert info.preview_kind is PreviewKind.FALLBACK
        assert info.resolved_from == "default"

    def test_no_inputs(self, detector: FormatDetector) -> None:
        """Resolving with nothing at all gives OTHER."""
        assert detector.resolve().declared_type is DeclaredType.OTHER

