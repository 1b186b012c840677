"""Tests for the centralized exception classes."""

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


class TestErrorCode:
    """Tests for ErrorCode enumeration."""

    def test_error_codes_are_unique(self) -> None:
        """All error codes should have unique values."""
        values = [code.value for code in ErrorCode]
        assert len(values) == len(set(values))

    def test_error_code_format(self) -> None:
        """Error codes should follow Exxxx format."""
        for code in ErrorCode:
            assert code.value.startswith("E")
            assert len(code.value) == 5
            assert code.value[1:].isdigit()

    def test_categories(self) -> None:
        """Codes are grouped by category prefix."""
        assert ErrorCode.FETCH_FAILED.value.startswith("E1")
        assert ErrorCode.FILE_TOO_LARGE.value.startswith("E1")
        assert ErrorCode.SPREADSHEET_PARSE_FAILED.value.startswith("E2")
        assert ErrorCode.ENCODING_ERROR.value.startswith("E2")
        assert ErrorCode.SESSION_NOT_FOUND.value.startswith("E3")
        assert ErrorCode.INVALID_SHEET_INDEX.value.startswith("E3")
        assert ErrorCode.VALIDATION_ERROR.value.startswith("E4")
        assert ErrorCode.INTERNAL_ERROR.value.startswith("E9")


class TestPreviewError:
    """Tests for the base exception."""

    def test_defaults(self) -> None:
        error = PreviewError("Something went wrong")

        assert error.message == "Something went wrong"
        assert error.error_code == ErrorCode.INTERNAL_ERROR
        assert error.details == {}
        assert error.http_status == 500

    def test_str_includes_code(self) -> None:
        error = PreviewError("Boom", ErrorCode.FETCH_FAILED)

        assert str(error) == "[E1001] Boom"

    def test_to_dict(self) -> None:
        """to_dict omits empty details."""
        assert PreviewError("Boom").to_dict() == {
            "error_code": "E9001",
            "message": "Boom",
        }
        assert PreviewError("Boom", details={"k": 1}).to_dict()["details"] == {"k": 1}


class TestFetchErrors:
    """Tests for fetch errors."""

    def test_fetch_error_default_message(self) -> None:
        """The default message is the user-visible fetch failure text."""
        error = FetchError(source_url="https://files.test/a.pdf", status_code=404)

        assert error.message == "Failed to fetch file"
        assert error.http_status == 502
        assert error.details == {
            "source_url": "https://files.test/a.pdf",
            "status_code": 404,
        }

    def test_file_too_large(self) -> None:
        error = FileTooLargeError(file_size=2048, max_size=1024)

        assert isinstance(error, FetchError)
        assert error.error_code == ErrorCode.FILE_TOO_LARGE
        assert error.http_status == 413
        assert error.details["file_size_bytes"] == 2048
        assert error.details["max_size_bytes"] == 1024
        assert "2048" in error.message


class TestParseErrors:
    """Tests for parse and render errors."""

    def test_hierarchy(self) -> None:
        """All delegate failures are ParseErrors."""
        for error in (
            DocumentRenderError("bad zip", declared_type="docx"),
            SpreadsheetParseError("bad sheet", declared_type="xlsx"),
            EncodingError("undecodable"),
        ):
            assert isinstance(error, ParseError)
            assert error.http_status == 422

    def test_codes(self) -> None:
        assert DocumentRenderError("x").error_code == ErrorCode.DOCUMENT_RENDER_FAILED
        assert SpreadsheetParseError("x").error_code == (
            ErrorCode.SPREADSHEET_PARSE_FAILED
        )

    def test_encoding_error_details(self) -> None:
        error = EncodingError("cannot decode", encoding="cp1252")

        assert error.encoding == "cp1252"
        assert error.details == {"declared_type": "csv", "encoding": "cp1252"}


class TestSessionErrors:
    """Tests for session errors."""

    def test_not_found(self) -> None:
        error = SessionNotFoundError("abc")

        assert isinstance(error, SessionError)
        assert error.http_status == 404
        assert error.session_id == "abc"
        assert "abc" in error.message

    def test_expired(self) -> None:
        error = SessionExpiredError("abc")

        assert error.http_status == 410
        assert error.error_code == ErrorCode.SESSION_EXPIRED

    def test_sheet_index(self) -> None:
        """SheetIndexError carries the index and the sheet count."""
        error = SheetIndexError(index=4, sheet_count=2, session_id="abc")

        assert error.http_status == 400
        assert error.index == 4
        assert error.sheet_count == 2
        assert error.details == {"index": 4, "sheet_count": 2, "session_id": "abc"}


def test_validation_error() -> None:
    error = ValidationError("source_url must be http(s)", field="source_url")

    assert error.http_status == 400
    assert error.error_code == ErrorCode.VALIDATION_ERROR
    assert error.details == {"field": "source_url"}
