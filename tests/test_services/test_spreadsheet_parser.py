"""Tests for the spreadsheet and CSV parser."""

from __future__ import annotations

import io
from collections.abc import Callable
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
import xlrd
from openpyxl import Workbook
from openpyxl.chart import BarChart, Reference
from xlrd.sheet import Cell

from document_preview.models import DeclaredType
from document_preview.services.spreadsheet_parser import (
    SpreadsheetParseOptions,
    SpreadsheetParser,
)
from document_preview.utils.exceptions import (
    EncodingError,
    ErrorCode,
    SpreadsheetParseError,
)


def _mock_xls_book(sheets: dict[str, list[list[Cell]]]) -> MagicMock:
    book = MagicMock()
    book.datemode = 0
    xl_sheets = []
    for name, rows in sheets.items():
        xl_sheet = MagicMock()
        xl_sheet.name = name
        xl_sheet.nrows = len(rows)
        xl_sheet.row.side_effect = lambda index, rows=rows: rows[index]
        xl_sheets.append(xl_sheet)
    book.sheets.return_value = xl_sheets
    return book


class TestParseXlsx:
    """Tests for Office Open XML workbooks."""

    def test_sheets_keep_workbook_order(self, xlsx_bytes: bytes) -> None:
        """Sheets come back in the workbook's order with their names."""
        sheets = SpreadsheetParser().parse(DeclaredType.XLSX, xlsx_bytes)

        assert [sheet.name for sheet in sheets] == ["Budget", "Notes"]

    def test_cell_values_keep_types(self, xlsx_bytes: bytes) -> None:
        """Numbers stay numbers and the header stays part of the rows."""
        budget = SpreadsheetParser().parse(DeclaredType.XLSX, xlsx_bytes)[0]

        assert budget.rows == [["Item", "Cost"], ["Paper", 12], ["Ink", 30.5]]
        assert budget.header_row == ["Item", "Cost"]
        assert budget.row_count == 3
        assert budget.column_count == 2

    def test_dates_are_returned_as_datetimes(
        self, make_xlsx: Callable[..., bytes]
    ) -> None:
        """Date cells come back as datetime values."""
        content = make_xlsx({"Dates": [["When"], [datetime(2024, 1, 15)]]})

        sheet = SpreadsheetParser().parse_xlsx(content)[0]

        assert sheet.rows[1][0] == datetime(2024, 1, 15)

    def test_empty_sheet_has_no_rows(self, make_xlsx: Callable[..., bytes]) -> None:
        """A worksheet without values parses to an empty grid."""
        content = make_xlsx({"Data": [["a"]], "Blank": []})

        sheets = SpreadsheetParser().parse_xlsx(content)

        assert sheets[1].name == "Blank"
        assert sheets[1].rows == []

    def test_chart_sheets_are_listed_as_empty_tabs(self) -> None:
        """Chart sheets keep their place in the tab order with no rows."""
        workbook = Workbook()
        budget = workbook.active
        budget.title = "Budget"
        budget.append(["Item", "Cost"])
        budget.append(["Paper", 12])
        chart = BarChart()
        chart.add_data(Reference(budget, min_col=2, min_row=1, max_row=2))
        workbook.create_chartsheet("Chart").add_chart(chart)
        workbook.create_sheet("Notes").append(["Reviewed"])
        buffer = io.BytesIO()
        workbook.save(buffer)

        sheets = SpreadsheetParser().parse_xlsx(buffer.getvalue())

        assert [sheet.name for sheet in sheets] == ["Budget", "Chart", "Notes"]
        assert sheets[1].rows == []
        assert sheets[2].rows == [["Reviewed"]]

    def test_ragged_rows_are_padded(self, make_xlsx: Callable[..., bytes]) -> None:
        """Shorter rows are padded with None to the sheet width."""
        content = make_xlsx({"Data": [["a", "b", "c"], ["d"]]})

        sheet = SpreadsheetParser().parse_xlsx(content)[0]

        assert sheet.rows == [["a", "b", "c"], ["d", None, None]]

    def test_max_rows_limits_output(self, make_xlsx: Callable[..., bytes]) -> None:
        """The max_rows option stops reading after that many rows."""
        content = make_xlsx({"Data": [[1], [2], [3], [4]]})
        parser = SpreadsheetParser(SpreadsheetParseOptions(max_rows=2))

        sheet = parser.parse_xlsx(content)[0]

        assert sheet.rows == [[1], [2]]

    def test_corrupt_content_raises_parse_error(self) -> None:
        """Unreadable bytes raise SpreadsheetParseError."""
        with pytest.raises(SpreadsheetParseError) as exc_info:
            SpreadsheetParser().parse(DeclaredType.XLSX, b"not a workbook")

        assert exc_info.value.error_code == ErrorCode.SPREADSHEET_PARSE_FAILED
        assert exc_info.value.details["declared_type"] == "xlsx"


class TestParseXls:
    """Tests for legacy BIFF workbooks."""

    def test_cells_are_mapped_to_python_values(self) -> None:
        """xlrd cell types map onto plain values."""
        book = _mock_xls_book(
            {
                "Ledger": [
                    [
                        Cell(xlrd.XL_CELL_TEXT, "Name"),
                        Cell(xlrd.XL_CELL_NUMBER, 3.0),
                        Cell(xlrd.XL_CELL_NUMBER, 2.5),
                        Cell(xlrd.XL_CELL_BOOLEAN, 1),
                        Cell(xlrd.XL_CELL_DATE, 45306.0),
                        Cell(xlrd.XL_CELL_EMPTY, ""),
                        Cell(xlrd.XL_CELL_ERROR, 0x07),
                    ]
                ]
            }
        )
        with patch(
            "document_preview.services.spreadsheet_parser.xlrd.open_workbook",
            return_value=book,
        ) as open_workbook:
            sheets = SpreadsheetParser().parse(DeclaredType.XLS, b"xls-bytes")

        open_workbook.assert_called_once_with(file_contents=b"xls-bytes")
        assert sheets[0].name == "Ledger"
        assert sheets[0].rows == [
            ["Name", 3, 2.5, True, datetime(2024, 1, 15), None, "#DIV/0!"]
        ]

    def test_sheet_order_is_preserved(self) -> None:
        """Sheets come back in workbook order."""
        book = _mock_xls_book(
            {
                "First": [[Cell(xlrd.XL_CELL_TEXT, "a")]],
                "Second": [[Cell(xlrd.XL_CELL_TEXT, "b")]],
            }
        )
        with patch(
            "document_preview.services.spreadsheet_parser.xlrd.open_workbook",
            return_value=book,
        ):
            sheets = SpreadsheetParser().parse_xls(b"xls-bytes")

        assert [sheet.name for sheet in sheets] == ["First", "Second"]

    def test_corrupt_content_raises_parse_error(self) -> None:
        """Bytes that are not a BIFF workbook raise SpreadsheetParseError."""
        with pytest.raises(SpreadsheetParseError):
            SpreadsheetParser().parse(DeclaredType.XLS, b"definitely not xls")


class TestParseCsv:
    """Tests for the naive delimited-text split."""

    def test_surrounding_quotes_are_stripped(self) -> None:
        """Quotes around a cell are removed; the result is one sheet."""
        sheets = SpreadsheetParser().parse(DeclaredType.CSV, b'a,b\n"c",d')

        assert len(sheets) == 1
        assert sheets[0].name == "Sheet1"
        assert sheets[0].rows == [["a", "b"], ["c", "d"]]

    def test_cells_stay_strings(self, csv_bytes: bytes) -> None:
        """CSV cells are never converted to numbers."""
        sheet = SpreadsheetParser().parse_csv(csv_bytes)[0]

        assert sheet.rows == [["name", "score"], ["Ada", "91"], ["Grace", "88"]]

    def test_quoted_commas_are_split(self) -> None:
        """Commas inside quotes still split the cell."""
        sheet = SpreadsheetParser().parse_csv(b'"Smith, J",42')[0]

        assert sheet.rows == [["Smith", "J", "42"]]

    def test_trailing_newline_yields_blank_row(self) -> None:
        """A trailing newline produces a final single-cell blank row."""
        sheet = SpreadsheetParser().parse_csv(b"a,b\n")[0]

        assert sheet.rows == [["a", "b"], [""]]

    def test_crlf_line_endings(self) -> None:
        """Carriage returns are trimmed with the surrounding blanks."""
        sheet = SpreadsheetParser().parse_csv(b"a, b \r\nc,d\r\n")[0]

        assert sheet.rows[:2] == [["a", "b"], ["c", "d"]]

    def test_utf8_bom_is_dropped(self) -> None:
        """A UTF-8 byte order mark does not leak into the first cell."""
        sheet = SpreadsheetParser().parse_csv(b"\xef\xbb\xbfname,city")[0]

        assert sheet.rows == [["name", "city"]]

    def test_non_utf8_falls_back_to_detected_encoding(self) -> None:
        """Content that is not UTF-8 is decoded with the detected encoding."""
        with patch(
            "document_preview.services.spreadsheet_parser.chardet.detect",
            return_value={"encoding": "latin-1", "confidence": 0.73},
        ):
            sheet = SpreadsheetParser().parse_csv(b"caf\xe9,na\xefve")[0]

        assert sheet.rows == [["café", "naïve"]]

    def test_undetectable_encoding_raises(self) -> None:
        """EncodingError is raised when no encoding can be detected."""
        with (
            patch(
                "document_preview.services.spreadsheet_parser.chardet.detect",
                return_value={"encoding": None, "confidence": 0.0},
            ),
            pytest.raises(EncodingError) as exc_info,
        ):
            SpreadsheetParser().parse_csv(b"\xff\xfe\xfa")

        assert exc_info.value.error_code == ErrorCode.ENCODING_ERROR


class TestParseDispatch:
    """Tests for declared type dispatch."""

    @pytest.mark.parametrize(
        "declared_type",
        [DeclaredType.PDF, DeclaredType.DOCX, DeclaredType.DOC, DeclaredType.OTHER],
    )
    def test_non_spreadsheet_types_are_rejected(
        self, declared_type: DeclaredType
    ) -> None:
        """Only XLSX, XLS and CSV can be parsed."""
        with pytest.raises(SpreadsheetParseError):
            SpreadsheetParser().parse(declared_type, b"irrelevant")
