"""Spreadsheet and delimited-text parsing into sheet grids.

XLSX workbooks are read with openpyxl, legacy XLS workbooks with xlrd. CSV
content is split naively on newlines and commas: quoted fields containing
commas, quotes or newlines are not handled, matching the viewer's long-standing
behaviour.
"""

from __future__ import annotations

import io
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import chardet
import xlrd
from openpyxl import load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from document_preview.models import DeclaredType
from document_preview.preview_document import CellValue, Sheet, SheetCollection
from document_preview.utils.exceptions import EncodingError, SpreadsheetParseError
from document_preview.utils.logging import get_logger, timed_operation

logger = get_logger(__name__)

_SURROUNDING_QUOTE = re.compile(r'^"|"\Z')


@dataclass
class SpreadsheetParseOptions:
    """Options controlling how much of a workbook is read."""

    max_rows: int | None = None
    max_columns: int | None = None


class SpreadsheetParser:
    """Parse workbook and CSV bytes into an ordered SheetCollection."""

    CSV_SHEET_NAME = "Sheet1"

    def __init__(self, options: SpreadsheetParseOptions | None = None) -> None:
        self.options = options or SpreadsheetParseOptions()

    def parse(self, declared_type: DeclaredType, content: bytes) -> SheetCollection:
        """Parse content according to its declared spreadsheet type.

        Args:
            declared_type: One of XLSX, XLS or CSV.
            content: Raw file bytes.

        Returns:
            Sheets in the workbook's original order.

        Raises:
            SpreadsheetParseError: If the content cannot be parsed, or the
                type is not a spreadsheet type.
            EncodingError: If CSV content cannot be decoded.
        """
        if declared_type is DeclaredType.XLSX:
            return self.parse_xlsx(content)
        if declared_type is DeclaredType.XLS:
            return self.parse_xls(content)
        if declared_type is DeclaredType.CSV:
            return self.parse_csv(content)
        raise SpreadsheetParseError(
            f"Not a spreadsheet type: {declared_type.value}",
            declared_type=declared_type.value,
        )

    def parse_xlsx(self, content: bytes) -> SheetCollection:
        """Parse an Office Open XML workbook with openpyxl."""
        with timed_operation(logger, "parse_xlsx") as metrics:
            metrics.bytes_processed = len(content)
            try:
                workbook = load_workbook(
                    filename=io.BytesIO(content), data_only=True, read_only=False
                )
            except Exception as e:
                raise SpreadsheetParseError(str(e), declared_type="xlsx") from e

            # Chart sheets are listed as tabs but carry no cells.
            sheets: SheetCollection = []
            try:
                for name in workbook.sheetnames:
                    sheet = workbook[name]
                    rows = (
                        sheet.iter_rows(
                            max_row=self.options.max_rows,
                            max_col=self.options.max_columns,
                            values_only=True,
                        )
                        if isinstance(sheet, Worksheet)
                        else []
                    )
                    sheets.append(self._build_sheet(name, rows))
            finally:
                workbook.close()

            metrics.sheets_parsed = len(sheets)
            metrics.rows_parsed = sum(sheet.row_count for sheet in sheets)
        return sheets

    def parse_xls(self, content: bytes) -> SheetCollection:
        """Parse a legacy BIFF workbook with xlrd."""
        with timed_operation(logger, "parse_xls") as metrics:
            metrics.bytes_processed = len(content)
            try:
                book = xlrd.open_workbook(file_contents=content)
            except Exception as e:
                raise SpreadsheetParseError(str(e), declared_type="xls") from e

            sheets: SheetCollection = []
            for xl_sheet in book.sheets():
                row_limit = xl_sheet.nrows
                if self.options.max_rows is not None:
                    row_limit = min(row_limit, self.options.max_rows)
                rows = (
                    [
                        self._xls_cell_value(cell, book.datemode)
                        for cell in xl_sheet.row(row_index)[: self.options.max_columns]
                    ]
                    for row_index in range(row_limit)
                )
                sheets.append(self._build_sheet(xl_sheet.name, rows))

            metrics.sheets_parsed = len(sheets)
            metrics.rows_parsed = sum(sheet.row_count for sheet in sheets)
        return sheets

    def parse_csv(self, content: bytes) -> SheetCollection:
        """Split delimited text into a single sheet named ``Sheet1``."""
        with timed_operation(logger, "parse_csv") as metrics:
            metrics.bytes_processed = len(content)
            text = self.decode_text(content)
            rows: list[list[CellValue]] = [
                [_SURROUNDING_QUOTE.sub("", cell.strip()) for cell in line.split(",")]
                for line in text.split("\n")
            ]
            metrics.sheets_parsed = 1
            metrics.rows_parsed = len(rows)
        return [Sheet(name=self.CSV_SHEET_NAME, rows=rows)]

    @staticmethod
    def decode_text(content: bytes) -> str:
        """Decode text as UTF-8, falling back to a chardet guess.

        Raises:
            EncodingError: If no usable encoding can be determined.
        """
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError:
            pass

        detection = chardet.detect(content)
        encoding = detection.get("encoding")
        if not encoding:
            raise EncodingError("Unable to detect text encoding")

        logger.debug(
            "CSV content is not UTF-8, using detected encoding",
            encoding=encoding,
            confidence=detection.get("confidence"),
        )
        try:
            return content.decode(encoding)
        except (UnicodeDecodeError, LookupError) as e:
            raise EncodingError(str(e), encoding=encoding) from e

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _build_sheet(name: str, rows: Iterable[Sequence[Any]]) -> Sheet:
        """Build a rectangular sheet; a sheet without any value is empty."""
        grid: list[list[CellValue]] = [list(row) for row in rows]
        if all(value is None for row in grid for value in row):
            return Sheet(name=name, rows=[])

        width = max(len(row) for row in grid)
        for row in grid:
            row.extend([None] * (width - len(row)))
        return Sheet(name=name, rows=grid)

    @staticmethod
    def _xls_cell_value(cell: xlrd.sheet.Cell, datemode: int) -> CellValue:
        """Map an xlrd cell onto a plain Python value."""
        if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
            return None
        if cell.ctype == xlrd.XL_CELL_BOOLEAN:
            return bool(cell.value)
        if cell.ctype == xlrd.XL_CELL_DATE:
            try:
                return xlrd.xldate.xldate_as_datetime(cell.value, datemode)
            except xlrd.xldate.XLDateError:
                return cell.value
        if cell.ctype == xlrd.XL_CELL_NUMBER:
            number = float(cell.value)
            return int(number) if number.is_integer() else number
        if cell.ctype == xlrd.XL_CELL_ERROR:
            return xlrd.error_text_from_code.get(cell.value, "#ERR")
        return cell.value
