"""Shared fixtures for document preview tests."""

from __future__ import annotations

import asyncio
import io
from collections.abc import Callable, Iterable, Iterator

import pytest
from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from openpyxl import Workbook

from document_preview.utils.exceptions import FetchError
from document_preview.utils.logging import clear_context


class StubFetcher:
    """In-memory fetcher keyed by URL.

    Unknown URLs fail like a 404 from the storage provider. A URL can be
    gated so its fetch blocks until the test releases it.
    """

    def __init__(self, files: dict[str, bytes | Exception] | None = None) -> None:
        self.files: dict[str, bytes | Exception] = dict(files or {})
        self.calls: list[str] = []
        self._gates: dict[str, asyncio.Event] = {}

    def gate(self, url: str) -> asyncio.Event:
        event = asyncio.Event()
        self._gates[url] = event
        return event

    async def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        gate = self._gates.get(url)
        if gate is not None:
            await gate.wait()

        result = self.files.get(url)
        if result is None:
            raise FetchError(source_url=url, status_code=404)
        if isinstance(result, Exception):
            raise result
        return result


def build_xlsx(sheets: dict[str, Iterable[Iterable[object]]]) -> bytes:
    """Build an in-memory workbook with one worksheet per entry, in order."""
    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(list(row))
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def build_docx() -> bytes:
    """Build a small document with headings, formatting, a list and a table."""
    document = Document()
    document.add_heading("Quarterly Report", level=0)
    document.add_heading("Summary", level=1)

    paragraph = document.add_paragraph("Revenue was ")
    paragraph.add_run("strong").bold = True
    paragraph.add_run(" and ")
    paragraph.add_run("steady").italic = True
    paragraph.add_run(".")

    centered = document.add_paragraph("Centered note")
    centered.alignment = WD_ALIGN_PARAGRAPH.CENTER

    document.add_paragraph("First item", style="List Bullet")

    table = document.add_table(rows=2, cols=2)
    merged = table.cell(0, 0).merge(table.cell(0, 1))
    merged.paragraphs[0].text = "Totals"
    table.cell(1, 0).text = "Q1"
    table.cell(1, 1).text = "<100>"

    document.add_paragraph("Closing remarks")

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def _clear_log_context() -> Iterator[None]:
    clear_context()
    yield
    clear_context()


@pytest.fixture
def xlsx_bytes() -> bytes:
    """Workbook with two sheets: Budget (3 rows) and Notes (1 row)."""
    return build_xlsx(
        {
            "Budget": [["Item", "Cost"], ["Paper", 12], ["Ink", 30.5]],
            "Notes": [["Reviewed"]],
        }
    )


@pytest.fixture
def docx_bytes() -> bytes:
    return build_docx()


@pytest.fixture
def csv_bytes() -> bytes:
    return b'name,score\n"Ada",91\nGrace,88'


@pytest.fixture
def stub_fetcher(
    xlsx_bytes: bytes, docx_bytes: bytes, csv_bytes: bytes
) -> StubFetcher:
    """Fetcher serving one file per declared type under https://files.test/."""
    return StubFetcher(
        {
            "https://files.test/budget.xlsx": xlsx_bytes,
            "https://files.test/report.docx": docx_bytes,
            "https://files.test/scores.csv": csv_bytes,
            "https://files.test/manual.pdf": b"%PDF-1.4\n%%EOF\n",
            "https://files.test/legacy.doc": b"\xd0\xcf\x11\xe0legacy",
            "https://files.test/notes.txt": b"plain text",
            "https://files.test/broken.xlsx": b"not a workbook",
            "https://files.test/broken.docx": b"not a document",
        }
    )


@pytest.fixture
def make_xlsx() -> Callable[[dict[str, Iterable[Iterable[object]]]], bytes]:
    """Factory for in-memory workbooks, see ``build_xlsx``."""
    return build_xlsx
