"""Dataclasses representing a preview request and its view-model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from document_preview.models import DeclaredType
from document_preview.utils.exceptions import SheetIndexError

CellValue = str | int | float | bool | datetime | None


@dataclass(frozen=True)
class PreviewRequest:
    """A single file to preview. Immutable once created."""

    source_url: str
    declared_type: DeclaredType
    display_name: str = ""


@dataclass
class Sheet:
    """A named grid of rows within a workbook."""

    name: str
    rows: list[list[CellValue]]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return max((len(row) for row in self.rows), default=0)

    @property
    def header_row(self) -> list[CellValue] | None:
        """First row, styled as a header. It stays part of ``rows``."""
        return self.rows[0] if self.rows else None


SheetCollection = list[Sheet]


@dataclass
class PreviewState:
    """Mutable view-model owned by a single renderer.

    Only the transition methods below mutate it. ``active_sheet_index`` is
    always a valid index into ``sheets``, or 0 when there are no sheets.
    """

    loading: bool = False
    error: str | None = None
    active_sheet_index: int = 0
    sheets: SheetCollection = field(default_factory=list)

    @property
    def active_sheet(self) -> Sheet | None:
        if not self.sheets:
            return None
        return self.sheets[self.active_sheet_index]

    @property
    def active_rows(self) -> list[list[CellValue]]:
        sheet = self.active_sheet
        return sheet.rows if sheet is not None else []

    @property
    def sheet_names(self) -> list[str]:
        return [sheet.name for sheet in self.sheets]

    def reset(self) -> None:
        self.loading = False
        self.error = None
        self.active_sheet_index = 0
        self.sheets = []

    def begin_load(self) -> None:
        self.reset()
        self.loading = True

    def fail(self, message: str) -> None:
        self.error = message
        self.loading = False

    def show_document(self) -> None:
        self.loading = False

    def show_sheets(self, sheets: SheetCollection) -> None:
        self.sheets = list(sheets)
        self.active_sheet_index = 0
        self.loading = False

    def show_passthrough(self) -> None:
        """Finish a load that the pane presents without parsing (embed/link)."""
        self.loading = False

    def select_sheet(self, index: int) -> None:
        if not 0 <= index < len(self.sheets):
            raise SheetIndexError(index=index, sheet_count=len(self.sheets))
        self.active_sheet_index = index


class RenderSurface:
    """Owned output buffer the document renderer writes HTML into.

    The renderer acquires it at load start and clears it on supersession
    or close.
    """

    def __init__(self) -> None:
        self._fragments: list[str] = []

    def write(self, fragment: str) -> None:
        self._fragments.append(fragment)

    def clear(self) -> None:
        self._fragments.clear()

    @property
    def content(self) -> str:
        return "".join(self._fragments)

    @property
    def is_empty(self) -> bool:
        return not self._fragments


class CancellationToken:
    """Liveness flag for one load attempt."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def alive(self) -> bool:
        return not self._cancelled
