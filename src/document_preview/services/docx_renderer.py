"""Word-processor document rendering into a styled HTML view.

Documents are read with python-docx and walked in body order, so paragraphs
and tables appear in the sequence the author wrote them. Output is written to
the RenderSurface the caller passes in; this module never keeps its own copy.
"""

import html
import io
from collections.abc import Iterator
from typing import Any

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.table import Table
from docx.text.hyperlink import Hyperlink
from docx.text.paragraph import Paragraph
from docx.text.run import Run

from document_preview.preview_document import RenderSurface
from document_preview.utils.exceptions import DocumentRenderError
from document_preview.utils.logging import get_logger, timed_operation

logger = get_logger(__name__)

_ALIGNMENT_CSS: dict[Any, str] = {
    WD_ALIGN_PARAGRAPH.CENTER: "center",
    WD_ALIGN_PARAGRAPH.RIGHT: "right",
    WD_ALIGN_PARAGRAPH.JUSTIFY: "justify",
}


class DocxRenderer:
    """Render DOCX bytes into an HTML document view."""

    def __init__(self, class_name: str = "docx-viewer", in_wrapper: bool = True) -> None:
        """Initialize the renderer.

        Args:
            class_name: CSS class prefix for the rendered document.
            in_wrapper: Wrap the document in an outer ``<div>`` for page styling.
        """
        self.class_name = class_name
        self.in_wrapper = in_wrapper

    def render(self, content: bytes, surface: RenderSurface) -> None:
        """Render a document into the surface.

        Args:
            content: Raw DOCX bytes.
            surface: Output buffer owned by the caller.

        Raises:
            DocumentRenderError: If the content is not a readable document.
        """
        with timed_operation(logger, "render_docx") as metrics:
            metrics.bytes_processed = len(content)
            try:
                document = Document(io.BytesIO(content))
                body = "".join(self._render_blocks(document.iter_inner_content()))
            except Exception as e:
                raise DocumentRenderError(str(e), declared_type="docx") from e
            metrics.custom_metrics["paragraphs"] = len(document.paragraphs)
            metrics.custom_metrics["tables"] = len(document.tables)

        if self.in_wrapper:
            surface.write(f'<div class="{self.class_name}-wrapper">')
        surface.write(f'<section class="{self.class_name}">{body}</section>')
        if self.in_wrapper:
            surface.write("</div>")

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _render_blocks(self, blocks: Iterator[Paragraph | Table]) -> Iterator[str]:
        for block in blocks:
            if isinstance(block, Table):
                yield self._render_table(block)
            else:
                yield self._render_paragraph(block)

    def _render_paragraph(self, paragraph: Paragraph) -> str:
        style_name = paragraph.style.name if paragraph.style is not None else ""
        tag = self._heading_tag(style_name) or "p"

        attrs = ""
        alignment = _ALIGNMENT_CSS.get(paragraph.alignment)
        if alignment:
            attrs = f' style="text-align: {alignment}"'
        if tag == "p" and style_name.startswith("List"):
            attrs += ' class="docx-list-item"'

        inner = "".join(
            self._render_hyperlink(item)
            if isinstance(item, Hyperlink)
            else self._render_run(item)
            for item in paragraph.iter_inner_content()
        )
        return f"<{tag}{attrs}>{inner}</{tag}>"

    @staticmethod
    def _heading_tag(style_name: str) -> str | None:
        if style_name == "Title":
            return "h1"
        if style_name.startswith("Heading "):
            level = style_name.removeprefix("Heading ").strip()
            if level.isdigit():
                return f"h{min(max(int(level), 1), 6)}"
        return None

    @staticmethod
    def _render_run(run: Run) -> str:
        text = html.escape(run.text)
        if not text:
            return ""
        if run.bold:
            text = f"<strong>{text}</strong>"
        if run.italic:
            text = f"<em>{text}</em>"
        if run.underline:
            text = f"<u>{text}</u>"
        return text

    def _render_hyperlink(self, hyperlink: Hyperlink) -> str:
        inner = "".join(self._render_run(run) for run in hyperlink.runs)
        if not hyperlink.url:
            return inner
        href = html.escape(hyperlink.url, quote=True)
        return f'<a href="{href}" target="_blank" rel="noopener noreferrer">{inner}</a>'

    def _render_table(self, table: Table) -> str:
        rows_html: list[str] = []
        for row in table.rows:
            cells_html: list[str] = []
            previous_tc = None
            span = 0
            # Horizontally merged cells repeat in row.cells; collapse into colspan.
            for cell in row.cells:
                if cell._tc is previous_tc:
                    span += 1
                    cells_html[-1] = self._render_cell(cell, span)
                    continue
                previous_tc = cell._tc
                span = 1
                cells_html.append(self._render_cell(cell, span))
            rows_html.append(f"<tr>{''.join(cells_html)}</tr>")
        return f'<table class="docx-table"><tbody>{"".join(rows_html)}</tbody></table>'

    def _render_cell(self, cell: Any, span: int) -> str:
        inner = "".join(self._render_blocks(cell.iter_inner_content()))
        colspan = f' colspan="{span}"' if span > 1 else ""
        return f"<td{colspan}>{inner}</td>"
