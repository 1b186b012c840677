"""HTML rendering of the preview pane and the public view page.

The pane has three visual states: a loading spinner, an error message, or the
rendered content. Content is one of the document view, a sheet grid with tabs
(tabs only when there is more than one sheet), a native PDF embed, or a
fallback link that opens the file externally.
"""

import html
from datetime import date, datetime
from pathlib import PurePosixPath

from document_preview.models import DeclaredType, PreviewKind
from document_preview.preview_document import (
    CellValue,
    PreviewRequest,
    PreviewState,
    RenderSurface,
)
from document_preview.services.format_detector import FILE_ICONS, preview_kind_for

PANE_STYLES = """
.preview-pane { position: relative; min-height: 500px; background: #fff;
  border: 1px solid #e2e8f0; border-radius: 8px; overflow: hidden;
  display: flex; flex-direction: column; }
.preview-overlay { position: absolute; inset: 0; display: flex; align-items: center;
  justify-content: center; flex-direction: column; background: #fff; z-index: 10; }
.preview-spinner { width: 32px; height: 32px; border-radius: 50%;
  border-bottom: 2px solid #2563eb; animation: spin 1s linear infinite; }
@keyframes spin { to { transform: rotate(360deg); } }
.preview-error { color: #ef4444; }
.sheet-tabs { display: flex; gap: 4px; padding: 8px; background: #f1f5f9;
  border-bottom: 1px solid #e2e8f0; overflow-x: auto; }
.sheet-tab { padding: 6px 12px; border: 0; border-radius: 6px; background: none;
  color: #475569; white-space: nowrap; cursor: pointer; }
.sheet-tab.active { background: #fff; color: #2563eb; font-weight: 500; }
.preview-content { flex: 1; overflow: auto; background: #f8fafc; padding: 16px; }
.sheet-grid { width: 100%; border-collapse: collapse; font-size: 14px; }
.sheet-grid td { padding: 4px 8px; border: 1px solid #e2e8f0; max-width: 20rem;
  overflow: hidden; text-overflow: ellipsis; white-space: nowrap; }
.sheet-grid tr.header-row { background: #f1f5f9; font-weight: 600; position: sticky; top: 0; }
.sheet-grid td.row-number { background: #f8fafc; color: #64748b; font-size: 12px;
  text-align: center; width: 40px; }
.sheet-empty { color: #64748b; text-align: center; padding: 32px 0; }
.preview-embed { width: 100%; height: 80vh; border: 0; }
.preview-fallback { display: flex; flex-direction: column; align-items: center;
  padding: 80px 0; color: #64748b; }
.preview-fallback .file-icon { font-size: 96px; margin-bottom: 24px; }
.btn { display: inline-block; padding: 8px 16px; border-radius: 8px; background: #2563eb;
  color: #fff; text-decoration: none; }
"""


def format_cell(value: CellValue) -> str:
    """Format a cell value for display."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, datetime):
        if value.time() == datetime.min.time():
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def type_label(request: PreviewRequest) -> str:
    """Upper-case type label, preferring the display name's own extension."""
    suffix = PurePosixPath(request.display_name).suffix.lstrip(".")
    if request.declared_type is DeclaredType.OTHER and suffix:
        return suffix.upper()
    return request.declared_type.value.upper()


class PaneRenderer:
    """Render a renderer's state as an HTML preview pane."""

    def render(
        self,
        request: PreviewRequest | None,
        state: PreviewState,
        surface: RenderSurface,
    ) -> str:
        """Render the pane for the current state.

        Args:
            request: Current request, or None before the first load.
            state: View-model to render.
            surface: Document output written by the document renderer.

        Returns:
            HTML fragment for the pane.
        """
        parts: list[str] = ['<div class="preview-pane">']

        if state.loading:
            parts.append(
                '<div class="preview-overlay">'
                '<div class="preview-spinner"></div>'
                "<p>Loading preview...</p>"
                "</div>"
            )

        if state.error:
            parts.append(
                '<div class="preview-overlay">'
                f'<p class="preview-error">{html.escape(state.error)}</p>'
                "</div>"
            )

        if len(state.sheets) > 1 and not state.loading:
            parts.append(self._render_tabs(state))

        parts.append('<div class="preview-content">')
        if request is not None and not state.loading and not state.error:
            parts.append(self._render_content(request, state, surface))
        parts.append("</div></div>")
        return "".join(parts)

    def render_view_page(
        self, request: PreviewRequest, pane_html: str, app_name: str
    ) -> str:
        """Render a full public page around a pane.

        Args:
            request: The previewed file.
            pane_html: Output of ``render``.
            app_name: Product name for the footer.

        Returns:
            A complete HTML document.
        """
        name = html.escape(request.display_name or "Document")
        url = html.escape(request.source_url, quote=True)
        icon = FILE_ICONS[request.declared_type]
        return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>{name}</title>
  <style>
    body {{ margin: 0; font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Arial, sans-serif; background: #f1f5f9; color: #0f172a; }}
    .page-header {{ background: #fff; border-bottom: 1px solid #e2e8f0; padding: 16px; }}
    .page-header .inner {{ max-width: 896px; margin: 0 auto; display: flex; align-items: center; justify-content: space-between; gap: 16px; }}
    .page-header h1 {{ font-size: 20px; margin: 0; }}
    .page-header .meta {{ font-size: 14px; color: #64748b; margin: 0; }}
    .page-body {{ max-width: 896px; margin: 0 auto; padding: 16px; }}
    .page-footer {{ text-align: center; padding: 24px 0; font-size: 14px; color: #94a3b8; }}
    {PANE_STYLES}
  </style>
</head>
<body>
  <header class="page-header">
    <div class="inner">
      <div>
        <span class="file-icon">{icon}</span>
        <h1>{name}</h1>
        <p class="meta">{html.escape(type_label(request))}</p>
      </div>
      <a class="btn" href="{url}" target="_blank" rel="noopener noreferrer">Download</a>
    </div>
  </header>
  <main class="page-body">
    {pane_html}
  </main>
  <footer class="page-footer">Shared via {html.escape(app_name)}</footer>
</body>
</html>
"""

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _render_content(
        self,
        request: PreviewRequest,
        state: PreviewState,
        surface: RenderSurface,
    ) -> str:
        kind = preview_kind_for(request.declared_type)
        if kind is PreviewKind.DOCUMENT:
            return surface.content
        if kind is PreviewKind.SPREADSHEET:
            return self._render_grid(state.active_rows)
        if kind is PreviewKind.EMBED:
            return (
                f'<iframe class="preview-embed" '
                f'src="{html.escape(request.source_url, quote=True)}" '
                f'title="{html.escape(request.display_name, quote=True)}"></iframe>'
            )
        return self._render_fallback(request)

    @staticmethod
    def _render_tabs(state: PreviewState) -> str:
        buttons = []
        for index, name in enumerate(state.sheet_names):
            active = " active" if index == state.active_sheet_index else ""
            buttons.append(
                f'<button type="button" class="sheet-tab{active}" '
                f'data-sheet-index="{index}">{html.escape(name)}</button>'
            )
        return f'<nav class="sheet-tabs">{"".join(buttons)}</nav>'

    @staticmethod
    def _render_grid(rows: list[list[CellValue]]) -> str:
        if not rows:
            return '<p class="sheet-empty">No data in this sheet</p>'

        body: list[str] = []
        for row_index, row in enumerate(rows):
            row_class = "header-row" if row_index == 0 else "data-row"
            cells = [f'<td class="row-number">{row_index + 1}</td>']
            for value in row:
                text = html.escape(format_cell(value))
                cells.append(f'<td title="{text}">{text}</td>')
            body.append(f'<tr class="{row_class}">{"".join(cells)}</tr>')
        return (
            '<div class="sheet-scroll"><table class="sheet-grid"><tbody>'
            f"{''.join(body)}"
            "</tbody></table></div>"
        )

    @staticmethod
    def _render_fallback(request: PreviewRequest) -> str:
        url = html.escape(request.source_url, quote=True)
        return (
            '<div class="preview-fallback">'
            f'<span class="file-icon">{FILE_ICONS[request.declared_type]}</span>'
            f"<p>Preview not available for {html.escape(type_label(request))} files</p>"
            f'<a class="btn" href="{url}" target="_blank" rel="noopener noreferrer">'
            "Open File</a>"
            "</div>"
        )
