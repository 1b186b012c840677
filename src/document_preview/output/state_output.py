"""Serialization of a renderer's state for API responses."""

from typing import Any

from document_preview.models import PreviewKind
from document_preview.services.preview_renderer import PreviewRenderer


def build_state_payload(renderer: PreviewRenderer) -> dict[str, Any]:
    """Snapshot a renderer into the fields of PreviewStateResponse.

    ``document_html`` is only present for document previews that rendered,
    ``embed_url`` only for embeddable files whose fetch succeeded.
    """
    request = renderer.request
    state = renderer.state
    kind = renderer.preview_kind
    settled = not state.loading and state.error is None

    document_html = None
    if kind is PreviewKind.DOCUMENT and settled and not renderer.surface.is_empty:
        document_html = renderer.surface.content

    embed_url = None
    if kind is PreviewKind.EMBED and settled and request is not None:
        embed_url = request.source_url

    return {
        "source_url": request.source_url if request else None,
        "declared_type": request.declared_type if request else None,
        "display_name": request.display_name if request else "",
        "preview_kind": kind,
        "loading": state.loading,
        "error": state.error,
        "active_sheet_index": state.active_sheet_index,
        "sheet_names": state.sheet_names,
        "active_rows": state.active_rows,
        "document_html": document_html,
        "embed_url": embed_url,
    }
