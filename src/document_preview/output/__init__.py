"""Output generation for previews.

This module renders preview state as HTML panes and pages, and as
API payloads.
"""

from document_preview.output.html_pane import PaneRenderer, format_cell, type_label
from document_preview.output.state_output import build_state_payload

__all__ = [
    "PaneRenderer",
    "build_state_payload",
    "format_cell",
    "type_label",
]
