"""Services for document previews."""

from document_preview.services.fetcher import Fetcher, FileFetcher
from document_preview.services.format_detector import FormatDetector
from document_preview.services.preview_renderer import PreviewRenderer

__all__ = [
    "Fetcher",
    "FileFetcher",
    "FormatDetector",
    "PreviewRenderer",
]
