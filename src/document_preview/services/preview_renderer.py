"""Preview renderer: fetch a file and drive a PreviewState to a terminal outcome.

One renderer owns one PreviewState and one RenderSurface. Each load attempt
gets its own CancellationToken; starting a new load cancels the previous token
and clears the surface, and every state mutation of a load is gated on its
token still being alive, so a superseded load can never overwrite a newer one.

Outcomes:
- document: the DOCX view is written to the surface
- spreadsheet: sheets are parsed into the state, sheet 0 active
- embed / fallback: nothing is parsed; the pane supplies an iframe or a link
- error: fetch failures read "Failed to fetch file"; delegate failures read
  "Failed to load document preview. <message>"
"""

from typing import assert_never

from document_preview.models import PreviewKind
from document_preview.preview_document import (
    CancellationToken,
    PreviewRequest,
    PreviewState,
    RenderSurface,
)
from document_preview.services.docx_renderer import DocxRenderer
from document_preview.services.fetcher import Fetcher
from document_preview.services.format_detector import preview_kind_for
from document_preview.services.spreadsheet_parser import SpreadsheetParser
from document_preview.utils.exceptions import FetchError, ParseError
from document_preview.utils.logging import get_logger

logger = get_logger(__name__)

FETCH_FAILED_MESSAGE = "Failed to fetch file"
LOAD_FAILED_PREFIX = "Failed to load document preview. "


class PreviewRenderer:
    """Loads preview requests into an owned state and surface."""

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        document_renderer: DocxRenderer | None = None,
        spreadsheet_parser: SpreadsheetParser | None = None,
    ) -> None:
        """Initialize the renderer.

        Args:
            fetcher: Source of file bytes.
            document_renderer: Delegate for word-processor documents.
            spreadsheet_parser: Delegate for workbooks and CSV.
        """
        self._fetcher = fetcher
        self._document_renderer = document_renderer or DocxRenderer()
        self._spreadsheet_parser = spreadsheet_parser or SpreadsheetParser()
        self.state = PreviewState()
        self.surface = RenderSurface()
        self.request: PreviewRequest | None = None
        self._token: CancellationToken | None = None

    @property
    def preview_kind(self) -> PreviewKind | None:
        if self.request is None:
            return None
        return preview_kind_for(self.request.declared_type)

    async def load(self, request: PreviewRequest) -> None:
        """Fetch and render a request, superseding any in-flight load.

        Fetch and parse failures are recorded on the state, never raised.

        Args:
            request: The file to preview.
        """
        token = self.start(request)
        await self.complete(request, token)

    def start(self, request: PreviewRequest) -> CancellationToken:
        """Supersede the previous load and enter the loading state.

        Returns:
            The token that gates the new load's state mutations.
        """
        token = self._supersede()
        self.request = request
        self.state.begin_load()
        logger.info(
            "Loading preview",
            declared_type=request.declared_type.value,
            display_name=request.display_name,
        )
        return token

    async def complete(self, request: PreviewRequest, token: CancellationToken) -> None:
        """Run the fetch and dispatch of a load begun with ``start``."""
        try:
            content = await self._fetcher.fetch(request.source_url)
        except FetchError as e:
            if token.alive:
                logger.warning("Preview fetch failed", error=e.message)
                self.state.fail(FETCH_FAILED_MESSAGE)
            return
        except Exception as e:
            if token.alive:
                logger.error("Preview fetch failed unexpectedly", error=str(e))
                self.state.fail(FETCH_FAILED_MESSAGE)
            return

        if token.cancelled:
            logger.debug("Discarding superseded load", url=request.source_url)
            return

        try:
            self._dispatch(request, content, token)
        except ParseError as e:
            if token.alive:
                logger.error(
                    "Preview rendering failed",
                    error=e.message,
                    error_code=e.error_code.value,
                )
                self.surface.clear()
                self.state.fail(f"{LOAD_FAILED_PREFIX}{e.message}")
        except Exception as e:
            if token.alive:
                logger.error("Preview rendering failed unexpectedly", error=str(e))
                self.surface.clear()
                self.state.fail(f"{LOAD_FAILED_PREFIX}{e}")

    def select_sheet(self, index: int) -> None:
        """Make another loaded sheet active. Never fetches.

        Raises:
            SheetIndexError: If the index is outside the loaded sheets.
        """
        self.state.select_sheet(index)

    def close(self) -> None:
        """Cancel the live load and release the surface."""
        if self._token is not None:
            self._token.cancel()
        self.surface.clear()

    def _supersede(self) -> CancellationToken:
        if self._token is not None:
            self._token.cancel()
        self.surface.clear()
        self._token = CancellationToken()
        return self._token

    def _dispatch(
        self, request: PreviewRequest, content: bytes, token: CancellationToken
    ) -> None:
        kind = preview_kind_for(request.declared_type)
        if kind is PreviewKind.DOCUMENT:
            self._document_renderer.render(content, self.surface)
            if token.alive:
                self.state.show_document()
        elif kind is PreviewKind.SPREADSHEET:
            sheets = self._spreadsheet_parser.parse(request.declared_type, content)
            if token.alive:
                self.state.show_sheets(sheets)
        elif kind is PreviewKind.EMBED or kind is PreviewKind.FALLBACK:
            if token.alive:
                self.state.show_passthrough()
        else:
            assert_never(kind)
