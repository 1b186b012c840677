"""In-memory preview session management.

A session is one server-side instance of the preview component: a renderer
with its state and surface, addressed by ID. Sessions move through loads
driven by asyncio tasks:

- create: start the first load
- update_request: cancel the in-flight load task and start a new one
- select_sheet: switch sheets on the loaded state, no fetch
- close: cancel the load and release the surface

Sessions idle longer than the TTL are discarded. The registry is only touched
from the event loop, so it needs no lock.
"""

import asyncio
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from document_preview.config import settings
from document_preview.preview_document import CancellationToken, PreviewRequest
from document_preview.services.fetcher import Fetcher
from document_preview.services.preview_renderer import PreviewRenderer
from document_preview.utils.exceptions import (
    SessionExpiredError,
    SessionNotFoundError,
    SheetIndexError,
)
from document_preview.utils.logging import LogContext, get_logger

logger = get_logger(__name__)


@dataclass
class PreviewSession:
    """Internal record for one preview session."""

    session_id: str
    renderer: PreviewRenderer
    created_at: datetime
    updated_at: datetime
    task: asyncio.Task[None] | None = None

    def touch(self) -> None:
        self.updated_at = datetime.now(UTC)

    @property
    def is_settled(self) -> bool:
        return self.task is None or self.task.done()


@dataclass
class SessionManagerConfig:
    """Configuration for the session manager."""

    ttl_seconds: int = field(default_factory=lambda: settings.session_ttl_seconds)
    cleanup_interval_seconds: int = field(
        default_factory=lambda: settings.session_cleanup_interval_seconds
    )


class PreviewSessionManager:
    """Registry of preview sessions with idle expiry."""

    def __init__(
        self,
        fetcher: Fetcher,
        config: SessionManagerConfig | None = None,
        renderer_factory: Callable[[Fetcher], PreviewRenderer] | None = None,
    ) -> None:
        """Initialize the session manager.

        Args:
            fetcher: Shared fetcher handed to every renderer.
            config: Optional configuration. Uses settings if not provided.
            renderer_factory: Builds a renderer per session.
        """
        self.config = config or SessionManagerConfig()
        self._fetcher = fetcher
        self._renderer_factory = renderer_factory or PreviewRenderer
        self._sessions: dict[str, PreviewSession] = {}

    def create_session(self, request: PreviewRequest) -> PreviewSession:
        """Create a session and start loading its request.

        Must be called from a running event loop.
        """
        now = datetime.now(UTC)
        session = PreviewSession(
            session_id=str(uuid.uuid4()),
            renderer=self._renderer_factory(self._fetcher),
            created_at=now,
            updated_at=now,
        )
        self._sessions[session.session_id] = session
        self._start_load(session, request)
        logger.info(
            "Preview session created",
            session_id=session.session_id,
            declared_type=request.declared_type.value,
        )
        return session

    def get_session(self, session_id: str) -> PreviewSession:
        """Get a live session and mark it as used.

        Raises:
            SessionNotFoundError: If the session doesn't exist.
            SessionExpiredError: If the session has been idle past the TTL.
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        if self._is_expired(session, datetime.now(UTC)):
            self._discard(session)
            raise SessionExpiredError(session_id)

        session.touch()
        return session

    def update_request(
        self, session_id: str, request: PreviewRequest
    ) -> PreviewSession:
        """Supersede the session's current request with a new one."""
        session = self.get_session(session_id)
        if session.task is not None and not session.task.done():
            logger.info("Superseding in-flight load", session_id=session_id)
            session.task.cancel()
        self._start_load(session, request)
        return session

    def select_sheet(self, session_id: str, index: int) -> PreviewSession:
        """Switch the active sheet of a loaded session.

        Raises:
            SheetIndexError: If the index is outside the loaded sheets.
        """
        session = self.get_session(session_id)
        try:
            session.renderer.select_sheet(index)
        except SheetIndexError as e:
            raise SheetIndexError(
                index=e.index, sheet_count=e.sheet_count, session_id=session_id
            ) from e
        return session

    async def wait_until_settled(self, session_id: str) -> PreviewSession:
        """Wait until the session's live load finishes, following supersessions."""
        session = self.get_session(session_id)
        while session.task is not None and not session.task.done():
            await asyncio.wait({session.task})
        return session

    def close_session(self, session_id: str) -> None:
        """Cancel the session's load, release its surface and forget it.

        Raises:
            SessionNotFoundError: If the session doesn't exist.
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        self._discard(session)
        logger.info("Preview session closed", session_id=session_id)

    def cleanup_expired_sessions(self) -> int:
        """Discard sessions idle past the TTL.

        Returns:
            Number of sessions discarded.
        """
        now = datetime.now(UTC)
        expired = [s for s in self._sessions.values() if self._is_expired(s, now)]
        for session in expired:
            self._discard(session)

        if expired:
            logger.info(f"Cleaned up {len(expired)} expired preview sessions")
        return len(expired)

    async def run_cleanup_loop(self) -> None:
        """Sweep expired sessions periodically until cancelled."""
        while True:
            await asyncio.sleep(self.config.cleanup_interval_seconds)
            try:
                self.cleanup_expired_sessions()
            except Exception as e:
                logger.error(f"Error in session cleanup: {e}", exc_info=True)

    async def shutdown(self) -> None:
        """Close every session and wait for cancelled loads to unwind."""
        tasks = [s.task for s in self._sessions.values() if s.task is not None]
        for session in list(self._sessions.values()):
            self._discard(session)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def get_session_count(self) -> int:
        return len(self._sessions)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _start_load(self, session: PreviewSession, request: PreviewRequest) -> None:
        token = session.renderer.start(request)
        session.task = asyncio.create_task(
            self._run_load(session, request, token),
            name=f"preview-load-{session.session_id}",
        )

    @staticmethod
    async def _run_load(
        session: PreviewSession, request: PreviewRequest, token: CancellationToken
    ) -> None:
        with LogContext(session_id=session.session_id):
            await session.renderer.complete(request, token)

    def _is_expired(self, session: PreviewSession, now: datetime) -> bool:
        return now - session.updated_at > timedelta(seconds=self.config.ttl_seconds)

    def _discard(self, session: PreviewSession) -> None:
        session.renderer.close()
        if session.task is not None and not session.task.done():
            session.task.cancel()
        self._sessions.pop(session.session_id, None)
