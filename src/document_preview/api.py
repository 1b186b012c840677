"""FastAPI application for the document preview service."""

import asyncio
import uuid
from contextlib import asynccontextmanager, suppress
from datetime import UTC, datetime
from typing import Annotated, Any
from urllib.parse import urlparse

from fastapi import FastAPI, HTTPException, Query, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from document_preview.config import settings, validate_settings_on_startup
from document_preview.models import (
    ErrorDetail,
    HealthResponse,
    PreviewRequestBody,
    PreviewStateResponse,
    SessionResponse,
)
from document_preview.output import PaneRenderer, build_state_payload
from document_preview.preview_document import PreviewRequest
from document_preview.services.fetcher import Fetcher, FileFetcher
from document_preview.services.format_detector import FormatDetector
from document_preview.services.preview_renderer import PreviewRenderer
from document_preview.services.session_manager import (
    PreviewSession,
    PreviewSessionManager,
)
from document_preview.utils.exceptions import (
    ErrorCode,
    PreviewError,
    ValidationError,
)
from document_preview.utils.logging import (
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)

__version__ = "0.1.0"

configure_logging(
    level=settings.log_level_int,
    use_structured_formatter=True,
)
logger = get_logger(__name__)

format_detector = FormatDetector()
pane_renderer = PaneRenderer()


def build_preview_request(
    source_url: str,
    file_type: str | None = None,
    display_name: str = "",
    mime_type: str | None = None,
) -> PreviewRequest:
    """Validate the source URL and resolve the declared type.

    Raises:
        ValidationError: If the URL is not an absolute http(s) URL.
    """
    parsed = urlparse(source_url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValidationError(
            message="source_url must be an absolute http(s) URL",
            field="source_url",
        )

    format_info = format_detector.resolve(
        file_type,
        mime_type=mime_type,
        filename=display_name,
        source_url=source_url,
    )
    return PreviewRequest(
        source_url=source_url,
        declared_type=format_info.declared_type,
        display_name=display_name,
    )


def session_payload(session: PreviewSession) -> dict[str, Any]:
    return {
        **build_state_payload(session.renderer),
        "session_id": session.session_id,
        "created_at": session.created_at,
        "updated_at": session.updated_at,
    }


def create_app(fetcher: Fetcher | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        fetcher: Optional fetcher to use instead of an HTTP FileFetcher.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> Any:
        owned_fetcher = FileFetcher() if fetcher is None else None
        active_fetcher: Fetcher = owned_fetcher or fetcher  # type: ignore[assignment]
        sessions = PreviewSessionManager(active_fetcher)
        cleanup_task = asyncio.create_task(
            sessions.run_cleanup_loop(), name="preview-session-cleanup"
        )
        app.state.fetcher = active_fetcher
        app.state.sessions = sessions
        try:
            yield
        finally:
            cleanup_task.cancel()
            with suppress(asyncio.CancelledError):
                await cleanup_task
            await sessions.shutdown()
            if owned_fetcher is not None:
                await owned_fetcher.aclose()
            app.state.sessions = None
            app.state.fetcher = None

    app = FastAPI(
        title="Document Preview API",
        description=(
            "Fetches stored documents and renders previews: rich document views "
            "for DOCX, sheet grids for XLSX/XLS/CSV, embeds for PDF."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    validate_settings_on_startup(settings)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Any:
        """Assign or propagate X-Request-ID and scope it to the log context."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        set_request_id(request_id)
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()

    @app.exception_handler(PreviewError)
    async def preview_exception_handler(
        request: Request, exc: PreviewError
    ) -> JSONResponse:
        """Return structured error responses for service exceptions."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.error(
            f"Preview Error: {exc.message}",
            error_code=exc.error_code.value,
            http_status=exc.http_status,
        )
        return JSONResponse(
            status_code=exc.http_status,
            content=ErrorDetail(
                detail=exc.message,
                error_code=exc.error_code.value,
                details=exc.details if exc.details else None,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.warning(f"HTTP Error: {exc.detail}", status_code=exc.status_code)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorDetail(
                detail=str(exc.detail),
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all handler that avoids leaking internal details."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.exception(
            f"Unexpected error: {type(exc).__name__}",
            error_type=type(exc).__name__,
        )
        if settings.debug:
            detail = f"Internal server error: {type(exc).__name__}: {exc}"
        else:
            detail = "Internal server error. Please try again later."

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorDetail(
                detail=detail,
                error_code=ErrorCode.INTERNAL_ERROR.value,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> dict[str, Any]:
        """Check the health status of the service."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "version": __version__,
        }

    @app.post(
        "/preview",
        response_model=PreviewStateResponse,
        tags=["Preview"],
        responses={400: {"model": ErrorDetail, "description": "Invalid source"}},
    )
    async def preview(request: Request, body: PreviewRequestBody) -> dict[str, Any]:
        """Load a file to completion and return its preview state.

        Fetch and parse failures are reported in the ``error`` field of a
        200 response, the same way the preview pane shows them.
        """
        preview_request = build_preview_request(
            body.source_url, body.file_type, body.display_name, body.mime_type
        )
        renderer = PreviewRenderer(request.app.state.fetcher)
        await renderer.load(preview_request)
        return build_state_payload(renderer)

    @app.get("/view", response_class=HTMLResponse, tags=["Preview"])
    async def view_document(
        request: Request,
        url: Annotated[str, Query(min_length=1, description="File URL")],
        file_type: Annotated[str | None, Query(description="Type tag")] = None,
        name: Annotated[str, Query(description="Display name")] = "",
    ) -> HTMLResponse:
        """Render the public view page for a file."""
        preview_request = build_preview_request(url, file_type, name)
        renderer = PreviewRenderer(request.app.state.fetcher)
        await renderer.load(preview_request)
        try:
            pane_html = pane_renderer.render(
                renderer.request, renderer.state, renderer.surface
            )
            page = pane_renderer.render_view_page(
                preview_request, pane_html, settings.app_name
            )
        finally:
            renderer.close()
        return HTMLResponse(content=page)

    @app.post(
        "/sessions",
        response_model=SessionResponse,
        status_code=status.HTTP_201_CREATED,
        tags=["Sessions"],
        responses={400: {"model": ErrorDetail, "description": "Invalid source"}},
    )
    async def create_session(
        request: Request, body: PreviewRequestBody
    ) -> dict[str, Any]:
        """Create a preview session and start loading its file."""
        preview_request = build_preview_request(
            body.source_url, body.file_type, body.display_name, body.mime_type
        )
        sessions: PreviewSessionManager = request.app.state.sessions
        session = sessions.create_session(preview_request)
        return session_payload(session)

    @app.get(
        "/sessions/{session_id}",
        response_model=SessionResponse,
        tags=["Sessions"],
        responses={
            404: {"model": ErrorDetail, "description": "Session not found"},
            410: {"model": ErrorDetail, "description": "Session expired"},
        },
    )
    async def get_session(
        request: Request,
        session_id: str,
        wait: Annotated[
            bool, Query(description="Wait for the live load to finish")
        ] = False,
    ) -> dict[str, Any]:
        """Get the current preview state of a session."""
        sessions: PreviewSessionManager = request.app.state.sessions
        if wait:
            session = await sessions.wait_until_settled(session_id)
        else:
            session = sessions.get_session(session_id)
        return session_payload(session)

    @app.put(
        "/sessions/{session_id}/request",
        response_model=SessionResponse,
        tags=["Sessions"],
        responses={404: {"model": ErrorDetail, "description": "Session not found"}},
    )
    async def update_session_request(
        request: Request, session_id: str, body: PreviewRequestBody
    ) -> dict[str, Any]:
        """Replace the session's file, discarding any in-flight load."""
        preview_request = build_preview_request(
            body.source_url, body.file_type, body.display_name, body.mime_type
        )
        sessions: PreviewSessionManager = request.app.state.sessions
        session = sessions.update_request(session_id, preview_request)
        return session_payload(session)

    @app.post(
        "/sessions/{session_id}/sheets/{index}",
        response_model=SessionResponse,
        tags=["Sessions"],
        responses={
            400: {"model": ErrorDetail, "description": "Sheet index out of range"},
            404: {"model": ErrorDetail, "description": "Session not found"},
        },
    )
    async def select_sheet(
        request: Request, session_id: str, index: int
    ) -> dict[str, Any]:
        """Switch the active sheet without fetching again."""
        sessions: PreviewSessionManager = request.app.state.sessions
        session = sessions.select_sheet(session_id, index)
        return session_payload(session)

    @app.get(
        "/sessions/{session_id}/pane",
        response_class=HTMLResponse,
        tags=["Sessions"],
    )
    async def get_session_pane(request: Request, session_id: str) -> HTMLResponse:
        """Render the session's current state as an HTML pane."""
        sessions: PreviewSessionManager = request.app.state.sessions
        session = sessions.get_session(session_id)
        renderer = session.renderer
        return HTMLResponse(
            content=pane_renderer.render(
                renderer.request, renderer.state, renderer.surface
            )
        )

    @app.delete(
        "/sessions/{session_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        tags=["Sessions"],
    )
    async def close_session(request: Request, session_id: str) -> Response:
        """Close a session, cancelling its load and releasing its output."""
        sessions: PreviewSessionManager = request.app.state.sessions
        sessions.close_session(session_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    logger.info("FastAPI application created successfully")
    return app


app = create_app()
