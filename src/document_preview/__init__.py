"""Document Preview - fetch stored files and render in-app previews."""

from document_preview.api import app, create_app

__all__ = ["app", "create_app"]
__version__ = "0.1.0"


def main() -> None:
    """Run the FastAPI server using uvicorn."""
    import uvicorn

    from document_preview.config import settings

    uvicorn.run(
        "document_preview.api:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
    )
