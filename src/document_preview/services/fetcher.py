"""Source file fetching for previews.

A single GET per load attempt, with no retry and no backoff. Any non-success
response or transport failure surfaces as FetchError. The body is streamed so
that the configured size limit is enforced before the whole file is buffered.
"""

from types import TracebackType
from typing import Protocol

import httpx

from document_preview.config import settings
from document_preview.utils.exceptions import FetchError, FileTooLargeError
from document_preview.utils.logging import get_logger

logger = get_logger(__name__)


class Fetcher(Protocol):
    """Anything that can asynchronously retrieve the bytes behind a URL."""

    async def fetch(self, url: str) -> bytes: ...


class FileFetcher:
    """Fetch file bytes from storage providers using httpx."""

    def __init__(
        self,
        *,
        max_bytes: int | None = None,
        timeout_seconds: float | None = None,
        follow_redirects: bool | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            max_bytes: Size limit; defaults to settings.max_file_size_bytes.
            timeout_seconds: Optional timeout; None disables httpx timeouts.
            follow_redirects: Defaults to settings.fetch_follow_redirects.
            user_agent: Defaults to settings.user_agent.
            transport: Optional transport, mainly for tests.
        """
        self.max_bytes = (
            max_bytes if max_bytes is not None else settings.max_file_size_bytes
        )
        if timeout_seconds is None:
            timeout_seconds = settings.fetch_timeout_seconds
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            follow_redirects=(
                settings.fetch_follow_redirects
                if follow_redirects is None
                else follow_redirects
            ),
            headers={"User-Agent": user_agent or settings.user_agent},
            transport=transport,
        )
        self.fetch_count = 0

    async def fetch(self, url: str) -> bytes:
        """Fetch the bytes behind a URL.

        Args:
            url: Absolute URL of the file.

        Returns:
            The response body.

        Raises:
            FetchError: On a non-success status or a transport error.
            FileTooLargeError: If the body exceeds the size limit.
        """
        self.fetch_count += 1
        try:
            async with self._client.stream("GET", url) as response:
                if not response.is_success:
                    logger.warning(
                        "Fetch returned non-success status",
                        url=url,
                        status_code=response.status_code,
                    )
                    raise FetchError(source_url=url, status_code=response.status_code)

                declared_length = response.headers.get("Content-Length")
                if declared_length and declared_length.isdigit():
                    if int(declared_length) > self.max_bytes:
                        raise FileTooLargeError(
                            file_size=int(declared_length),
                            max_size=self.max_bytes,
                            source_url=url,
                        )

                chunks: list[bytes] = []
                received = 0
                async for chunk in response.aiter_bytes():
                    received += len(chunk)
                    if received > self.max_bytes:
                        raise FileTooLargeError(
                            file_size=received,
                            max_size=self.max_bytes,
                            source_url=url,
                        )
                    chunks.append(chunk)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(
                "Fetch failed",
                url=url,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise FetchError(source_url=url, details={"error": str(e)}) from e

        logger.debug("Fetched file", url=url, bytes=received)
        return b"".join(chunks)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "FileFetcher":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
