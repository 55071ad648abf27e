"""HTTP transport for the Bunny.net APIs.

This module provides the aiohttp-backed client every API call goes through.
It knows nothing about Bunny.net itself: authentication, payload encoding
and status classification live in ``bunny_stream.api``.

Example usage:
    async with HTTPClient() as client:
        response = await client.request(
            "GET",
            "https://video.bunnycdn.com/library/123/collections",
            headers={"AccessKey": key},
        )
        data = response.json()
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import aiohttp

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HTTPClientConfig:
    """Configuration for the HTTP client.

    Attributes:
        timeout: Socket read timeout in seconds
        connect_timeout: Connection timeout in seconds
        total_timeout: Total operation timeout in seconds
        user_agent: User-Agent header value
        verify_ssl: Whether to verify SSL certificates
    """

    timeout: float = 30.0
    connect_timeout: float = 10.0
    total_timeout: float = 120.0
    user_agent: str = "bunny-stream/0.1"
    verify_ssl: bool = True

    @property
    def default_headers(self) -> dict[str, str]:
        """Get default headers for all requests."""
        return {"User-Agent": self.user_agent}


@dataclass
class HTTPResponse:
    """Wrapper for HTTP response data.

    Attributes:
        status: HTTP status code
        headers: Response headers
        content: Raw response content as bytes
        url: Final URL after redirects
    """

    status: int
    headers: dict[str, str]
    content: bytes
    url: str

    @classmethod
    async def from_aiohttp_response(
        cls, response: aiohttp.ClientResponse
    ) -> HTTPResponse:
        """Create HTTPResponse from aiohttp response."""
        content = await response.read()
        return cls(
            status=response.status,
            headers=dict(response.headers),
            content=content,
            url=str(response.url),
        )

    def json(self) -> Any:
        """Parse response content as JSON.

        An empty body decodes to None, since DELETE and some PUT calls
        answer with no content.

        Raises:
            ValueError: If content is not valid JSON
        """
        if not self.content.strip():
            return None
        try:
            return json.loads(self.content.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValueError(f"Invalid JSON response: {e}") from e

    def text(self, encoding: str = "utf-8") -> str:
        """Get response content as text."""
        return self.content.decode(encoding, errors="replace")

    @property
    def is_success(self) -> bool:
        """Check if response indicates success (2xx status)."""
        return 200 <= self.status < 300

    @property
    def is_rate_limited(self) -> bool:
        """Check if response indicates rate limiting."""
        return self.status == 429

    @property
    def retry_after(self) -> int | None:
        """Get the Retry-After header as whole seconds.

        Only the delta-seconds form is honoured; an HTTP-date or garbage
        value is treated as absent.
        """
        retry_after = self.headers.get("Retry-After")
        if retry_after is None:
            # aiohttp headers are case-insensitive, a plain dict copy is not
            for key, value in self.headers.items():
                if key.lower() == "retry-after":
                    retry_after = value
                    break
        if retry_after is None:
            return None
        try:
            seconds = int(str(retry_after).strip())
        except ValueError:
            return None
        return seconds if seconds >= 0 else None


class HTTPClientError(Exception):
    """Base exception for HTTP client errors."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.cause = cause


class ConnectionError(HTTPClientError):
    """Raised when connection to server fails."""

    pass


class TimeoutError(HTTPClientError):
    """Raised when request times out."""

    pass


class HTTPClient:
    """Async HTTP client.

    Should be used as an async context manager to ensure the underlying
    aiohttp session is closed.

    Example:
        async with HTTPClient() as client:
            response = await client.request("GET", url)
            if response.is_success:
                data = response.json()
    """

    def __init__(self, config: HTTPClientConfig | None = None) -> None:
        self.config = config or HTTPClientConfig()
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> HTTPClient:
        """Enter async context and create session."""
        await self._create_session()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Exit async context and cleanup resources."""
        await self.close()

    async def _create_session(self) -> None:
        """Create the aiohttp session."""
        if self._session is not None:
            return

        timeout = aiohttp.ClientTimeout(
            total=self.config.total_timeout,
            connect=self.config.connect_timeout,
            sock_read=self.config.timeout,
        )
        self._session = aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(ssl=self.config.verify_ssl),
            timeout=timeout,
            headers=self.config.default_headers,
        )
        logger.debug("Created HTTP session")

    async def close(self) -> None:
        """Close the session and release resources."""
        if self._session is not None:
            await self._session.close()
            self._session = None
            logger.debug("Closed HTTP session")

    @property
    def is_open(self) -> bool:
        """Check if the session is open."""
        return self._session is not None and not self._session.closed

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            await self._create_session()
        if self._session is None:
            raise RuntimeError("HTTP session not initialized")
        return self._session

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: bytes | str | None = None,
        timeout: float | None = None,
    ) -> HTTPResponse:
        """Perform an HTTP request.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            url: The URL to request
            headers: Additional headers to send
            data: Raw body, already encoded by the caller
            timeout: Override the total timeout for this request

        Returns:
            HTTPResponse with response data, whatever its status

        Raises:
            ConnectionError: If connection fails
            TimeoutError: If request times out
            HTTPClientError: For other transport errors
        """
        session = await self._ensure_session()

        kwargs: dict[str, Any] = {}
        if headers:
            kwargs["headers"] = dict(headers)
        if data is not None:
            kwargs["data"] = data
        if timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)

        try:
            async with session.request(method, url, **kwargs) as response:
                http_response = await HTTPResponse.from_aiohttp_response(response)
                logger.debug("HTTP %s %s -> %d", method, url, http_response.status)
                return http_response

        except aiohttp.ClientConnectorError as e:
            logger.warning("Connection error for %s: %s", url, e)
            raise ConnectionError(
                f"Failed to connect to {url}", url=url, cause=e
            ) from e

        except (aiohttp.ServerTimeoutError, asyncio.TimeoutError) as e:
            logger.warning("Timeout for %s: %s", url, e)
            raise TimeoutError(f"Request timed out for {url}", url=url, cause=e) from e

        except aiohttp.ClientError as e:
            logger.warning("HTTP error for %s: %s", url, e)
            raise HTTPClientError(f"HTTP error for {url}: {e}", url=url, cause=e) from e
