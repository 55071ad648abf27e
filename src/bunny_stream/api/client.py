"""Bunny.net API client.

The client composes the building blocks of the API layer: the HTTP
transport, a request builder (auth strategy), the Executor that runs and
classifies a single attempt, and the Retry Coordinator that repeats
attempts and honours the shared rate-limit marker.

Unlike a module-level singleton, the client is constructed explicitly and
owns its credentials, so tests can hand it a fake transport and an
in-memory transient store.

Example usage:
    creds = get_credentials()
    async with BunnyApiClient(creds) as client:
        result = await client.send(f"library/{creds.library_id}/videos", "GET")
        if result.is_successful:
            print(result.value)
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, TypeVar

from bunny_stream.api.errors import (
    ApiError,
    ApiResult,
    ErrorKind,
    HTTPStatusError,
    RateLimitedError,
    TransportError,
)
from bunny_stream.api.request import (
    ApiBase,
    ApiRequest,
    RequestBuilder,
    create_request_builder,
)
from bunny_stream.api.retry import RateLimitState, RetryConfig, RetryCoordinator
from bunny_stream.stores.memory import InMemoryTransientStore
from bunny_stream.utils.http_client import (
    HTTPClient,
    HTTPClientConfig,
    HTTPClientError,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from bunny_stream.config.secrets import Credentials
    from bunny_stream.config.settings import BunnySettings
    from bunny_stream.stores.protocol import TransientStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_UPLOAD_TIMEOUT = 20.0

# Longest response body echoed into debug logs
_LOG_BODY_LIMIT = 2000


def _truncate(text: str, limit: int = _LOG_BODY_LIMIT) -> str:
    return text if len(text) <= limit else text[:limit] + "...(truncated)"


class BunnyApiClient:
    """Client for the Bunny.net Stream and account APIs.

    Attributes:
        credentials: Access key and library ID, fixed for the client's lifetime
        transient_store: Shared TTL store for rate-limit markers and locks
        retry: The Retry Coordinator wrapping every call
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        http_client: HTTPClient | None = None,
        http_config: HTTPClientConfig | None = None,
        transient_store: TransientStore | None = None,
        request_builder: RequestBuilder | None = None,
        retry_config: RetryConfig | None = None,
        retry_coordinator: RetryCoordinator | None = None,
        upload_timeout: float = DEFAULT_UPLOAD_TIMEOUT,
    ) -> None:
        """Initialize the client.

        Args:
            credentials: Bunny.net access key and library ID
            http_client: Optional transport; one is created on demand if omitted
            http_config: Configuration for a transport created on demand
            transient_store: Shared TTL store, in-memory if omitted
            request_builder: Auth strategy, AccessKey header if omitted
            retry_config: Retry settings used when no coordinator is given
            retry_coordinator: Fully built coordinator (tests inject fake sleep)
            upload_timeout: Timeout in seconds for raw upload calls
        """
        self.credentials = credentials
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._http_config = http_config
        self.transient_store: TransientStore = (
            transient_store if transient_store is not None else InMemoryTransientStore()
        )
        self._builder = request_builder or create_request_builder(credentials.access_key)
        self.retry = retry_coordinator or RetryCoordinator(
            retry_config,
            RateLimitState(self.transient_store),
        )
        self.upload_timeout = upload_timeout

        logger.debug(
            "Initialized BunnyApiClient for library %s (max_attempts=%d)",
            self.library_id or "<unset>",
            self.retry.config.max_attempts,
        )

    @classmethod
    def from_settings(
        cls,
        settings: BunnySettings,
        credentials: Credentials,
        **kwargs: Any,
    ) -> BunnyApiClient:
        """Build a client wired according to ``settings``."""
        builder = create_request_builder(
            credentials.access_key,
            settings.auth_scheme,
            video_base_url=settings.video_base_url,
            api_base_url=settings.api_base_url,
        )
        return cls(
            credentials,
            http_config=HTTPClientConfig(timeout=settings.http_timeout),
            request_builder=builder,
            retry_config=RetryConfig(
                max_attempts=settings.max_attempts,
                base_delay=settings.retry_base_delay,
            ),
            upload_timeout=settings.upload_timeout,
            **kwargs,
        )

    def __repr__(self) -> str:
        return f"BunnyApiClient(library_id={self.library_id!r})"

    @property
    def library_id(self) -> str:
        return self.credentials.library_id

    @property
    def request_builder(self) -> RequestBuilder:
        return self._builder

    async def __aenter__(self) -> BunnyApiClient:
        """Enter async context and open the transport."""
        await self._ensure_client()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Exit async context and close the transport if we created it."""
        await self.close()

    async def close(self) -> None:
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.close()
            self._http_client = None

    async def _ensure_client(self) -> HTTPClient:
        if self._http_client is None:
            self._http_client = HTTPClient(self._http_config)
            self._owns_http_client = True
        return self._http_client

    # Executor

    async def _execute(self, request: ApiRequest, endpoint: str) -> Any:
        """Perform one attempt and classify its outcome.

        Returns:
            Decoded JSON payload (None for an empty body)

        Raises:
            RateLimitedError: HTTP 429
            HTTPStatusError: Any other non-2xx status
            TransportError: No response was received
            ApiError: INVALID_RESPONSE for an undecodable 2xx body
        """
        client = await self._ensure_client()
        try:
            response = await client.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.body,
                timeout=request.timeout,
            )
        except HTTPClientError as e:
            raise TransportError(f"Request to {endpoint} failed: {e}", cause=e) from e

        if response.is_rate_limited:
            raise RateLimitedError(
                response.text(),
                retry_after=response.retry_after,
                endpoint=endpoint,
            )

        if not response.is_success:
            body = response.text() or "No response body"
            logger.error("Failed Request to %s (HTTP %d)", endpoint, response.status)
            logger.debug("Response Body: %s", _truncate(body))
            raise HTTPStatusError(response.status, body, endpoint=endpoint)

        try:
            payload = response.json()
        except ValueError as e:
            raise ApiError(
                ErrorKind.INVALID_RESPONSE,
                f"Bunny.net returned a non-JSON body for {endpoint}",
                cause=e,
            ) from e

        logger.debug("%s %s response: %s", request.method, endpoint, _truncate(response.text()))
        return payload

    def _log_request(self, request: ApiRequest, endpoint: str, *, binary: bool) -> None:
        logger.debug(
            "Sending API request to Bunny.net. Endpoint: %s, Method: %s, Library ID: %s",
            endpoint,
            request.method,
            self.library_id,
        )
        logger.debug("Headers: %s", json.dumps(request.safe_headers))
        if request.body is not None:
            if binary:
                logger.debug("Request Body: <%d bytes>", len(request.body))
            else:
                logger.debug("Request Body: %s", _truncate(request.body.decode("utf-8")))

    async def _send_request(
        self,
        request: ApiRequest,
        endpoint: str,
        max_attempts: int | None = None,
    ) -> ApiResult[Any]:
        return await self.retry.execute_with_result(
            lambda: self._execute(request, endpoint),
            operation_name=f"{request.method} {endpoint}",
            max_attempts=max_attempts,
        )

    # Public API

    async def send(
        self,
        endpoint: str,
        method: str,
        data: Mapping[str, Any] | None = None,
        *,
        base: ApiBase = ApiBase.VIDEO,
        max_attempts: int | None = None,
    ) -> ApiResult[Any]:
        """Send a JSON request with retry.

        Args:
            endpoint: Path relative to the API base, e.g. ``library/1/videos``
            method: GET, POST, PUT or DELETE (case-insensitive)
            data: JSON body for non-GET calls
            base: Which upstream host the endpoint lives on
            max_attempts: Override the configured attempt count for this call

        Returns:
            ApiResult with the decoded payload, or INVALID_METHOD (no network
            call), API_FAILURE (retries exhausted) or INVALID_RESPONSE
        """
        try:
            request = self._builder.build_json(endpoint, method, data, base=base)
        except ApiError as e:
            logger.warning("Rejected request to %s: %s", endpoint, e)
            return ApiResult.err(e)

        self._log_request(request, endpoint, binary=False)
        return await self._send_request(request, endpoint, max_attempts)

    async def send_binary(
        self,
        endpoint: str,
        content: bytes,
        *,
        title: str,
        method: str = "PUT",
        timeout: float | None = None,
    ) -> ApiResult[Any]:
        """Send raw bytes as an ``application/octet-stream`` body with retry."""
        try:
            request = self._builder.build_binary(
                endpoint,
                content,
                title=title,
                method=method,
                timeout=timeout if timeout is not None else self.upload_timeout,
            )
        except ApiError as e:
            logger.warning("Rejected upload to %s: %s", endpoint, e)
            return ApiResult.err(e)

        self._log_request(request, endpoint, binary=True)
        return await self._send_request(request, endpoint)

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        operation_name: str = "operation",
        max_attempts: int | None = None,
    ) -> ApiResult[T]:
        """Run any zero-argument async attempt under the Retry Coordinator."""
        return await self.retry.execute_with_result(
            operation,
            operation_name=operation_name,
            max_attempts=max_attempts,
        )
