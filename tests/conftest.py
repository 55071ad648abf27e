"""Shared pytest fixtures for bunny_stream tests.

Fixtures are organized into categories:
- Time fixtures (a fake clock whose sleep advances time instantly)
- Transport fixtures (a scripted stand-in for HTTPClient)
- Client fixtures (credentials, stores and a fully wired BunnyApiClient)
- Sample payloads

Usage:
    async def test_example(client, transport, collection_list_payload):
        transport.enqueue(json_response(200, collection_list_payload))
        result = await client.send("library/123/collections", "GET")
        assert result.is_successful
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any

import pytest

from bunny_stream.api.client import BunnyApiClient
from bunny_stream.api.retry import RateLimitState, RetryConfig, RetryCoordinator
from bunny_stream.config.secrets import Credentials
from bunny_stream.stores.memory import InMemoryTransientStore
from bunny_stream.utils.http_client import HTTPResponse

LIBRARY_ID = "123456"
ACCESS_KEY = "super-secret-access-key"
VIDEO_GUID = "0b7c3f5e-7a6d-4c1e-9d2b-3f4a5b6c7d8e"
COLLECTION_GUID = "c2a1e5d4-1111-2222-3333-444455556666"


# =============================================================================
# Helpers
# =============================================================================


def json_response(
    status: int = 200,
    payload: Any = None,
    headers: dict[str, str] | None = None,
) -> HTTPResponse:
    """Build an HTTPResponse carrying ``payload`` as a JSON body."""
    content = b"" if payload is None else json.dumps(payload).encode("utf-8")
    return HTTPResponse(
        status=status,
        headers={"Content-Type": "application/json", **(headers or {})},
        content=content,
        url="https://video.bunnycdn.com/",
    )


def raw_response(status: int, content: bytes, headers: dict[str, str] | None = None) -> HTTPResponse:
    return HTTPResponse(
        status=status,
        headers=headers or {},
        content=content,
        url="https://video.bunnycdn.com/",
    )


class FakeClock:
    """Controllable clock; ``sleep`` records the delay and advances time."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


@dataclass
class RecordedRequest:
    method: str
    url: str
    headers: dict[str, str]
    data: bytes | str | None
    timeout: float | None

    def json(self) -> Any:
        assert self.data is not None
        raw = self.data.decode("utf-8") if isinstance(self.data, bytes) else self.data
        return json.loads(raw)


@dataclass
class FakeTransport:
    """Stand-in for HTTPClient that replays queued responses in order.

    Queue an exception instance to have the request raise it. Set ``gate``
    to an unset asyncio.Event to hold every request until the event fires.
    """

    responses: list[HTTPResponse | Exception] = field(default_factory=list)
    calls: list[RecordedRequest] = field(default_factory=list)
    gate: asyncio.Event | None = None
    closed: bool = False

    def enqueue(self, *responses: HTTPResponse | Exception) -> None:
        self.responses.extend(responses)

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        data: bytes | str | None = None,
        timeout: float | None = None,
    ) -> HTTPResponse:
        self.calls.append(RecordedRequest(method, url, dict(headers or {}), data, timeout))
        if self.gate is not None:
            await self.gate.wait()
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True


# =============================================================================
# Time Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# =============================================================================
# Client Fixtures
# =============================================================================


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(access_key=ACCESS_KEY, library_id=LIBRARY_ID)


@pytest.fixture
def transient_store(clock: FakeClock) -> InMemoryTransientStore:
    return InMemoryTransientStore(clock=clock)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def make_client(
    credentials: Credentials,
    transport: FakeTransport,
    transient_store: InMemoryTransientStore,
    clock: FakeClock,
):
    """Factory fixture building clients that share one transport and store.

    Usage:
        def test_example(make_client):
            client = make_client(max_attempts=4)
    """

    def _make(
        creds: Credentials | None = None,
        *,
        max_attempts: int = 3,
        **kwargs: Any,
    ) -> BunnyApiClient:
        coordinator = RetryCoordinator(
            RetryConfig(max_attempts=max_attempts),
            RateLimitState(transient_store, clock=clock),
            sleep=clock.sleep,
        )
        return BunnyApiClient(
            creds or credentials,
            http_client=transport,  # type: ignore[arg-type]
            transient_store=transient_store,
            retry_coordinator=coordinator,
            **kwargs,
        )

    return _make


@pytest.fixture
def client(make_client) -> BunnyApiClient:
    return make_client()


# =============================================================================
# Sample Payloads
# =============================================================================


@pytest.fixture
def collection_list_payload() -> dict[str, Any]:
    """Sample response of GET library/{id}/collections."""
    return {
        "totalItems": 2,
        "currentPage": 1,
        "itemsPerPage": 100,
        "items": [
            {
                "videoLibraryId": int(LIBRARY_ID),
                "guid": COLLECTION_GUID,
                "name": "wpbs_42",
                "videoCount": 3,
                "totalSize": 1048576,
                "previewVideoIds": VIDEO_GUID,
            },
            {
                "videoLibraryId": int(LIBRARY_ID),
                "guid": "d9f8e7c6-0000-1111-2222-333344445555",
                "name": "marketing",
                "videoCount": 0,
                "totalSize": 0,
                "previewVideoIds": None,
            },
        ],
    }


@pytest.fixture
def video_payload() -> dict[str, Any]:
    """Sample response of GET library/{id}/videos/{guid}."""
    return {
        "videoLibraryId": int(LIBRARY_ID),
        "guid": VIDEO_GUID,
        "title": "Intro",
        "collectionId": COLLECTION_GUID,
        "status": 4,
        "encodeProgress": 100,
        "length": 93,
    }
