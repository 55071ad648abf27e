"""In-process implementations of the collaborator stores.

Suitable for single-process deployments, the CLI and tests. The transient
store takes a ``clock`` callable so expiry can be driven by a fake clock.

Example usage:
    store = InMemoryTransientStore()
    if await store.add("lock:42", True, ttl=10):
        try:
            ...
        finally:
            await store.delete("lock:42")
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from bunny_stream.stores.protocol import VideoMetadata


@dataclass(slots=True)
class _Entry:
    value: Any
    expires_at: float | None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class InMemoryTransientStore:
    """Dictionary-backed TTL store.

    Methods never await between the read and the write, so within one
    event loop ``add`` is atomic.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    def _live(self, key: str) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry

    def _expiry(self, ttl: float | None) -> float | None:
        if ttl is None:
            return None
        return self._clock() + ttl

    async def get(self, key: str) -> Any | None:
        entry = self._live(key)
        return entry.value if entry is not None else None

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        self._entries[key] = _Entry(value, self._expiry(ttl))

    async def add(self, key: str, value: Any, ttl: float | None = None) -> bool:
        if self._live(key) is not None:
            return False
        self._entries[key] = _Entry(value, self._expiry(ttl))
        return True

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for entry in self._entries.values() if not entry.is_expired(now))


class InMemoryUserCollectionStore:
    """User -> collection GUID mapping held in a dict."""

    def __init__(self) -> None:
        self._collections: dict[str, str] = {}

    async def get(self, user_id: int | str) -> str | None:
        return self._collections.get(str(user_id))

    async def put(self, user_id: int | str, collection_id: str) -> None:
        self._collections[str(user_id)] = collection_id

    async def delete(self, user_id: int | str) -> None:
        self._collections.pop(str(user_id), None)


class InMemoryMetadataStore:
    """Attachment -> VideoMetadata mapping held in a dict."""

    def __init__(self) -> None:
        self._metadata: dict[str, VideoMetadata] = {}

    async def get(self, attachment_id: int | str) -> VideoMetadata | None:
        return self._metadata.get(str(attachment_id))

    async def put(self, attachment_id: int | str, metadata: VideoMetadata) -> None:
        self._metadata[str(attachment_id)] = metadata

    async def delete(self, attachment_id: int | str) -> None:
        self._metadata.pop(str(attachment_id), None)
