"""Collaborator interfaces the API layer depends on.

The surrounding application provides these. Using Protocols keeps the API
layer free of any particular cache, database or CMS: anything with the
right methods can be passed in.

- TransientStore: small TTL key-value cache for coordination markers
  (the shared rate-limit marker and per-user creation locks)
- UserCollectionStore: durable user -> collection GUID associations
- MetadataStore: video metadata attached to a local post/attachment
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TransientStore(Protocol):
    """Time-bounded key-value store.

    Entries disappear on their own once their TTL has passed. ``add`` is
    the atomic set-if-absent used for mutual exclusion; implementations
    backed by a shared cache should map it onto the cache's native
    add/SETNX operation.
    """

    async def get(self, key: str) -> Any | None:
        """Return the live value for ``key``, or None if absent/expired."""
        ...

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds (forever if None)."""
        ...

    async def add(self, key: str, value: Any, ttl: float | None = None) -> bool:
        """Store ``value`` only if ``key`` is absent. Returns True if stored."""
        ...

    async def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        ...


@runtime_checkable
class UserCollectionStore(Protocol):
    """Durable mapping of local user IDs to Bunny.net collection GUIDs."""

    async def get(self, user_id: int | str) -> str | None: ...

    async def put(self, user_id: int | str, collection_id: str) -> None: ...

    async def delete(self, user_id: int | str) -> None: ...


@dataclass(frozen=True, slots=True)
class VideoMetadata:
    """Video details stored against a local attachment.

    Attributes:
        video_guid: Bunny.net video GUID
        collection_id: Collection the video was uploaded into
        video_url: Playback URL, filled in once known
        source: Where the video is served from
    """

    video_guid: str
    collection_id: str | None = None
    video_url: str | None = None
    source: str = "bunnycdn"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VideoMetadata:
        return cls(
            video_guid=data["video_guid"],
            collection_id=data.get("collection_id"),
            video_url=data.get("video_url"),
            source=data.get("source", "bunnycdn"),
        )


@runtime_checkable
class MetadataStore(Protocol):
    """Per-attachment video metadata storage."""

    async def get(self, attachment_id: int | str) -> VideoMetadata | None: ...

    async def put(self, attachment_id: int | str, metadata: VideoMetadata) -> None: ...

    async def delete(self, attachment_id: int | str) -> None: ...
