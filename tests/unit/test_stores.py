"""Tests for the store protocols and in-memory stores."""

from __future__ import annotations

import pytest

from bunny_stream.stores import (
    InMemoryMetadataStore,
    InMemoryTransientStore,
    InMemoryUserCollectionStore,
    MetadataStore,
    TransientStore,
    UserCollectionStore,
    VideoMetadata,
)
from tests.conftest import FakeClock


class TestProtocols:
    def test_in_memory_stores_satisfy_protocols(self) -> None:
        assert isinstance(InMemoryTransientStore(), TransientStore)
        assert isinstance(InMemoryUserCollectionStore(), UserCollectionStore)
        assert isinstance(InMemoryMetadataStore(), MetadataStore)


class TestVideoMetadata:
    def test_dict_round_trip(self) -> None:
        metadata = VideoMetadata(video_guid="g", collection_id="c", video_url="u")

        data = metadata.to_dict()

        assert data == {
            "video_guid": "g",
            "collection_id": "c",
            "video_url": "u",
            "source": "bunnycdn",
        }
        assert VideoMetadata.from_dict(data) == metadata

    def test_from_partial_dict(self) -> None:
        metadata = VideoMetadata.from_dict({"video_guid": "g"})
        assert metadata.source == "bunnycdn"
        assert metadata.video_url is None


@pytest.mark.asyncio
class TestInMemoryTransientStore:
    async def test_set_get_delete(self, clock: FakeClock) -> None:
        store = InMemoryTransientStore(clock=clock)

        await store.set("k", 1)
        assert await store.get("k") == 1

        await store.delete("k")
        assert await store.get("k") is None
        # Deleting twice is fine
        await store.delete("k")

    async def test_ttl_expiry(self, clock: FakeClock) -> None:
        store = InMemoryTransientStore(clock=clock)
        await store.set("k", "v", ttl=10)

        clock.advance(9)
        assert await store.get("k") == "v"

        clock.advance(1)
        assert await store.get("k") is None
        assert len(store) == 0

    async def test_add_is_set_if_absent(self, clock: FakeClock) -> None:
        store = InMemoryTransientStore(clock=clock)

        assert await store.add("lock", True, ttl=10) is True
        assert await store.add("lock", True, ttl=10) is False

        clock.advance(10)
        assert await store.add("lock", True, ttl=10) is True


@pytest.mark.asyncio
class TestInMemoryKeyedStores:
    async def test_user_collections(self) -> None:
        store = InMemoryUserCollectionStore()

        await store.put(42, "guid")
        assert await store.get("42") == "guid"

        await store.delete(42)
        assert await store.get(42) is None

    async def test_metadata(self) -> None:
        store = InMemoryMetadataStore()
        metadata = VideoMetadata(video_guid="g")

        await store.put(7, metadata)
        assert await store.get("7") == metadata

        await store.delete("7")
        assert await store.get(7) is None
