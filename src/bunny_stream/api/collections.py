"""Collections resource handler.

Each site user owns one Bunny.net collection named ``<prefix>_<user_id>``.
Because the name is derived rather than user-supplied, looking it up by
name before creating is a safe idempotency check: calling
``create_collection`` twice for the same user yields the same GUID and at
most one upstream create.

Example usage:
    handler = CollectionHandler(client, user_collections=store)
    result = await handler.create_collection(user_id=42)
    guid = result.unwrap()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from bunny_stream.api.errors import ApiResult, ErrorKind

if TYPE_CHECKING:
    from bunny_stream.api.client import BunnyApiClient
    from bunny_stream.stores.protocol import UserCollectionStore

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION_PREFIX = "wpbs"
COLLECTION_LOCK_TTL = 10.0
# Upstream page size; a single page is assumed to hold every collection
COLLECTIONS_PER_PAGE = 100


def collection_name_for(user_id: int | str, prefix: str = DEFAULT_COLLECTION_PREFIX) -> str:
    """Deterministic collection name for a user, e.g. ``wpbs_42``."""
    return f"{prefix}_{user_id}"


def collection_lock_key(user_id: int | str, prefix: str = DEFAULT_COLLECTION_PREFIX) -> str:
    return f"{prefix}_collection_lock_{user_id}"


@dataclass(frozen=True, slots=True)
class CollectionRecord:
    """A collection as returned by the Stream API.

    Attributes:
        guid: Upstream-assigned collection ID, immutable once created
        name: Collection name
        video_count: Number of videos in the collection
        total_size: Total storage used in bytes
        preview_video_ids: Comma-separated preview video GUIDs, if any
    """

    guid: str
    name: str
    video_count: int = 0
    total_size: int = 0
    preview_video_ids: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CollectionRecord:
        return cls(
            guid=str(data.get("guid", "")),
            name=str(data.get("name", "")),
            video_count=int(data.get("videoCount") or 0),
            total_size=int(data.get("totalSize") or 0),
            preview_video_ids=data.get("previewVideoIds"),
            raw=dict(data),
        )


class CollectionHandler:
    """CRUD operations on the collections of the client's video library."""

    def __init__(
        self,
        client: BunnyApiClient,
        *,
        user_collections: UserCollectionStore | None = None,
        prefix: str = DEFAULT_COLLECTION_PREFIX,
        lock_ttl: float = COLLECTION_LOCK_TTL,
    ) -> None:
        self.client = client
        self.user_collections = user_collections
        self.prefix = prefix
        self.lock_ttl = lock_ttl

    def _collections_endpoint(self, collection_id: str | None = None) -> str:
        endpoint = f"library/{self.client.library_id}/collections"
        if collection_id:
            endpoint += f"/{collection_id}"
        return endpoint

    def _missing_library(self, action: str) -> ApiResult[Any]:
        logger.warning("Library ID is missing or not set.")
        return ApiResult.fail(
            ErrorKind.MISSING_LIBRARY_ID,
            f"Library ID is required to {action}.",
        )

    async def create_collection(
        self,
        user_id: int | str,
        additional_data: dict[str, Any] | None = None,
    ) -> ApiResult[str]:
        """Create the user's collection, or return the one that exists.

        A per-user lock guards against two requests creating the same
        collection at once; a caller that finds the lock held gets
        COLLECTION_CREATION_LOCKED and should retry later.

        Args:
            user_id: Local owner of the collection
            additional_data: Extra fields for the create call

        Returns:
            ApiResult with the collection GUID
        """
        if not self.client.library_id:
            return self._missing_library("create a collection")
        if user_id is None or user_id == "":
            return ApiResult.fail(
                ErrorKind.MISSING_USER_ID,
                "User ID is required to create a collection.",
            )

        name = collection_name_for(user_id, self.prefix)
        lock_key = collection_lock_key(user_id, self.prefix)
        store = self.client.transient_store

        if not await store.add(lock_key, True, ttl=self.lock_ttl):
            logger.info("Collection creation for user %s already in progress", user_id)
            return ApiResult.fail(
                ErrorKind.COLLECTION_CREATION_LOCKED,
                "Collection creation is already in progress. Try again later.",
            )

        try:
            existing = await self.list_collections()
            if existing.is_successful:
                for collection in existing.value or []:
                    if collection.name == name:
                        logger.info(
                            "Collection %s already exists for user %s: %s",
                            name,
                            user_id,
                            collection.guid,
                        )
                        await self._remember(user_id, collection.guid)
                        return ApiResult.ok(collection.guid)
            else:
                logger.warning(
                    "Could not list collections before creating %s: %s",
                    name,
                    existing.error,
                )

            data = {**(additional_data or {}), "name": name}
            response = await self.client.send(self._collections_endpoint(), "POST", data)
        finally:
            await store.delete(lock_key)

        guid = response.value.get("guid") if isinstance(response.value, dict) else None
        if not response.is_successful or not guid:
            logger.error(
                "Failed to create collection %s: %s",
                name,
                response.error or "response did not include a GUID",
            )
            return ApiResult.fail(
                ErrorKind.COLLECTION_CREATION_FAILED,
                "Failed to create collection on Bunny.net.",
            )

        logger.info("Created collection %s for user %s: %s", name, user_id, guid)
        await self._remember(user_id, str(guid))
        return ApiResult.ok(str(guid))

    async def _remember(self, user_id: int | str, collection_id: str) -> None:
        if self.user_collections is not None:
            await self.user_collections.put(user_id, collection_id)

    async def get_or_create_user_collection(self, user_id: int | str) -> ApiResult[str]:
        """Return the stored collection for a user, creating one if needed."""
        if self.user_collections is not None and user_id not in (None, ""):
            stored = await self.user_collections.get(user_id)
            if stored:
                return ApiResult.ok(stored)
        return await self.create_collection(user_id)

    async def get_collection(self, collection_id: str) -> ApiResult[CollectionRecord | None]:
        """Find a collection by GUID. Absence is ``Ok(None)``, not an error."""
        collections = await self.list_collections()
        if not collections.is_successful:
            return ApiResult.err(collections.error)  # type: ignore[arg-type]

        for collection in collections.value or []:
            if collection.guid == collection_id:
                return ApiResult.ok(collection)
        return ApiResult.ok(None)

    async def delete_collection(
        self,
        collection_id: str,
        user_id: int | str | None = None,
    ) -> ApiResult[bool]:
        """Delete a collection and forget the user's association with it."""
        if not self.client.library_id:
            return self._missing_library("delete a collection")
        if not collection_id:
            return ApiResult.fail(
                ErrorKind.MISSING_COLLECTION_ID,
                "Collection ID is required.",
            )

        response = await self.client.send(
            self._collections_endpoint(collection_id), "DELETE"
        )
        if not response.is_successful:
            return ApiResult.err(response.error)  # type: ignore[arg-type]

        if user_id and self.user_collections is not None:
            await self.user_collections.delete(user_id)

        logger.info("Deleted collection %s", collection_id)
        return ApiResult.ok(True)

    async def list_collections(self) -> ApiResult[list[CollectionRecord]]:
        """List the collections of the library (first page only)."""
        if not self.client.library_id:
            return self._missing_library("fetch collections")

        endpoint = (
            f"{self._collections_endpoint()}?page=1&itemsPerPage={COLLECTIONS_PER_PAGE}"
        )
        response = await self.client.send(endpoint, "GET")
        if not response.is_successful:
            return ApiResult.err(response.error)  # type: ignore[arg-type]

        payload = response.value
        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            return ApiResult.fail(
                ErrorKind.INVALID_COLLECTION_LIST_RESPONSE,
                "Invalid response from Bunny.net when listing collections.",
            )

        return ApiResult.ok(
            [CollectionRecord.from_api(item) for item in items if isinstance(item, dict)]
        )

    async def update_collection(
        self,
        collection_id: str,
        data: dict[str, Any],
    ) -> ApiResult[Any]:
        """Update a collection, dropping None and empty-string fields first.

        Returns NO_UPDATE_DATA without calling upstream if nothing is left.
        """
        if not self.client.library_id:
            return self._missing_library("update a collection")
        if not collection_id:
            return ApiResult.fail(
                ErrorKind.MISSING_COLLECTION_ID,
                "Collection ID is required.",
            )

        filtered = {
            key: value
            for key, value in (data or {}).items()
            if value is not None and value != ""
        }
        if not filtered:
            return ApiResult.fail(
                ErrorKind.NO_UPDATE_DATA,
                "No changes detected for the collection update.",
            )

        return await self.client.send(
            self._collections_endpoint(collection_id), "PUT", filtered
        )
