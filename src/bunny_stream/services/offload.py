"""Offloading of uploaded video attachments to Bunny.net Stream.

When a user uploads a video to the site, the file is sent to the user's
collection and the resulting GUID and playback URL are recorded against the
attachment, so later requests can serve the video from Bunny.net.

Usage:
    offloader = VideoOffloader(collections, videos, metadata_store)
    result = await offloader.offload_video(
        attachment_id=991,
        file_path="/uploads/clip.mp4",
        user_id=42,
        mime_type="video/mp4",
    )
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from bunny_stream.api.errors import ApiResult, ErrorKind
from bunny_stream.stores.protocol import VideoMetadata

if TYPE_CHECKING:
    from bunny_stream.api.collections import CollectionHandler
    from bunny_stream.api.videos import VideoHandler
    from bunny_stream.stores.protocol import MetadataStore

logger = logging.getLogger(__name__)


class VideoOffloader:
    """Moves video attachments into per-user Bunny.net collections."""

    def __init__(
        self,
        collections: CollectionHandler,
        videos: VideoHandler,
        metadata: MetadataStore,
        *,
        delete_local_file: bool = False,
    ) -> None:
        """Initialize the offloader.

        Args:
            collections: Handler used to resolve the user's collection
            videos: Handler used for the upload and playback lookups
            metadata: Where attachment video metadata is stored
            delete_local_file: Remove the local copy after a successful upload
        """
        self.collections = collections
        self.videos = videos
        self.metadata = metadata
        self.delete_local_file = delete_local_file

    async def offload_video(
        self,
        attachment_id: int | str,
        file_path: str | Path,
        user_id: int | str | None,
        mime_type: str,
        *,
        title: str | None = None,
    ) -> ApiResult[VideoMetadata | None]:
        """Upload one attachment.

        Returns ``Ok(None)`` when there is nothing to do: the file is not a
        video or there is no user to own it. An attachment that was already
        offloaded returns its existing metadata without uploading again.
        """
        if not mime_type or not mime_type.startswith("video/"):
            return ApiResult.ok(None)

        existing = await self.metadata.get(attachment_id)
        if existing is not None and existing.video_guid:
            logger.info(
                "Skipping offload; video already offloaded (ID: %s).",
                existing.video_guid,
            )
            return ApiResult.ok(existing)

        if not user_id:
            return ApiResult.ok(None)

        path = Path(file_path)
        if not path.is_file():
            logger.error("Invalid file path provided for video offloading: %s", path)
            return ApiResult.fail(
                ErrorKind.INVALID_FILE,
                "The provided file path is invalid.",
            )

        collection = await self.collections.get_or_create_user_collection(user_id)
        if not collection.is_successful:
            logger.error("Failed to create collection: %s", collection.error)
            return ApiResult.err(collection.error)  # type: ignore[arg-type]

        uploaded = await self.videos.upload_video(
            path,
            title or path.stem,
            collection_id=collection.value,
        )
        if not uploaded.is_successful:
            logger.error("Video upload failed: %s", uploaded.error)
            return ApiResult.err(uploaded.error)  # type: ignore[arg-type]

        video = uploaded.value
        assert video is not None
        playback = await self.videos.get_playback_url(video.guid)
        metadata = VideoMetadata(
            video_guid=video.guid,
            collection_id=collection.value,
            video_url=playback.value if playback.is_successful else None,
        )
        await self.metadata.put(attachment_id, metadata)

        if self.delete_local_file:
            path.unlink(missing_ok=True)

        logger.info("Video offloaded successfully. Video ID: %s", video.guid)
        return ApiResult.ok(metadata)

    async def refresh_playback_url(self, attachment_id: int | str) -> ApiResult[VideoMetadata | None]:
        """Fill in a missing playback URL for an offloaded attachment."""
        metadata = await self.metadata.get(attachment_id)
        if metadata is None or not metadata.video_guid:
            return ApiResult.ok(None)
        if metadata.video_url:
            return ApiResult.ok(metadata)

        playback = await self.videos.get_playback_url(metadata.video_guid)
        if not playback.is_successful:
            logger.warning(
                "Playback URL not found for Video ID %s: %s",
                metadata.video_guid,
                playback.error,
            )
            return ApiResult.err(playback.error)  # type: ignore[arg-type]

        updated = VideoMetadata(
            video_guid=metadata.video_guid,
            collection_id=metadata.collection_id,
            video_url=playback.value,
            source=metadata.source,
        )
        await self.metadata.put(attachment_id, updated)
        return ApiResult.ok(updated)
