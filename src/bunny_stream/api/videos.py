"""Videos and video-library resource handler.

Every operation is a thin wrapper over a single client call (two for an
upload by title: create the video object, then PUT the bytes).

Example usage:
    videos = VideoHandler(client)
    uploaded = await videos.upload_video("/tmp/intro.mp4", "Intro")
    status = await videos.get_video_status(uploaded.unwrap().guid)
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from bunny_stream.api.errors import ApiResult, ErrorKind
from bunny_stream.api.request import ApiBase

if TYPE_CHECKING:
    from bunny_stream.api.client import BunnyApiClient

logger = logging.getLogger(__name__)

EMBED_URL_TEMPLATE = "https://iframe.mediadelivery.net/embed/{library_id}/{video_id}"


class VideoStatus(IntEnum):
    """Encode status codes reported by the Stream API."""

    CREATED = 0
    UPLOADED = 1
    PROCESSING = 2
    TRANSCODING = 3
    FINISHED = 4
    ERROR = 5
    UPLOAD_FAILED = 6

    @classmethod
    def parse(cls, value: Any) -> VideoStatus | None:
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return None

    @property
    def is_terminal(self) -> bool:
        return self in (VideoStatus.FINISHED, VideoStatus.ERROR, VideoStatus.UPLOAD_FAILED)


@dataclass(frozen=True, slots=True)
class VideoRecord:
    """A video object as returned by the Stream API.

    Attributes:
        guid: Upstream-assigned video ID
        title: Video title
        library_id: Owning library
        collection_id: Collection the video belongs to, if any
        status: Encode status, None if upstream did not report one
        encode_progress: Encode progress percentage
        length: Duration in seconds
    """

    guid: str
    title: str = ""
    library_id: str | None = None
    collection_id: str | None = None
    status: VideoStatus | None = None
    encode_progress: int = 0
    length: int = 0
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> VideoRecord:
        library_id = data.get("videoLibraryId")
        return cls(
            guid=str(data.get("guid") or data.get("videoId") or ""),
            title=str(data.get("title") or ""),
            library_id=str(library_id) if library_id is not None else None,
            collection_id=data.get("collectionId") or None,
            status=VideoStatus.parse(data.get("status")),
            encode_progress=int(data.get("encodeProgress") or 0),
            length=int(data.get("length") or 0),
            raw=dict(data),
        )

    @property
    def is_ready(self) -> bool:
        return self.status is VideoStatus.FINISHED


def is_guid(value: str) -> bool:
    """Check whether ``value`` is a video GUID rather than a title."""
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


class VideoHandler:
    """Video objects, uploads, encode status and library creation."""

    def __init__(self, client: BunnyApiClient) -> None:
        self.client = client

    def _videos_endpoint(self, video_id: str | None = None) -> str:
        endpoint = f"library/{self.client.library_id}/videos"
        if video_id:
            endpoint += f"/{video_id}"
        return endpoint

    def _missing_library(self) -> ApiResult[Any]:
        return ApiResult.fail(
            ErrorKind.MISSING_LIBRARY_ID,
            "Library ID is not set in the plugin settings.",
        )

    def _missing_video_id(self) -> ApiResult[Any]:
        return ApiResult.fail(ErrorKind.MISSING_VIDEO_ID, "Video ID is required.")

    async def create_video_object(
        self,
        title: str,
        *,
        collection_id: str | None = None,
    ) -> ApiResult[VideoRecord]:
        """Create an empty video object to upload into later."""
        if not self.client.library_id:
            return self._missing_library()
        if not title:
            return ApiResult.fail(ErrorKind.MISSING_VIDEO_TITLE, "Video title is required.")

        data: dict[str, Any] = {"title": title}
        if collection_id:
            data["collectionId"] = collection_id

        response = await self.client.send(self._videos_endpoint(), "POST", data)
        return response.map(VideoRecord.from_api)

    async def create_library(self, name: str) -> ApiResult[str]:
        """Create a new video library on the account API. Returns its ID."""
        if not name:
            return ApiResult.fail(
                ErrorKind.MISSING_LIBRARY_NAME,
                "Library name is required to create a new library.",
            )

        data = {"name": name, "readOnly": False, "replicationRegions": []}
        response = await self.client.send("videolibrary", "POST", data, base=ApiBase.ACCOUNT)
        if not response.is_successful:
            return ApiResult.err(response.error)  # type: ignore[arg-type]

        payload = response.value if isinstance(response.value, dict) else {}
        library_id = payload.get("guid") or payload.get("Id")
        if not library_id:
            return ApiResult.fail(
                ErrorKind.LIBRARY_CREATION_FAILED,
                "Library creation failed. Response did not include a library ID.",
            )
        logger.info("Created video library %s: %s", name, library_id)
        return ApiResult.ok(str(library_id))

    async def upload_video(
        self,
        file_path: str | Path,
        video_guid_or_title: str,
        *,
        collection_id: str | None = None,
    ) -> ApiResult[VideoRecord]:
        """Upload a local file.

        Args:
            file_path: Video file to upload
            video_guid_or_title: GUID of an existing video object, or the
                title of a new one to create first
            collection_id: Collection for a newly created video object

        Returns:
            ApiResult with the uploaded video
        """
        if not self.client.library_id:
            return self._missing_library()
        if not video_guid_or_title:
            return ApiResult.fail(ErrorKind.MISSING_VIDEO_TITLE, "Video title is required.")

        path = Path(file_path) if file_path else None
        if path is None or not path.is_file():
            return ApiResult.fail(
                ErrorKind.INVALID_FILE,
                "The file path is missing or invalid.",
            )

        if is_guid(video_guid_or_title):
            video = VideoRecord(guid=video_guid_or_title, title=path.stem)
        else:
            created = await self.create_video_object(
                video_guid_or_title, collection_id=collection_id
            )
            if not created.is_successful:
                return created
            video = created.value  # type: ignore[assignment]
            if not video.guid:
                return ApiResult.fail(
                    ErrorKind.INVALID_RESPONSE,
                    "Bunny.net did not return a video GUID.",
                )

        try:
            content = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            return ApiResult.fail(ErrorKind.INVALID_FILE, f"Unable to read file: {e}")

        logger.info(
            "Uploading video: LibraryID=%s, FilePath=%s, Title=%s",
            self.client.library_id,
            path,
            video.title,
        )
        response = await self.client.send_binary(
            self._videos_endpoint(video.guid),
            content,
            title=video.title or path.stem,
        )
        if not response.is_successful:
            logger.error("Video upload failed for %s: %s", video.guid, response.error)
            return ApiResult.err(response.error)  # type: ignore[arg-type]
        return ApiResult.ok(video)

    async def get_video(self, guid: str) -> ApiResult[VideoRecord]:
        if not self.client.library_id:
            return self._missing_library()
        if not guid:
            return self._missing_video_id()
        response = await self.client.send(self._videos_endpoint(guid), "GET")
        return response.map(VideoRecord.from_api)

    async def get_video_status(self, guid: str) -> ApiResult[VideoRecord]:
        """Fetch the video, whose ``status`` carries the encode state."""
        return await self.get_video(guid)

    async def is_video_ready(self, guid: str) -> ApiResult[bool]:
        """True once the video has finished encoding."""
        video = await self.get_video_status(guid)
        return video.map(lambda record: record.is_ready)

    def embed_url(self, guid: str) -> str:
        return EMBED_URL_TEMPLATE.format(library_id=self.client.library_id, video_id=guid)

    async def get_playback_url(self, guid: str) -> ApiResult[str]:
        """Playlist URL for a video, falling back to the iframe embed URL."""
        if not self.client.library_id:
            return self._missing_library()
        if not guid:
            return self._missing_video_id()

        response = await self.client.send(f"{self._videos_endpoint(guid)}/play", "GET")
        if not response.is_successful:
            return ApiResult.err(response.error)  # type: ignore[arg-type]

        payload = response.value if isinstance(response.value, dict) else {}
        url = payload.get("videoPlaylistUrl") or payload.get("playbackUrl")
        return ApiResult.ok(str(url) if url else self.embed_url(guid))

    async def delete_video(self, guid: str) -> ApiResult[bool]:
        if not self.client.library_id:
            return self._missing_library()
        if not guid:
            return self._missing_video_id()
        response = await self.client.send(self._videos_endpoint(guid), "DELETE")
        return response.map(lambda _: True)
