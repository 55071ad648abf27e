"""Tests for VideoHandler."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from bunny_stream.api.client import BunnyApiClient
from bunny_stream.api.errors import ErrorKind
from bunny_stream.api.videos import VideoHandler, VideoRecord, VideoStatus, is_guid
from bunny_stream.config.secrets import Credentials
from tests.conftest import (
    ACCESS_KEY,
    COLLECTION_GUID,
    LIBRARY_ID,
    VIDEO_GUID,
    FakeTransport,
    json_response,
    raw_response,
)

VIDEOS_URL = f"https://video.bunnycdn.com/library/{LIBRARY_ID}/videos"


@pytest.fixture
def videos(client: BunnyApiClient) -> VideoHandler:
    return VideoHandler(client)


@pytest.fixture
def video_file(tmp_path: Path) -> Path:
    path = tmp_path / "intro.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42")
    return path


class TestVideoRecord:
    def test_from_api(self, video_payload: dict[str, Any]) -> None:
        record = VideoRecord.from_api(video_payload)

        assert record.guid == VIDEO_GUID
        assert record.title == "Intro"
        assert record.library_id == LIBRARY_ID
        assert record.collection_id == COLLECTION_GUID
        assert record.status is VideoStatus.FINISHED
        assert record.is_ready

    def test_unknown_status(self) -> None:
        record = VideoRecord.from_api({"guid": "g", "status": 99})
        assert record.status is None
        assert not record.is_ready

    def test_terminal_statuses(self) -> None:
        assert VideoStatus.FINISHED.is_terminal
        assert VideoStatus.UPLOAD_FAILED.is_terminal
        assert not VideoStatus.TRANSCODING.is_terminal

    def test_is_guid(self) -> None:
        assert is_guid(VIDEO_GUID)
        assert not is_guid("My holiday video")


@pytest.mark.asyncio
class TestCreate:
    async def test_create_video_object(self, videos: VideoHandler, transport: FakeTransport) -> None:
        transport.enqueue(json_response(200, {"guid": VIDEO_GUID, "title": "Intro"}))

        result = await videos.create_video_object("Intro", collection_id=COLLECTION_GUID)

        assert result.value.guid == VIDEO_GUID
        call = transport.calls[0]
        assert call.url == VIDEOS_URL
        assert call.json() == {"title": "Intro", "collectionId": COLLECTION_GUID}

    async def test_create_video_requires_title(
        self, videos: VideoHandler, transport: FakeTransport
    ) -> None:
        result = await videos.create_video_object("")

        assert result.kind is ErrorKind.MISSING_VIDEO_TITLE
        assert transport.calls == []

    async def test_create_library(self, videos: VideoHandler, transport: FakeTransport) -> None:
        transport.enqueue(json_response(200, {"Id": 98765, "Name": "Course"}))

        result = await videos.create_library("Course")

        assert result.value == "98765"
        call = transport.calls[0]
        assert call.url == "https://api.bunny.net/videolibrary"
        assert call.json() == {"name": "Course", "readOnly": False, "replicationRegions": []}

    async def test_create_library_requires_name(
        self, videos: VideoHandler, transport: FakeTransport
    ) -> None:
        result = await videos.create_library("")

        assert result.kind is ErrorKind.MISSING_LIBRARY_NAME
        assert transport.calls == []

    async def test_create_library_without_id(
        self, videos: VideoHandler, transport: FakeTransport
    ) -> None:
        transport.enqueue(json_response(200, {"Name": "Course"}))

        result = await videos.create_library("Course")

        assert result.kind is ErrorKind.LIBRARY_CREATION_FAILED


@pytest.mark.asyncio
class TestUpload:
    async def test_upload_by_title_creates_then_puts(
        self, videos: VideoHandler, transport: FakeTransport, video_file: Path
    ) -> None:
        transport.enqueue(
            json_response(200, {"guid": VIDEO_GUID, "title": "Intro"}),
            json_response(200, {"success": True}),
        )

        result = await videos.upload_video(video_file, "Intro", collection_id=COLLECTION_GUID)

        assert result.value.guid == VIDEO_GUID
        create, upload = transport.calls
        assert create.method == "POST"
        assert upload.method == "PUT"
        assert upload.url == f"{VIDEOS_URL}/{VIDEO_GUID}"
        assert upload.data == video_file.read_bytes()
        assert upload.headers["Title"] == "Intro"
        assert upload.headers["Content-Type"] == "application/octet-stream"
        assert upload.timeout == 20.0

    async def test_upload_into_existing_guid(
        self, videos: VideoHandler, transport: FakeTransport, video_file: Path
    ) -> None:
        transport.enqueue(json_response(200, {"success": True}))

        result = await videos.upload_video(video_file, VIDEO_GUID)

        assert result.value.guid == VIDEO_GUID
        assert len(transport.calls) == 1
        assert transport.calls[0].headers["Title"] == "intro"

    async def test_upload_missing_file(
        self, videos: VideoHandler, transport: FakeTransport, tmp_path: Path
    ) -> None:
        result = await videos.upload_video(tmp_path / "nope.mp4", "Intro")

        assert result.kind is ErrorKind.INVALID_FILE
        assert transport.calls == []

    async def test_upload_requires_title(
        self, videos: VideoHandler, transport: FakeTransport, video_file: Path
    ) -> None:
        result = await videos.upload_video(video_file, "")

        assert result.kind is ErrorKind.MISSING_VIDEO_TITLE
        assert transport.calls == []

    async def test_upload_missing_library(
        self, make_client, transport: FakeTransport, video_file: Path
    ) -> None:
        client = make_client(Credentials(access_key=ACCESS_KEY, library_id=""))

        result = await VideoHandler(client).upload_video(video_file, "Intro")

        assert result.kind is ErrorKind.MISSING_LIBRARY_ID
        assert transport.calls == []

    async def test_failed_create_skips_upload(
        self, videos: VideoHandler, transport: FakeTransport, video_file: Path
    ) -> None:
        transport.enqueue(*(raw_response(500, b"down") for _ in range(3)))

        result = await videos.upload_video(video_file, "Intro")

        assert result.kind is ErrorKind.API_FAILURE
        assert all(call.method == "POST" for call in transport.calls)

    async def test_failed_upload(
        self, videos: VideoHandler, transport: FakeTransport, video_file: Path
    ) -> None:
        transport.enqueue(*(raw_response(500, b"down") for _ in range(3)))

        result = await videos.upload_video(video_file, VIDEO_GUID)

        assert result.kind is ErrorKind.API_FAILURE


@pytest.mark.asyncio
class TestStatusAndPlayback:
    async def test_get_video_status(
        self, videos: VideoHandler, transport: FakeTransport, video_payload: dict[str, Any]
    ) -> None:
        transport.enqueue(json_response(200, video_payload))

        result = await videos.get_video_status(VIDEO_GUID)

        assert result.value.status is VideoStatus.FINISHED
        assert transport.calls[0].url == f"{VIDEOS_URL}/{VIDEO_GUID}"

    async def test_is_video_ready(self, videos: VideoHandler, transport: FakeTransport) -> None:
        transport.enqueue(json_response(200, {"guid": VIDEO_GUID, "status": 3}))

        result = await videos.is_video_ready(VIDEO_GUID)

        assert result.value is False

    async def test_status_requires_guid(
        self, videos: VideoHandler, transport: FakeTransport
    ) -> None:
        result = await videos.get_video_status("")

        assert result.kind is ErrorKind.MISSING_VIDEO_ID
        assert transport.calls == []

    async def test_playback_url_from_playlist(
        self, videos: VideoHandler, transport: FakeTransport
    ) -> None:
        playlist = f"https://vz-abc.b-cdn.net/{VIDEO_GUID}/playlist.m3u8"
        transport.enqueue(json_response(200, {"videoPlaylistUrl": playlist}))

        result = await videos.get_playback_url(VIDEO_GUID)

        assert result.value == playlist
        assert transport.calls[0].url == f"{VIDEOS_URL}/{VIDEO_GUID}/play"

    async def test_playback_url_falls_back_to_embed(
        self, videos: VideoHandler, transport: FakeTransport
    ) -> None:
        transport.enqueue(json_response(200, {}))

        result = await videos.get_playback_url(VIDEO_GUID)

        assert result.value == f"https://iframe.mediadelivery.net/embed/{LIBRARY_ID}/{VIDEO_GUID}"

    async def test_delete_video(self, videos: VideoHandler, transport: FakeTransport) -> None:
        transport.enqueue(raw_response(200, b""))

        result = await videos.delete_video(VIDEO_GUID)

        assert result.value is True
        assert transport.calls[0].method == "DELETE"
