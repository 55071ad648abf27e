"""Request construction for the Bunny.net APIs.

Two authentication strategies exist upstream: the Stream API takes the
library key in an ``AccessKey`` header, while the alternate client
authenticates with ``Authorization: Bearer``. Both are implemented behind
the same :class:`RequestBuilder` interface so the client does not care
which one it was handed.

Example usage:
    builder = AccessKeyRequestBuilder(access_key="...")
    request = builder.build_json("library/123/collections", "post", {"name": "wpbs_1"})
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from bunny_stream.api.errors import ApiError, ErrorKind

if TYPE_CHECKING:
    from collections.abc import Mapping

VIDEO_BASE_URL = "https://video.bunnycdn.com/"
API_BASE_URL = "https://api.bunny.net/"

ALLOWED_METHODS: frozenset[str] = frozenset({"GET", "POST", "PUT", "DELETE"})

# Header names whose values must never reach a log line
SENSITIVE_HEADERS: frozenset[str] = frozenset({"accesskey", "authorization"})

REDACTED = "***"


class ApiBase(Enum):
    """Which upstream host an endpoint lives on."""

    VIDEO = "video"  # Stream API: libraries' collections and videos
    ACCOUNT = "account"  # Account API: video libraries, storage zones


@dataclass(frozen=True, slots=True)
class ApiRequest:
    """A fully built upstream request.

    Attributes:
        url: Absolute URL
        method: Upper-case HTTP method
        headers: Headers including authentication
        body: Encoded body, None for no body
        timeout: Per-request timeout override in seconds
    """

    url: str
    method: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None
    timeout: float | None = None

    @property
    def safe_headers(self) -> dict[str, str]:
        """Headers with credentials masked, for logging."""
        return redact_headers(self.headers)


def normalize_method(method: str) -> str:
    """Upper-case and validate an HTTP method.

    Raises:
        ApiError: INVALID_METHOD for anything but GET/POST/PUT/DELETE
    """
    normalized = (method or "").strip().upper()
    if normalized not in ALLOWED_METHODS:
        raise ApiError(
            ErrorKind.INVALID_METHOD,
            f"Invalid HTTP method provided: {method!r}",
        )
    return normalized


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of ``headers`` with credential values masked."""
    return {
        name: REDACTED if name.lower() in SENSITIVE_HEADERS else value
        for name, value in headers.items()
    }


class RequestBuilder(ABC):
    """Builds endpoint URLs, headers and bodies for one auth scheme."""

    def __init__(
        self,
        access_key: str,
        *,
        video_base_url: str = VIDEO_BASE_URL,
        api_base_url: str = API_BASE_URL,
    ) -> None:
        self._access_key = access_key
        self.video_base_url = video_base_url
        self.api_base_url = api_base_url

    def __repr__(self) -> str:
        return f"{type(self).__name__}(video_base_url={self.video_base_url!r})"

    @abstractmethod
    def auth_headers(self) -> dict[str, str]:
        """Headers that authenticate a request."""
        ...

    def url_for(self, endpoint: str, base: ApiBase = ApiBase.VIDEO) -> str:
        root = self.video_base_url if base is ApiBase.VIDEO else self.api_base_url
        return f"{root.rstrip('/')}/{endpoint.lstrip('/')}"

    def build_json(
        self,
        endpoint: str,
        method: str,
        data: Mapping[str, Any] | None = None,
        *,
        base: ApiBase = ApiBase.VIDEO,
        timeout: float | None = None,
    ) -> ApiRequest:
        """Build a JSON metadata request.

        The body is only attached for non-GET calls with non-empty data.

        Raises:
            ApiError: INVALID_METHOD if ``method`` is not supported
        """
        method = normalize_method(method)
        headers = {
            **self.auth_headers(),
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        body: bytes | None = None
        if method != "GET" and data:
            body = json.dumps(data).encode("utf-8")
        return ApiRequest(
            url=self.url_for(endpoint, base),
            method=method,
            headers=headers,
            body=body,
            timeout=timeout,
        )

    def build_binary(
        self,
        endpoint: str,
        content: bytes,
        *,
        title: str,
        method: str = "PUT",
        base: ApiBase = ApiBase.VIDEO,
        timeout: float | None = None,
    ) -> ApiRequest:
        """Build a raw upload request carrying ``content`` as the body.

        Raises:
            ApiError: INVALID_METHOD if ``method`` is not supported
        """
        method = normalize_method(method)
        headers = {
            **self.auth_headers(),
            "Content-Type": "application/octet-stream",
            "Accept": "application/json",
            "Title": title,
        }
        return ApiRequest(
            url=self.url_for(endpoint, base),
            method=method,
            headers=headers,
            body=content,
            timeout=timeout,
        )


class AccessKeyRequestBuilder(RequestBuilder):
    """Stream API authentication: ``AccessKey: <key>``."""

    def auth_headers(self) -> dict[str, str]:
        return {"AccessKey": self._access_key}


class BearerRequestBuilder(RequestBuilder):
    """Token authentication: ``Authorization: Bearer <key>``."""

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._access_key}"}


def create_request_builder(
    access_key: str,
    scheme: str = "access_key",
    **kwargs: Any,
) -> RequestBuilder:
    """Pick a request builder by auth scheme name."""
    if scheme == "access_key":
        return AccessKeyRequestBuilder(access_key, **kwargs)
    if scheme == "bearer":
        return BearerRequestBuilder(access_key, **kwargs)
    raise ValueError(f"Unknown auth scheme: {scheme!r}")
