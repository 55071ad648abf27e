"""Bunny.net API layer.

This package provides:
- BunnyApiClient: credentials, request execution and retry-wrapped sends
- RetryCoordinator / RateLimitState: backoff and shared 429 handling
- Request builders for the AccessKey and Bearer auth schemes
- Resource handlers for collections, videos/libraries and storage zones
- ApiResult / ApiError: the tagged result every handler returns
"""

from bunny_stream.api.client import BunnyApiClient
from bunny_stream.api.collections import (
    CollectionHandler,
    CollectionRecord,
    collection_name_for,
)
from bunny_stream.api.errors import (
    ApiError,
    ApiResult,
    ErrorKind,
    HTTPStatusError,
    RateLimitedError,
    RetriesExhaustedError,
    TransportError,
)
from bunny_stream.api.request import (
    AccessKeyRequestBuilder,
    ApiBase,
    ApiRequest,
    BearerRequestBuilder,
    RequestBuilder,
    create_request_builder,
    redact_headers,
)
from bunny_stream.api.retry import RateLimitState, RetryConfig, RetryCoordinator
from bunny_stream.api.storage import StorageHandler, StorageZone
from bunny_stream.api.videos import VideoHandler, VideoRecord, VideoStatus

__all__ = [
    "AccessKeyRequestBuilder",
    "ApiBase",
    "ApiError",
    "ApiRequest",
    "ApiResult",
    "BearerRequestBuilder",
    "BunnyApiClient",
    "CollectionHandler",
    "CollectionRecord",
    "ErrorKind",
    "HTTPStatusError",
    "RateLimitState",
    "RateLimitedError",
    "RequestBuilder",
    "RetriesExhaustedError",
    "RetryConfig",
    "RetryCoordinator",
    "StorageHandler",
    "StorageZone",
    "TransportError",
    "VideoHandler",
    "VideoRecord",
    "VideoStatus",
    "collection_name_for",
    "create_request_builder",
    "redact_headers",
]
