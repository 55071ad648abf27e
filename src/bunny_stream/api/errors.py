"""Error kinds and the tagged result type used across the API layer.

Resource handlers never raise for expected failures (missing IDs, lock
contention, bad upstream payloads). They return an :class:`ApiResult` that
either carries the decoded value or an :class:`ApiError`. The exceptions
are still real exceptions so the Executor and Retry Coordinator can raise
and catch them internally.

Example usage:
    result = await collections.create_collection(user_id=42)
    if result.is_successful:
        guid = result.value
    elif result.error.kind is ErrorKind.COLLECTION_CREATION_LOCKED:
        ...  # try again later
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(Enum):
    """Classification of every failure the API layer reports."""

    INVALID_METHOD = "invalid_http_method"
    MISSING_LIBRARY_ID = "missing_library_id"
    MISSING_USER_ID = "missing_user_id"
    MISSING_COLLECTION_ID = "missing_collection_id"
    MISSING_VIDEO_ID = "missing_video_id"
    MISSING_VIDEO_TITLE = "missing_video_title"
    MISSING_LIBRARY_NAME = "missing_library_name"
    COLLECTION_CREATION_LOCKED = "collection_creation_locked"
    COLLECTION_CREATION_FAILED = "collection_creation_failed"
    LIBRARY_CREATION_FAILED = "library_creation_failed"
    STORAGE_ZONE_CREATION_FAILED = "storage_zone_creation_failed"
    INVALID_COLLECTION_LIST_RESPONSE = "invalid_collection_list"
    INVALID_REPLICATION_REGION = "invalid_replication_region"
    INVALID_RESPONSE = "invalid_response"
    INVALID_FILE = "missing_or_invalid_file"
    NO_UPDATE_DATA = "no_update_data"
    HTTP_ERROR = "bunny_api_http_error"
    API_FAILURE = "api_failure"
    TRANSPORT_ERROR = "transport_error"


class ApiError(Exception):
    """Base exception for Bunny.net API errors.

    Attributes:
        kind: What went wrong
        retryable: Whether the Retry Coordinator may try the call again
        cause: Original exception that caused this error
    """

    retryable: bool = False

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


class HTTPStatusError(ApiError):
    """Upstream answered with a non-2xx status."""

    retryable = True

    def __init__(
        self,
        status: int,
        body: str,
        *,
        endpoint: str | None = None,
    ) -> None:
        message = f"Bunny.net API Error (HTTP {status}): {body}"
        if endpoint:
            message += f" (Endpoint: {endpoint})"
        super().__init__(ErrorKind.HTTP_ERROR, message)
        self.status = status
        self.body = body
        self.endpoint = endpoint


class RateLimitedError(HTTPStatusError):
    """Upstream answered 429 Too Many Requests."""

    def __init__(
        self,
        body: str = "",
        *,
        retry_after: int | None = None,
        endpoint: str | None = None,
    ) -> None:
        super().__init__(429, body, endpoint=endpoint)
        self.retry_after = retry_after


class TransportError(ApiError):
    """The request never produced an HTTP response."""

    retryable = True

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(ErrorKind.TRANSPORT_ERROR, message, cause=cause)


class RetriesExhaustedError(ApiError):
    """Every attempt allowed by the Retry Coordinator failed."""

    def __init__(
        self,
        message: str,
        *,
        attempts: int,
        last_error: ApiError | None = None,
    ) -> None:
        super().__init__(ErrorKind.API_FAILURE, message, cause=last_error)
        self.attempts = attempts
        self.last_error = last_error


@dataclass(frozen=True, slots=True)
class ApiResult(Generic[T]):
    """Outcome of an API operation: a value or an error, never both.

    Attributes:
        value: The decoded payload on success
        error: The classified failure, None on success
    """

    value: T | None = None
    error: ApiError | None = None

    @classmethod
    def ok(cls, value: T | None = None) -> ApiResult[T]:
        return cls(value=value)

    @classmethod
    def err(cls, error: ApiError) -> ApiResult[T]:
        return cls(error=error)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> ApiResult[T]:
        """Shortcut for an error result built from a kind and a message."""
        return cls(error=ApiError(kind, message))

    @property
    def is_successful(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> ErrorKind | None:
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> T:
        """Return the value, raising the carried error on failure."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def map(self, func: Any) -> ApiResult[Any]:
        """Apply ``func`` to a successful value, passing errors through."""
        if self.error is not None:
            return ApiResult(error=self.error)
        return ApiResult(value=func(self.value))
