"""Utility functions and helpers."""

from bunny_stream.utils.http_client import (
    ConnectionError,
    HTTPClient,
    HTTPClientConfig,
    HTTPClientError,
    HTTPResponse,
    TimeoutError,
)

__all__ = [
    "ConnectionError",
    "HTTPClient",
    "HTTPClientConfig",
    "HTTPClientError",
    "HTTPResponse",
    "TimeoutError",
]
