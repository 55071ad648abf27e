"""Collaborator stores: protocols and in-memory implementations."""

from bunny_stream.stores.memory import (
    InMemoryMetadataStore,
    InMemoryTransientStore,
    InMemoryUserCollectionStore,
)
from bunny_stream.stores.protocol import (
    MetadataStore,
    TransientStore,
    UserCollectionStore,
    VideoMetadata,
)

__all__ = [
    "InMemoryMetadataStore",
    "InMemoryTransientStore",
    "InMemoryUserCollectionStore",
    "MetadataStore",
    "TransientStore",
    "UserCollectionStore",
    "VideoMetadata",
]
