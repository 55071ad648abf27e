"""Database services."""

from bunny_stream.services.db.collection_repo import (
    CollectionRepository,
    UserCollection,
)
from bunny_stream.services.db.connection import DatabaseError, DatabaseService

__all__ = [
    "CollectionRepository",
    "DatabaseError",
    "DatabaseService",
    "UserCollection",
]
