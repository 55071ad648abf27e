"""Repository for user -> collection associations.

Implements the UserCollectionStore protocol over the ``bunny_collections``
table, so collection lookups survive restarts and are shared by every
worker process.

Usage:
    async with DatabaseService() as db:
        repo = CollectionRepository(db, library_id="123")
        await repo.ensure_table()
        handler = CollectionHandler(client, user_collections=repo)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from bunny_stream.services.db.connection import DatabaseService

logger = logging.getLogger(__name__)

TABLE_NAME = "bunny_collections"


@dataclass(frozen=True)
class UserCollection:
    """Represents a bunny_collections table row."""

    id: int
    user_id: str
    collection_id: str
    library_id: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, record: Any) -> UserCollection:
        return cls(
            id=record["id"],
            user_id=record["user_id"],
            collection_id=record["collection_id"],
            library_id=record["library_id"],
            created_at=record["created_at"],
        )


class CollectionRepository:
    """bunny_collections table operations."""

    def __init__(self, db: DatabaseService, *, library_id: str | None = None) -> None:
        self.db = db
        self.library_id = library_id

    async def ensure_table(self) -> None:
        await self.db.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                id BIGSERIAL PRIMARY KEY,
                user_id TEXT NOT NULL UNIQUE,
                collection_id VARCHAR(255) NOT NULL,
                library_id VARCHAR(255),
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
            """
        )

    async def get(self, user_id: int | str) -> str | None:
        value = await self.db.fetchval(
            f"SELECT collection_id FROM {TABLE_NAME} WHERE user_id = $1 LIMIT 1",
            str(user_id),
        )
        return str(value) if value else None

    async def get_entry(self, user_id: int | str) -> UserCollection | None:
        record = await self.db.fetchrow(
            f"""
            SELECT id, user_id, collection_id, library_id, created_at
            FROM {TABLE_NAME}
            WHERE user_id = $1
            """,
            str(user_id),
        )
        return UserCollection.from_record(record) if record else None

    async def put(self, user_id: int | str, collection_id: str) -> None:
        await self.db.execute(
            f"""
            INSERT INTO {TABLE_NAME} (user_id, collection_id, library_id)
            VALUES ($1, $2, $3)
            ON CONFLICT (user_id) DO UPDATE SET
                collection_id = EXCLUDED.collection_id,
                library_id = EXCLUDED.library_id
            """,
            str(user_id),
            collection_id,
            self.library_id,
        )
        logger.debug("Stored collection %s for user %s", collection_id, user_id)

    async def delete(self, user_id: int | str) -> None:
        await self.db.execute(
            f"DELETE FROM {TABLE_NAME} WHERE user_id = $1",
            str(user_id),
        )
