"""Database connection management with connection pooling.

This module provides async PostgreSQL connection management using asyncpg.
The DSN comes from ``BUNNY_DATABASE_URL`` unless passed explicitly.

Usage:
    from bunny_stream.services.db import DatabaseService

    async with DatabaseService() as db:
        result = await db.fetchval("SELECT 1")
"""

from __future__ import annotations

import logging
import os
from typing import Any

import asyncpg

logger = logging.getLogger(__name__)


class DatabaseError(Exception):
    """Raised when database operations fail."""

    pass


class DatabaseService:
    """Async PostgreSQL database service with connection pooling.

    Attributes:
        dsn: PostgreSQL connection string.
        min_connections: Minimum pool size.
        max_connections: Maximum pool size.
    """

    def __init__(
        self,
        dsn: str | None = None,
        *,
        min_connections: int = 1,
        max_connections: int = 5,
    ) -> None:
        self.dsn = dsn or os.getenv("BUNNY_DATABASE_URL", "")
        self.min_connections = min_connections
        self.max_connections = max_connections
        self._pool: asyncpg.Pool | None = None

    @property
    def pool(self) -> asyncpg.Pool:
        """Get the connection pool, raising if not connected."""
        if self._pool is None:
            raise DatabaseError(
                "Database not connected. Call connect() first or use async context manager."
            )
        return self._pool

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> None:
        """Initialize the connection pool.

        Raises:
            DatabaseError: If no DSN is configured or connection fails.
        """
        if self._pool is not None:
            logger.warning("Database already connected")
            return
        if not self.dsn:
            raise DatabaseError("No database DSN configured. Set BUNNY_DATABASE_URL.")

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.dsn,
                min_size=self.min_connections,
                max_size=self.max_connections,
            )
            logger.info("Connected to database")
        except (OSError, asyncpg.PostgresError) as e:
            raise DatabaseError(f"Failed to connect to database: {e}") from e

    async def disconnect(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Database connection closed")

    async def __aenter__(self) -> DatabaseService:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.disconnect()

    async def execute(self, query: str, *args: Any, timeout: float | None = None) -> str:
        """Execute a query and return the status string (e.g. "INSERT 0 1")."""
        async with self.pool.acquire() as conn:
            result: str = await conn.execute(query, *args, timeout=timeout)
            return result

    async def fetchrow(
        self, query: str, *args: Any, timeout: float | None = None
    ) -> Any | None:
        """Execute a query and return the first row, or None."""
        async with self.pool.acquire() as conn:
            return await conn.fetchrow(query, *args, timeout=timeout)

    async def fetchval(
        self,
        query: str,
        *args: Any,
        column: int = 0,
        timeout: float | None = None,
    ) -> Any:
        """Execute a query and return a single value."""
        async with self.pool.acquire() as conn:
            return await conn.fetchval(query, *args, column=column, timeout=timeout)
