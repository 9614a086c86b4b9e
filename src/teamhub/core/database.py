# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Database connection management with asyncpg and connection pooling."""

import contextlib
import logging
import time
from collections.abc import AsyncIterator
from typing import Any

import asyncpg
from attrs import field, frozen
from beartype import beartype

from .config import Settings
from .result_types import Err, Ok

logger = logging.getLogger(__name__)


@frozen
class PoolConfig:
    """Immutable pool configuration."""

    dsn: str = field()
    min_connections: int = field(default=2)
    max_connections: int = field(default=10)
    command_timeout: float = field(default=30.0)
    max_inactive_connection_lifetime: float = field(default=600.0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PoolConfig":
        return cls(
            dsn=settings.database_url,
            min_connections=settings.database_pool_min,
            max_connections=settings.database_pool_max,
            command_timeout=settings.database_command_timeout,
        )


@frozen
class PoolMetrics:
    """Immutable pool metrics snapshot."""

    size: int = field()
    free_size: int = field()
    min_size: int = field()
    max_size: int = field()
    queries_total: int = field()
    queries_slow: int = field()


class Database:
    """asyncpg pool wrapper used by the message store."""

    def __init__(self, config: PoolConfig) -> None:
        """Initialize database manager without connecting."""
        self._config = config
        self._pool: asyncpg.Pool | None = None
        self._queries_total = 0
        self._queries_slow = 0

    @beartype
    async def connect(self) -> None:
        """Create the connection pool."""
        if self._pool is not None:
            return

        self._pool = await asyncpg.create_pool(
            self._config.dsn,
            min_size=self._config.min_connections,
            max_size=self._config.max_connections,
            command_timeout=self._config.command_timeout,
            max_inactive_connection_lifetime=self._config.max_inactive_connection_lifetime,
        )
        logger.info(
            "Database pool ready (min=%d, max=%d)",
            self._config.min_connections,
            self._config.max_connections,
        )

    @beartype
    async def disconnect(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Database pool closed")

    @contextlib.asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a pooled connection, tracking query timing."""
        if self._pool is None:
            raise RuntimeError("Database not connected")

        start = time.perf_counter()
        async with self._pool.acquire() as conn:
            self._queries_total += 1
            yield conn

        duration_ms = (time.perf_counter() - start) * 1000
        if duration_ms > 1000:
            self._queries_slow += 1
            logger.warning("Slow database operation: %.0f ms", duration_ms)

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """Create a database transaction context."""
        async with self.acquire() as conn:
            async with conn.transaction():
                yield conn

    @beartype
    async def execute(self, query: str, *args: Any) -> str:
        """Execute a query without returning results."""
        async with self.acquire() as conn:
            return await conn.execute(query, *args)

    @beartype
    async def fetch(self, query: str, *args: Any) -> list[Any]:
        """Execute a query and fetch all results."""
        async with self.acquire() as conn:
            return list(await conn.fetch(query, *args))

    @beartype
    async def fetchrow(self, query: str, *args: Any) -> Any:
        """Execute a query and fetch a single row."""
        async with self.acquire() as conn:
            return await conn.fetchrow(query, *args)

    @beartype
    async def fetchval(self, query: str, *args: Any) -> Any:
        """Execute a query and fetch a single value."""
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args)

    @beartype
    async def health_check(self):
        """Run a trivial query against the pool."""
        if self._pool is None:
            return Err("Database pool not initialized")
        try:
            await self.fetchval("SELECT 1")
            return Ok(True)
        except Exception as e:
            return Err(f"Health check failed: {str(e)}")

    @beartype
    def get_pool_stats(self) -> PoolMetrics:
        """Snapshot pool usage."""
        if self._pool is None:
            return PoolMetrics(0, 0, 0, 0, self._queries_total, self._queries_slow)
        return PoolMetrics(
            size=self._pool.get_size(),
            free_size=self._pool.get_idle_size(),
            min_size=self._pool.get_min_size(),
            max_size=self._pool.get_max_size(),
            queries_total=self._queries_total,
            queries_slow=self._queries_slow,
        )

    @property
    def is_connected(self) -> bool:
        """Check if database is connected."""
        return self._pool is not None
