"""asyncpg-backed implementation of :class:`Database`."""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

import asyncpg
import structlog

from auditmirror.db.base import Database
from auditmirror.db.errors import ConnectionError

logger = structlog.get_logger(__name__)

DEFAULT_DSN = "postgresql://postgres@localhost:5432/postgres"


def _timestamp_to_text(value: Any) -> str:
    # Projected records carry timestamps as "YYYY-MM-DD HH:MM:SS" text
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    return str(value)


async def _setup_connection(conn: asyncpg.Connection) -> None:
    """Bind ``timestamp`` parameters from either text or datetime values."""
    await conn.set_type_codec(
        "timestamp",
        schema="pg_catalog",
        encoder=_timestamp_to_text,
        decoder=str,
        format="text",
    )


class PostgresPool(Database):
    """Lazily connected asyncpg pool.

    Args:
        dsn: Connection URL; falls back to ``env_var``, then a local default
        min_size: Connections kept open
        max_size: Upper bound on open connections
        idle_lifetime: Seconds before an idle connection is closed
        command_timeout: Per-statement timeout in seconds
        env_var: Environment variable holding the URL
    """

    def __init__(
        self,
        dsn: str | None = None,
        min_size: int = 1,
        max_size: int = 10,
        idle_lifetime: float = 300.0,
        command_timeout: float = 60.0,
        env_var: str = "DATABASE_URL",
    ) -> None:
        self._dsn = dsn or os.environ.get(env_var) or DEFAULT_DSN
        self._pool_kwargs: dict[str, Any] = {
            "min_size": min_size,
            "max_size": max_size,
            "max_inactive_connection_lifetime": idle_lifetime,
            "command_timeout": command_timeout,
        }
        self._pool: asyncpg.Pool | None = None

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @property
    def size(self) -> int:
        """Connections currently held by the pool."""
        return self._pool.get_size() if self._pool is not None else 0

    async def connect(self) -> None:
        """Open the pool; a no-op when already open.

        Raises:
            ConnectionError: If the server cannot be reached
        """
        if self._pool is not None:
            return
        try:
            self._pool = await asyncpg.create_pool(
                dsn=self._dsn, init=_setup_connection, **self._pool_kwargs
            )
        except Exception as e:
            logger.error("postgres_connect_failed", error=str(e))
            raise ConnectionError(f"Cannot open PostgreSQL pool: {e}", cause=e) from e
        logger.info("postgres_connected", **self._pool_kwargs)

    async def close(self) -> None:
        if self._pool is None:
            return
        pool, self._pool = self._pool, None
        await pool.close()
        logger.info("postgres_disconnected")

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[asyncpg.Connection]:
        """Borrow a pooled connection, opening the pool on first use."""
        await self.connect()
        async with self._pool.acquire() as conn:
            yield conn

    async def fetch(self, query: str, *args: Any) -> list[dict[str, Any]]:
        async with self.connection() as conn:
            records = await conn.fetch(query, *args)
        return [dict(record.items()) for record in records]

    async def fetchrow(self, query: str, *args: Any) -> dict[str, Any] | None:
        async with self.connection() as conn:
            record = await conn.fetchrow(query, *args)
        return None if record is None else dict(record.items())

    async def fetchval(self, query: str, *args: Any) -> Any:
        async with self.connection() as conn:
            return await conn.fetchval(query, *args)

    async def execute(self, query: str, *args: Any) -> None:
        async with self.connection() as conn:
            await conn.execute(query, *args)

    async def health_check(self) -> bool:
        """True when the pool is open and answers ``SELECT 1``."""
        if self._pool is None:
            return False
        try:
            return await self.fetchval("SELECT 1") == 1
        except Exception as e:
            logger.warning("postgres_health_check_failed", error=str(e))
            return False
