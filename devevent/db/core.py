"""Core database connection pool management."""

import asyncio
import logging
from contextlib import asynccontextmanager

from psycopg_pool import AsyncConnectionPool

from devevent.config import get_settings
from devevent.errors import ServiceUnavailableError

_logger = logging.getLogger(__name__)


class ConnectionManager:
    """Owns the process-wide connection pool.

    The pool is opened lazily on first use. While an open is in flight,
    every caller awaits the same attempt instead of starting another. A
    failed attempt is forgotten so the next caller retries; a successful
    pool is kept until :meth:`close`.
    """

    def __init__(self) -> None:
        self._pool: AsyncConnectionPool | None = None
        self._connecting: asyncio.Task | None = None

    @property
    def pool(self) -> AsyncConnectionPool | None:
        return self._pool

    @property
    def connecting(self) -> bool:
        return self._connecting is not None and not self._connecting.done()

    async def _open(self) -> AsyncConnectionPool:
        settings = get_settings().postgres
        pool = AsyncConnectionPool(
            settings.get_dsn(),
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            timeout=settings.pool_timeout,
            max_lifetime=settings.pool_max_lifetime,
            max_idle=settings.pool_max_idle,
            check=AsyncConnectionPool.check_connection,
            open=False,
        )
        try:
            await pool.open(wait=True, timeout=settings.pool_timeout)
        except BaseException:
            await pool.close()
            raise
        _logger.info(
            "Database connection pool initialized (min=%d, max=%d, timeout=%ss)",
            settings.pool_min_size,
            settings.pool_max_size,
            settings.pool_timeout,
        )
        return pool

    async def connect(self) -> AsyncConnectionPool:
        if self._pool is not None:
            return self._pool
        if self._connecting is None:
            self._connecting = asyncio.ensure_future(self._open())
        attempt = self._connecting
        try:
            pool = await asyncio.shield(attempt)
        except Exception as e:
            if self._connecting is attempt:
                self._connecting = None
            _logger.error("Failed to connect to database: %s", e)
            raise ServiceUnavailableError(detail="Database unavailable") from e
        self._pool = pool
        if self._connecting is attempt:
            self._connecting = None
        return pool

    async def close(self) -> None:
        attempt, self._connecting = self._connecting, None
        if attempt is not None and not attempt.done():
            attempt.cancel()
        if self._pool is not None:
            pool, self._pool = self._pool, None
            await pool.close()
            _logger.info("Database connection pool closed")


_manager = ConnectionManager()


async def init_pool() -> None:
    await _manager.connect()
    # Import here to avoid circular imports
    from devevent.db.schema import _ensure_schema

    await _ensure_schema()


async def close_pool() -> None:
    await _manager.close()


@asynccontextmanager
async def _get_connection(autocommit: bool = True):
    pool = await _manager.connect()
    async with pool.connection() as conn:
        await conn.set_autocommit(autocommit)
        yield conn


@asynccontextmanager
async def _get_transaction():
    """Connection with an open transaction, committed on clean exit."""
    async with _get_connection() as conn:
        async with conn.transaction():
            yield conn


def get_pool() -> AsyncConnectionPool | None:
    """Get the connection pool instance."""
    return _manager.pool


def get_pool_stats() -> dict[str, object]:
    """Get current pool statistics for monitoring."""
    pool = _manager.pool
    if pool is None:
        return {"status": "connecting" if _manager.connecting else "not_initialized"}
    stats = pool.get_stats()
    return {
        "status": "active",
        "size": stats["pool_size"],
        "available": stats["pool_available"],
        "waiting": stats["requests_waiting"],
        "min_size": stats["pool_min"],
        "max_size": stats["pool_max"],
    }


__all__ = [
    "ConnectionManager",
    "_get_connection",
    "_get_transaction",
    "close_pool",
    "get_pool",
    "get_pool_stats",
    "init_pool",
]
