"""
PostgreSQL connection pooling and management.

One Database object is owned by the application factory and shared by every
request. The asyncpg pool behind it is opened lazily on first use; callers
that arrive while the pool is still opening wait on the same attempt instead
of starting their own.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import asyncpg

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.sql"


def _redact_dsn(dsn: str) -> str:
    """Strip credentials from a DSN for logging."""
    if "@" not in dsn:
        return dsn
    scheme, _, rest = dsn.partition("://")
    return f"{scheme}://***@{rest.split('@', 1)[1]}"


class Database:
    """
    PostgreSQL connection pool manager.

    Attributes:
        pool: asyncpg connection pool (None until first use)
        dsn: Connection string
        min_size: Minimum pool connections
        max_size: Maximum pool connections
        init_schema: Run schema.sql once the pool is open
    """

    def __init__(
        self,
        dsn: str,
        min_size: int = 1,
        max_size: int = 10,
        init_schema: bool = True,
    ):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.init_schema = init_schema
        self.pool: Optional[asyncpg.Pool] = None
        self._connecting: Optional[asyncio.Task] = None

    async def _open_pool(self) -> asyncpg.Pool:
        logger.info("Opening database pool: %s", _redact_dsn(self.dsn))
        try:
            pool = await asyncpg.create_pool(
                dsn=self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                timeout=30.0,
                command_timeout=30.0,
            )
        except Exception as e:
            logger.error("Failed to open database pool: %s", e)
            raise

        if self.init_schema:
            try:
                await initialize_schema(pool)
            except Exception:
                await pool.close()
                raise

        logger.info("Database pool ready (min=%d, max=%d)", self.min_size, self.max_size)
        return pool

    async def connect(self) -> asyncpg.Pool:
        """
        Return the open pool, opening it on first use.

        Concurrent callers share one in-flight attempt. The attempt is
        shielded, so a caller that is cancelled does not cancel it for the
        others. A failed attempt is forgotten and the next call retries.

        Raises:
            ConnectionError: If close() ran while the pool was opening
        """
        if self.pool is not None:
            return self.pool

        task = self._connecting
        if task is None:
            task = asyncio.ensure_future(self._open_pool())
            self._connecting = task

        try:
            pool = await asyncio.shield(task)
        except asyncio.CancelledError:
            raise
        except Exception:
            if self._connecting is task:
                self._connecting = None
            raise

        if self._connecting is task:
            self.pool = pool
            self._connecting = None
        if self.pool is not pool:
            # close() took this attempt over and closed its pool
            raise ConnectionError("Database was closed while the pool was opening")
        return pool

    @property
    def is_connected(self) -> bool:
        return self.pool is not None

    async def close(self) -> None:
        """
        Close the pool if it was ever opened.

        An open still in flight is waited for and its pool closed as well;
        callers waiting on that open get ConnectionError instead of a pool.
        """
        task, self._connecting = self._connecting, None
        pools = []
        if self.pool is not None:
            pools.append(self.pool)
            self.pool = None

        if task is not None:
            try:
                pending = await task
            except Exception:
                logger.debug("Pending pool open failed during close", exc_info=True)
            else:
                if pending not in pools:
                    pools.append(pending)

        for pool in pools:
            await pool.close()
        if pools:
            logger.info("Database pool closed")

    @asynccontextmanager
    async def acquire(self):
        """
        Context manager for acquiring a pooled connection.

        Usage:
            async with db.acquire() as conn:
                rows = await conn.fetch(...)
        """
        pool = await self.connect()
        conn = await pool.acquire()
        try:
            yield conn
        finally:
            await pool.release(conn)

    async def fetch(self, query: str, *args) -> list:
        """Execute a SELECT and return all rows."""
        async with self.acquire() as conn:
            return await conn.fetch(query, *args)

    async def fetchrow(self, query: str, *args) -> Optional[asyncpg.Record]:
        """Execute a query and return its first row (or None)."""
        async with self.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def execute(self, query: str, *args) -> str:
        """
        Execute INSERT/UPDATE/DELETE.

        Returns:
            Command status (e.g. "DELETE 1")
        """
        async with self.acquire() as conn:
            return await conn.execute(query, *args)


async def initialize_schema(pool: asyncpg.Pool) -> None:
    """
    Create tables and indexes from schema.sql.

    Idempotent: every statement uses IF NOT EXISTS.
    """
    schema_sql = SCHEMA_PATH.read_text(encoding="utf-8")
    async with pool.acquire() as conn:
        await conn.execute(schema_sql)
    logger.info("Database schema initialized")


def affected_rows(status: str) -> int:
    """Parse the row count from an asyncpg command status ("UPDATE 3" -> 3)."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError):
        return 0
