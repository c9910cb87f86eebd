"""Connection providers for the SQLite and PostgreSQL backends.

A connector owns the process-wide connection pool for one backend and is
handed to the DAOs explicitly. It runs single statements, commits them, and
turns driver exceptions into :mod:`admincp.db.exceptions` errors.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import aiosqlite
import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from .bag import TableMapping
from .dialects import Dialect, PgsqlDialect, SqliteDialect
from .exceptions import ConstraintViolation, DaoError, StorageUnavailable

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"


class Connector(ABC):
    """One initialised connection handle for the configured backend."""

    dialect: Dialect

    @abstractmethod
    async def open(self) -> None: ...

    @abstractmethod
    async def close(self) -> None: ...

    @abstractmethod
    async def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run a write statement, commit it and return the affected row count."""

    @abstractmethod
    async def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]: ...

    async def ensure_table(self, mapping: TableMapping) -> None:
        logger.info("Ensuring table %s exists (%s)", mapping.table, self.dialect.name)
        await self.execute(self.dialect.build_create_table(mapping))


def _translate_sqlite_error(exc: Exception) -> DaoError:
    if isinstance(exc, aiosqlite.IntegrityError):
        return ConstraintViolation(str(exc))
    return StorageUnavailable(str(exc))


class SqliteConnector(Connector):
    """Pooled ``aiosqlite`` connections to one database file.

    ``":memory:"`` opens a new, empty database per connection, so in that
    case a single connection is opened and handed to one acquirer at a time.
    """

    def __init__(self, path: str, *, pool_size: int = 5, timeout: float = 30.0) -> None:
        self.path = path
        self.pool_size = max(1, pool_size)
        self.timeout = timeout
        self.dialect = SqliteDialect()
        self._pool: Optional[asyncio.Queue] = None
        self._connections: List[aiosqlite.Connection] = []
        self._lock = asyncio.Lock()

    @classmethod
    def from_directory(cls, root: str, name: str, **kwargs: Any) -> "SqliteConnector":
        """Database file ``<root>/<name>.db``; the directory is created when missing."""
        if name == MEMORY_PATH:
            return cls(MEMORY_PATH, **kwargs)
        directory = Path(root)
        directory.mkdir(parents=True, exist_ok=True)
        return cls(str(directory / f"{name}.db"), **kwargs)

    async def _connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.path, timeout=self.timeout, cached_statements=128)
        conn.row_factory = aiosqlite.Row
        return conn

    async def open(self) -> None:
        async with self._lock:
            if self._pool is not None:
                return
            try:
                if self.path == MEMORY_PATH:
                    self._connections = [await self._connect()]
                else:
                    for i in range(self.pool_size):
                        self._connections.append(await self._connect())
                        logger.debug("Opened connection %d/%d", i + 1, self.pool_size)
            except (aiosqlite.Error, OSError) as e:
                logger.exception("Error opening SQLite database %s: %s", self.path, e)
                for conn in self._connections:
                    await conn.close()
                self._connections = []
                raise StorageUnavailable(f"Cannot open SQLite database {self.path}: {e}") from e

            # Each connection is queued once; with ":memory:" only one caller at a
            # time holds the shared connection, so a rollback cannot undo another
            # caller's statement.
            pool: asyncio.Queue = asyncio.Queue(maxsize=len(self._connections))
            for conn in self._connections:
                pool.put_nowait(conn)
            self._pool = pool
            logger.info(
                "SQLite connection pool for %s initialized with size %d", self.path, len(self._connections)
            )

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Acquire a connection from the pool.

        Usage:
            async with connector.connection() as conn:
                await conn.execute(...)
        """
        if self._pool is None:
            await self.open()
        pool = self._pool
        if pool is None:
            raise StorageUnavailable("Connection pool is not initialized")
        try:
            conn = await asyncio.wait_for(pool.get(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error("Timed out waiting for database connection")
            raise StorageUnavailable("Database connection timeout") from None

        start_time = time.monotonic()
        try:
            yield conn
        finally:
            logger.debug("Database connection held for %.3f seconds", time.monotonic() - start_time)
            pool.put_nowait(conn)

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        async with self.connection() as conn:
            try:
                cursor = await conn.execute(sql, tuple(params))
                await conn.commit()
            except aiosqlite.Error as e:
                try:
                    await conn.rollback()
                except aiosqlite.Error as rollback_error:
                    logger.warning("Rollback failed after %s: %s", e, rollback_error)
                raise _translate_sqlite_error(e) from e
            return cursor.rowcount

    async def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        async with self.connection() as conn:
            try:
                cursor = await conn.execute(sql, tuple(params))
                row = await cursor.fetchone()
                await cursor.close()
            except aiosqlite.Error as e:
                raise _translate_sqlite_error(e) from e
            return dict(row) if row is not None else None

    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        async with self.connection() as conn:
            try:
                cursor = await conn.execute(sql, tuple(params))
                rows = await cursor.fetchall()
                await cursor.close()
            except aiosqlite.Error as e:
                raise _translate_sqlite_error(e) from e
            return [dict(row) for row in rows]

    async def close(self) -> None:
        """Close all connections in the pool and reset its state."""
        if self._pool is None:
            return
        for conn in self._connections:
            try:
                await conn.close()
            except aiosqlite.Error as exc:
                logger.warning("Error closing DB connection: %s", exc)
        self._connections = []
        self._pool = None
        logger.info("SQLite connection pool for %s closed", self.path)


def _translate_pgsql_error(exc: psycopg.Error) -> DaoError:
    if isinstance(exc, psycopg.IntegrityError):
        return ConstraintViolation(str(exc))
    return StorageUnavailable(str(exc))


class PgsqlConnector(Connector):
    """PostgreSQL access through a ``psycopg_pool.AsyncConnectionPool``.

    Rows come back as dicts (``dict_row``); each statement runs in its own
    pooled connection block, which commits on success and rolls back on error.
    """

    def __init__(
        self,
        url: str,
        *,
        pool_size: int = 5,
        timeout: float = 30.0,
        pool: Optional[AsyncConnectionPool] = None,
    ) -> None:
        self.url = url
        self.pool_size = max(1, pool_size)
        self.timeout = timeout
        self.dialect = PgsqlDialect()
        self._pool = pool
        self._opened = False

    async def open(self) -> None:
        if self._opened:
            return
        if self._pool is None:
            self._pool = AsyncConnectionPool(
                self.url,
                min_size=1,
                max_size=self.pool_size,
                timeout=self.timeout,
                kwargs={"row_factory": dict_row},
                open=False,
            )
        try:
            await self._pool.open(wait=True, timeout=self.timeout)
        except psycopg.Error as e:
            logger.exception("Error opening PostgreSQL pool: %s", e)
            raise StorageUnavailable(f"Cannot connect to PostgreSQL: {e}") from e
        self._opened = True
        logger.info("PostgreSQL connection pool initialized with max size %d", self.pool_size)

    def _get_pool(self) -> AsyncConnectionPool:
        if self._pool is None or not self._opened:
            raise StorageUnavailable("Connection pool is not initialized")
        return self._pool

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        try:
            async with self._get_pool().connection() as conn:
                cursor = await conn.execute(sql, tuple(params))
                return cursor.rowcount
        except psycopg.Error as e:
            raise _translate_pgsql_error(e) from e

    async def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        try:
            async with self._get_pool().connection() as conn:
                cursor = await conn.execute(sql, tuple(params))
                row = await cursor.fetchone()
        except psycopg.Error as e:
            raise _translate_pgsql_error(e) from e
        return dict(row) if row is not None else None

    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        try:
            async with self._get_pool().connection() as conn:
                cursor = await conn.execute(sql, tuple(params))
                rows = await cursor.fetchall()
        except psycopg.Error as e:
            raise _translate_pgsql_error(e) from e
        return [dict(row) for row in rows]

    async def close(self) -> None:
        if self._pool is None or not self._opened:
            return
        await self._pool.close()
        self._opened = False
        logger.info("PostgreSQL connection pool closed")
