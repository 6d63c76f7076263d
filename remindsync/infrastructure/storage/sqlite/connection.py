"""
Server database handle.

The document and device stores share one SQLite file. Reads go through a
small set of reader connections; writes are serialized on a single writer
connection inside ``BEGIN IMMEDIATE``, so writers queue on an asyncio lock
instead of contending for the SQLite write lock.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from remindsync.config import get_logger
from remindsync.core.exceptions import DatabaseError
from remindsync.infrastructure.storage.sqlite.migrations.migrator import run_migrations

logger = get_logger(__name__)


class ServerDatabase:
    """Migrated SQLite file with reader connections and one writer."""

    def __init__(self, db_path: Path, readers: int = 4, busy_timeout: int = 30000):
        self.db_path = db_path
        self.readers = max(1, readers)
        self.busy_timeout = busy_timeout

        self._idle_readers: asyncio.Queue[aiosqlite.Connection] | None = None
        self._reader_conns: list[aiosqlite.Connection] = []
        self._writer: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._writer is not None

    async def open(self) -> "ServerDatabase":
        """Apply pending migrations, then open the connections."""
        if self.is_open:
            return self
        await run_migrations(self.db_path)

        self._writer = await self._connect()
        self._idle_readers = asyncio.Queue()
        for _ in range(self.readers):
            conn = await self._connect()
            self._reader_conns.append(conn)
            self._idle_readers.put_nowait(conn)
        logger.info("server_database_opened", db_path=str(self.db_path), readers=self.readers)
        return self

    async def close(self) -> None:
        if not self.is_open:
            return
        async with self._write_lock:
            for conn in self._reader_conns:
                await conn.close()
            await self._writer.close()
            self._reader_conns.clear()
            self._idle_readers = None
            self._writer = None
        logger.info("server_database_closed")

    async def __aenter__(self) -> "ServerDatabase":
        return await self.open()

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @asynccontextmanager
    async def read(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a reader connection."""
        self._require_open("read")
        conn = await self._idle_readers.get()
        try:
            yield conn
        finally:
            if self._idle_readers is not None:
                self._idle_readers.put_nowait(conn)

    @asynccontextmanager
    async def write(self, operation: str) -> AsyncIterator[aiosqlite.Connection]:
        """
        Run a write on the writer connection as one immediate transaction.

        Raises:
            DatabaseError: If SQLite rejects the write; it is rolled back
        """
        self._require_open(operation)
        async with self._write_lock:
            conn = self._writer
            await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except aiosqlite.Error as e:
                await conn.rollback()
                logger.error("database_write_failed", operation=operation, error=str(e))
                raise DatabaseError(operation, str(e)) from e
            except BaseException:
                await conn.rollback()
                raise
            await conn.commit()

    async def ping(self) -> bool:
        """True if a reader can run a trivial query."""
        try:
            async with self.read() as conn:
                await conn.execute("SELECT 1")
        except (DatabaseError, aiosqlite.Error) as e:
            logger.warning("database_ping_failed", error=str(e))
            return False
        return True

    def _require_open(self, operation: str) -> None:
        if not self.is_open:
            raise DatabaseError(operation, "database is not open")

    async def _connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path, isolation_level=None)
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")
        conn.row_factory = aiosqlite.Row
        return conn
