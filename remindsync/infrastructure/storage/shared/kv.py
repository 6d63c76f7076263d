"""
Shared key/value storage.

A single SQLite file inside the storage scope shared by the primary
process and the notification extension. Every operation opens its own
short-lived connection, so a write committed by the other process is
visible on the next read; nothing is cached in memory.
"""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from remindsync.config import get_logger
from remindsync.core.exceptions import DatabaseError

logger = get_logger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
)
"""


class SharedStorage:
    """String values under fixed keys, safe for two writer processes."""

    def __init__(self, path: Path, busy_timeout: int = 30000):
        self.path = path
        self.busy_timeout = busy_timeout
        self._initialized = False

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        if not self._initialized:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        # Autocommit; multi-statement updates open their own transaction
        conn = await aiosqlite.connect(self.path, isolation_level=None)
        try:
            await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")
            await conn.execute("PRAGMA journal_mode=WAL")
            if not self._initialized:
                await conn.execute(_SCHEMA)
                self._initialized = True
            yield conn
        finally:
            await conn.close()

    async def read(self, key: str) -> str | None:
        try:
            async with self._connect() as conn:
                cursor = await conn.execute("SELECT value FROM kv WHERE key = ?", (key,))
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise DatabaseError("read", str(e)) from e
        return row[0] if row else None

    async def write(self, key: str, value: str) -> None:
        """Replace the whole value in one statement."""
        try:
            async with self._connect() as conn:
                await conn.execute(
                    "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value)
                )
        except aiosqlite.Error as e:
            raise DatabaseError("write", str(e)) from e

    async def update(self, key: str, transform: Callable[[str | None], str]) -> str:
        """
        Read-modify-write under a write lock.

        ``BEGIN IMMEDIATE`` takes the database write lock before reading, so
        the other process cannot interleave a write between read and save.
        """
        try:
            async with self._connect() as conn:
                await conn.execute("BEGIN IMMEDIATE")
                try:
                    cursor = await conn.execute("SELECT value FROM kv WHERE key = ?", (key,))
                    row = await cursor.fetchone()
                    new_value = transform(row[0] if row else None)
                    await conn.execute(
                        "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                        (key, new_value),
                    )
                    await conn.execute("COMMIT")
                except Exception:
                    await conn.execute("ROLLBACK")
                    raise
        except aiosqlite.Error as e:
            raise DatabaseError("update", str(e)) from e
        return new_value

    async def exists(self, key: str) -> bool:
        return await self.read(key) is not None

    async def delete(self, key: str) -> None:
        try:
            async with self._connect() as conn:
                await conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        except aiosqlite.Error as e:
            raise DatabaseError("delete", str(e)) from e
