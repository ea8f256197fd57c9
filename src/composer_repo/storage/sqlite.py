"""SQLite-backed object store.

One table maps keys to blobs. Writes commit immediately, so every single
operation (``save``, ``delete``, ``move``) is atomic on its own; multi-step
sequences rely on ``exclusively`` for in-process serialization.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

import structlog

from composer_repo.errors import ComposerRepoError, ErrorCode
from composer_repo.storage.base import KeyLocks, normalize_prefix

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    import aiosqlite

log = structlog.get_logger()

T = TypeVar("T")

_CREATE_OBJECTS_TABLE = """
CREATE TABLE IF NOT EXISTS objects (
    key   TEXT PRIMARY KEY,
    data  BLOB NOT NULL
)
"""


class SqliteStorage:
    """aiosqlite storage implementing the ``Storage`` protocol."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db
        self._locks = KeyLocks()

    async def init_db(self) -> None:
        """Create the table and set WAL mode. Called once at startup."""
        await self._db.execute("PRAGMA journal_mode = WAL")
        await self._db.execute(_CREATE_OBJECTS_TABLE)
        await self._db.commit()

    async def exists(self, key: str) -> bool:
        cursor = await self._db.execute("SELECT 1 FROM objects WHERE key = ?", (key,))
        return await cursor.fetchone() is not None

    async def value(self, key: str) -> bytes:
        cursor = await self._db.execute("SELECT data FROM objects WHERE key = ?", (key,))
        row = await cursor.fetchone()
        if row is None:
            raise ComposerRepoError(ErrorCode.KEY_NOT_FOUND, f"No value for key: {key}")
        return bytes(row[0])

    async def save(self, key: str, content: bytes) -> None:
        await self._db.execute(
            "INSERT OR REPLACE INTO objects (key, data) VALUES (?, ?)", (key, bytes(content))
        )
        await self._db.commit()

    async def delete(self, key: str) -> None:
        await self._db.execute("DELETE FROM objects WHERE key = ?", (key,))
        await self._db.commit()

    async def move(self, source: str, destination: str) -> None:
        if not await self.exists(source):
            raise ComposerRepoError(ErrorCode.KEY_NOT_FOUND, f"No value for key: {source}")
        await self._db.execute("DELETE FROM objects WHERE key = ?", (destination,))
        await self._db.execute(
            "UPDATE objects SET key = ? WHERE key = ?", (destination, source)
        )
        await self._db.commit()
        log.debug("storage_moved", source=source, destination=destination)

    async def list(self, prefix: str) -> list[str]:
        prefix = normalize_prefix(prefix)
        cursor = await self._db.execute(
            "SELECT key FROM objects WHERE substr(key, 1, ?) = ? ORDER BY key",
            (len(prefix), prefix),
        )
        rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def exclusively(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        async with self._locks.hold(key):
            return await operation()
