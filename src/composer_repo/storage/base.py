"""Key/value object store contract used by the repository and the proxy cache.

Keys are ``/``-separated strings (``vendor/package.json``,
``cache/cache-info.json``). Values are raw bytes.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

T = TypeVar("T")


@runtime_checkable
class Storage(Protocol):
    async def exists(self, key: str) -> bool: ...

    async def value(self, key: str) -> bytes:
        """Raises ``ComposerRepoError(KEY_NOT_FOUND)`` for a missing key."""
        ...

    async def save(self, key: str, content: bytes) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def move(self, source: str, destination: str) -> None: ...

    async def list(self, prefix: str) -> list[str]: ...

    async def exclusively(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` while no other ``exclusively`` call on ``key`` runs."""
        ...


class KeyLocks:
    """Lazily created ``asyncio.Lock`` per key.

    Locks are held only in-process; two processes sharing one SQLite file are
    not serialized against each other.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            yield


def normalize_prefix(prefix: str) -> str:
    prefix = prefix.strip("/")
    return f"{prefix}/" if prefix else ""
