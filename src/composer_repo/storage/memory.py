from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from composer_repo.errors import ComposerRepoError, ErrorCode
from composer_repo.storage.base import KeyLocks, normalize_prefix

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")


class InMemoryStorage:
    """Dict-backed storage implementing the ``Storage`` protocol."""

    def __init__(self, data: dict[str, bytes] | None = None) -> None:
        self._data: dict[str, bytes] = dict(data or {})
        self._locks = KeyLocks()

    async def exists(self, key: str) -> bool:
        return key in self._data

    async def value(self, key: str) -> bytes:
        try:
            return self._data[key]
        except KeyError:
            raise ComposerRepoError(ErrorCode.KEY_NOT_FOUND, f"No value for key: {key}") from None

    async def save(self, key: str, content: bytes) -> None:
        self._data[key] = bytes(content)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def move(self, source: str, destination: str) -> None:
        content = await self.value(source)
        self._data[destination] = content
        del self._data[source]

    async def list(self, prefix: str) -> list[str]:
        prefix = normalize_prefix(prefix)
        return sorted(key for key in self._data if key.startswith(prefix))

    async def exclusively(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        async with self._locks.hold(key):
            return await operation()
