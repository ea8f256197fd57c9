"""Storage contract, run against every backend."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from composer_repo.errors import ComposerRepoError, ErrorCode

if TYPE_CHECKING:
    from composer_repo.storage.base import Storage


class TestStorageContract:
    async def test_save_and_value(self, any_storage: Storage) -> None:
        await any_storage.save("a/b.json", b"content")
        assert await any_storage.exists("a/b.json") is True
        assert await any_storage.value("a/b.json") == b"content"

    async def test_save_overwrites(self, any_storage: Storage) -> None:
        await any_storage.save("key", b"one")
        await any_storage.save("key", b"two")
        assert await any_storage.value("key") == b"two"

    async def test_missing_value_raises(self, any_storage: Storage) -> None:
        assert await any_storage.exists("missing") is False
        with pytest.raises(ComposerRepoError) as exc_info:
            await any_storage.value("missing")
        assert exc_info.value.code == ErrorCode.KEY_NOT_FOUND

    async def test_delete(self, any_storage: Storage) -> None:
        await any_storage.save("key", b"x")
        await any_storage.delete("key")
        assert await any_storage.exists("key") is False

    async def test_delete_missing_is_noop(self, any_storage: Storage) -> None:
        await any_storage.delete("missing")

    async def test_move_replaces_destination(self, any_storage: Storage) -> None:
        await any_storage.save("tmp", b"new")
        await any_storage.save("dst", b"old")
        await any_storage.move("tmp", "dst")
        assert await any_storage.exists("tmp") is False
        assert await any_storage.value("dst") == b"new"

    async def test_move_missing_source(self, any_storage: Storage) -> None:
        with pytest.raises(ComposerRepoError):
            await any_storage.move("missing", "dst")

    async def test_list_by_prefix(self, any_storage: Storage) -> None:
        for key in ("cache/a.json", "cache/b/c.json", "cachex/d.json", "packages.json"):
            await any_storage.save(key, b"{}")
        assert await any_storage.list("cache") == ["cache/a.json", "cache/b/c.json"]
        assert len(await any_storage.list("")) == 4

    async def test_list_escapes_wildcards(self, any_storage: Storage) -> None:
        await any_storage.save("a_b/x", b"1")
        await any_storage.save("acb/x", b"2")
        assert await any_storage.list("a_b") == ["a_b/x"]

    async def test_exclusively_returns_result(self, any_storage: Storage) -> None:
        async def operation() -> int:
            return 42

        assert await any_storage.exclusively("key", operation) == 42

    async def test_exclusively_serializes_same_key(self, any_storage: Storage) -> None:
        events: list[str] = []

        def operation(tag: str):
            async def run() -> None:
                events.append(f"start-{tag}")
                await asyncio.sleep(0.01)
                events.append(f"end-{tag}")

            return run

        await asyncio.gather(
            any_storage.exclusively("lock", operation("a")),
            any_storage.exclusively("lock", operation("b")),
        )
        assert events == ["start-a", "end-a", "start-b", "end-b"]

    async def test_exclusively_different_keys_interleave(self, any_storage: Storage) -> None:
        events: list[str] = []

        def operation(tag: str):
            async def run() -> None:
                events.append(f"start-{tag}")
                await asyncio.sleep(0.01)
                events.append(f"end-{tag}")

            return run

        await asyncio.gather(
            any_storage.exclusively("one", operation("a")),
            any_storage.exclusively("two", operation("b")),
        )
        assert events[:2] == ["start-a", "start-b"]

    async def test_exclusively_releases_on_error(self, any_storage: Storage) -> None:
        async def failing() -> None:
            raise RuntimeError("boom")

        async def ok() -> str:
            return "done"

        with pytest.raises(RuntimeError):
            await any_storage.exclusively("key", failing)
        assert await any_storage.exclusively("key", ok) == "done"
