"""Shared fixtures: storages and archive builders."""

from __future__ import annotations

import io
import struct
import zipfile
from collections.abc import Callable

import aiosqlite
import pytest

from composer_repo.storage.memory import InMemoryStorage
from composer_repo.storage.sqlite import SqliteStorage

ZipBuilder = Callable[..., bytes]
EntryCorrupter = Callable[[bytes, str], bytes]


def build_zip(entries: dict[str, bytes], compression: int = zipfile.ZIP_DEFLATED) -> bytes:
    out = io.BytesIO()
    with zipfile.ZipFile(out, "w", compression=compression) as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return out.getvalue()


def flip_entry_bytes(data: bytes, entry_name: str) -> bytes:
    """Flip bytes inside one entry's compressed data, leaving the directory intact."""
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        offset = archive.getinfo(entry_name).header_offset
    name_length, extra_length = struct.unpack("<HH", data[offset + 26 : offset + 30])
    start = offset + 30 + name_length + extra_length + 4
    corrupted = bytearray(data)
    for i in range(start, start + 8):
        corrupted[i] ^= 0xFF
    return bytes(corrupted)


@pytest.fixture()
def make_zip() -> ZipBuilder:
    return build_zip


@pytest.fixture()
def corrupt_entry() -> EntryCorrupter:
    return flip_entry_bytes


@pytest.fixture()
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture(params=["memory", "sqlite"])
async def any_storage(request: pytest.FixtureRequest):
    """Each storage backend in turn."""
    if request.param == "memory":
        yield InMemoryStorage()
        return
    async with aiosqlite.connect(":memory:") as db:
        s = SqliteStorage(db)
        await s.init_db()
        yield s
