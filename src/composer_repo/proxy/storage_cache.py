"""Cache-aside storage of upstream per-package documents.

Each document lives at ``cache/<name>.json``. Freshness is tracked in one
shared index document (``cache/cache-info.json``) that every package miss
rewrites; that read-modify-write runs under ``exclusively`` on the index key
and lands through a temporary key so a crash leaves either the old or the
new index, never a partial one.
"""

from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

import structlog

from composer_repo.models.cache import CacheOutcome, CacheResult
from composer_repo.proxy.cache_control import CACHE_FILE
from composer_repo.proxy.remote import RemoteWithErrorHandling

if TYPE_CHECKING:
    from composer_repo.proxy.cache_control import CacheControl
    from composer_repo.proxy.remote import Remote
    from composer_repo.repository import Repository

log = structlog.get_logger()

CACHE_FOLDER = "cache"


class Cache(Protocol):
    async def load(self, name: str, remote: Remote, control: CacheControl) -> CacheResult: ...


def cache_key(name: str) -> str:
    return f"{CACHE_FOLDER}/{name}.json"


def _result(outcome: CacheOutcome, content: bytes | None) -> CacheResult:
    if content is None:
        return CacheResult(outcome=CacheOutcome.MISS_NO_REMOTE)
    return CacheResult(outcome=outcome, content=content)


class NopCache:
    """Never caches: every load goes to the remote."""

    async def load(self, name: str, remote: Remote, control: CacheControl) -> CacheResult:
        content = await RemoteWithErrorHandling(remote).get()
        return _result(CacheOutcome.MISS, content)


class ComposerStorageCache:
    def __init__(self, repository: Repository) -> None:
        self._repo = repository

    async def load(self, name: str, remote: Remote, control: CacheControl) -> CacheResult:
        """Cached document for ``name`` if fresh, else fetch, cache and return it.

        Remote failures are never raised: they yield ``MISS_NO_REMOTE`` and
        leave the cache untouched.
        """
        cached = cache_key(name)
        if await self._repo.exists(cached) and await control.validate(name):
            log.debug("cache_hit", key=cached)
            return CacheResult(outcome=CacheOutcome.HIT, content=await self._repo.value(cached))

        content = await RemoteWithErrorHandling(remote).get()
        if content is None:
            log.info("cache_miss_no_remote", key=cached)
            return _result(CacheOutcome.MISS_NO_REMOTE, None)

        await self._repo.save(cached, content)
        await self._update_cache_file(name)
        log.info("cache_refreshed", key=cached)
        return _result(CacheOutcome.MISS, await self._repo.value(cached))

    async def _update_cache_file(self, name: str) -> None:
        await self._repo.exclusively(CACHE_FILE, lambda: self._stamp(name))

    async def _stamp(self, name: str) -> None:
        # Index creation and update share one critical section
        if not await self._repo.exists(CACHE_FILE):
            await self._repo.save(CACHE_FILE, b"{}")
        tmp = f"{CACHE_FILE}.{uuid.uuid4()}"
        index = await self._read_index()
        index[name] = datetime.now(UTC).isoformat()
        await self._repo.save(tmp, json.dumps(index).encode())
        await self._repo.delete(CACHE_FILE)
        await self._repo.move(tmp, CACHE_FILE)

    async def _read_index(self) -> dict[str, str]:
        if not await self._repo.exists(CACHE_FILE):
            return {}
        try:
            index = json.loads(await self._repo.value(CACHE_FILE))
        except ValueError:
            log.warning("cache_index_reset", key=CACHE_FILE, exc_info=True)
            return {}
        return index if isinstance(index, dict) else {}
