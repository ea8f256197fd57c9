"""Time-based validity of cached upstream documents."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Protocol

import structlog

from composer_repo.errors import ComposerRepoError

if TYPE_CHECKING:
    from composer_repo.repository import Repository

log = structlog.get_logger()

# Flat map of cache key -> ISO-8601 UTC time of the last successful fetch
CACHE_FILE = "cache/cache-info.json"

DEFAULT_EXPIRATION = timedelta(minutes=10)


class CacheControl(Protocol):
    async def validate(self, item: str) -> bool: ...


class CacheTimeControl:
    """Entry is valid when the cache index holds a timestamp for it within ``expiration``."""

    def __init__(self, repository: Repository, expiration: timedelta = DEFAULT_EXPIRATION) -> None:
        self._repo = repository
        self._expiration = expiration

    async def validate(self, item: str) -> bool:
        if not await self._repo.exists(CACHE_FILE):
            return False
        try:
            index = json.loads(await self._repo.value(CACHE_FILE))
            fetched = index.get(item) if isinstance(index, dict) else None
            if fetched is None:
                return False
            return self._not_expired(datetime.fromisoformat(fetched))
        except ComposerRepoError:
            # Index is briefly absent while an update moves the new one into place
            return False
        except (ValueError, TypeError):
            # json.JSONDecodeError is a ValueError
            log.warning("cache_index_unreadable", key=item, exc_info=True)
            return False

    def _not_expired(self, fetched: datetime) -> bool:
        if fetched.tzinfo is None:
            fetched = fetched.replace(tzinfo=UTC)
        return datetime.now(UTC) - fetched <= self._expiration


class AlwaysValid:
    """Treats every cached entry as fresh."""

    async def validate(self, item: str) -> bool:
        return True
