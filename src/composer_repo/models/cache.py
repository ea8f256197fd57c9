from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class CacheOutcome(StrEnum):
    HIT = "hit"
    MISS = "miss"  # fetched from the remote and cached
    MISS_NO_REMOTE = "miss_no_remote"  # remote had nothing; nothing cached


class CacheResult(BaseModel):
    """Result of a proxy cache lookup for one package document."""

    outcome: CacheOutcome
    content: bytes | None = None

    @property
    def present(self) -> bool:
        return self.content is not None
