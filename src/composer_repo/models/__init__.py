from __future__ import annotations

from composer_repo.models.archive import ArchiveName
from composer_repo.models.cache import CacheOutcome, CacheResult

__all__ = [
    # archive
    "ArchiveName",
    # cache
    "CacheOutcome",
    "CacheResult",
]
