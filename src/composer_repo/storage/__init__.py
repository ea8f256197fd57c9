from __future__ import annotations

from composer_repo.storage.base import Storage
from composer_repo.storage.memory import InMemoryStorage
from composer_repo.storage.sqlite import SqliteStorage

__all__ = ["Storage", "InMemoryStorage", "SqliteStorage"]
