"""Unit-specific fixtures (no I/O beyond in-memory storage)."""

from __future__ import annotations

import pytest

from composer_repo.repository import Repository
from composer_repo.storage.memory import InMemoryStorage


@pytest.fixture()
def repository(storage: InMemoryStorage) -> Repository:
    return Repository(storage, url_prefix="http://artipie:8080/")
