"""Integration test fixtures.

Provides fully wired application state over in-memory storage, in local and
proxy mode, plus an httpx client talking to the ASGI app directly.
"""

from __future__ import annotations

import httpx
import pytest

from composer_repo.config import Settings
from composer_repo.server import create_app
from composer_repo.state import AppState, build_state
from composer_repo.storage.memory import InMemoryStorage

UPSTREAM = "https://upstream.test"


@pytest.fixture()
def local_settings() -> Settings:
    return Settings(
        server={"mode": "local"},
        repository={"url_prefix": "http://localhost:8080"},
        storage={"backend": "memory"},
    )


@pytest.fixture()
def proxy_settings() -> Settings:
    return Settings(
        server={"mode": "proxy"},
        storage={"backend": "memory"},
        proxy={"remote_url": UPSTREAM},
    )


@pytest.fixture()
def local_state(local_settings: Settings, storage: InMemoryStorage) -> AppState:
    return build_state(local_settings, storage)


@pytest.fixture()
async def proxy_state(proxy_settings: Settings, storage: InMemoryStorage) -> AppState:
    async with httpx.AsyncClient() as upstream:
        yield build_state(proxy_settings, storage, upstream)


@pytest.fixture()
async def local_client(local_settings: Settings, local_state: AppState):
    app = create_app(local_settings, local_state)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://localhost:8080") as client:
        yield client


@pytest.fixture()
async def proxy_client(proxy_settings: Settings, proxy_state: AppState):
    app = create_app(proxy_settings, proxy_state)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://localhost:8080") as client:
        yield client
