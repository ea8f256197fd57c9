"""Shared application state, built once at startup."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from composer_repo.archive import ZipArchive
from composer_repo.proxy.cache_control import CacheTimeControl
from composer_repo.proxy.remote import HttpRemote
from composer_repo.proxy.service import ProxyPackages
from composer_repo.proxy.storage_cache import ComposerStorageCache
from composer_repo.repository import Repository

if TYPE_CHECKING:
    import httpx

    from composer_repo.config import Settings
    from composer_repo.storage.base import Storage


@dataclass
class AppState:
    settings: Settings
    storage: Storage
    repository: Repository
    archive: ZipArchive
    proxy: ProxyPackages | None = None


def build_state(
    settings: Settings, storage: Storage, http_client: httpx.AsyncClient | None = None
) -> AppState:
    """Wire the repository, and in proxy mode the cached upstream, over ``storage``."""
    repository = Repository(storage, settings.repository.url_prefix)
    proxy = None
    if settings.server.mode == "proxy":
        if http_client is None:
            raise ValueError("proxy mode needs an http client")
        remote_url = settings.proxy.remote_url
        proxy = ProxyPackages(
            repository,
            ComposerStorageCache(repository),
            CacheTimeControl(repository, timedelta(minutes=settings.proxy.ttl_minutes)),
            lambda name: HttpRemote(http_client, remote_url, name),
        )
    return AppState(
        settings=settings,
        storage=storage,
        repository=repository,
        archive=ZipArchive(),
        proxy=proxy,
    )
