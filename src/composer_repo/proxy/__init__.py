from __future__ import annotations

from composer_repo.proxy.cache_control import CACHE_FILE, AlwaysValid, CacheTimeControl
from composer_repo.proxy.merge import MergePackage
from composer_repo.proxy.remote import EmptyRemote, HttpRemote, RemoteWithErrorHandling
from composer_repo.proxy.service import ProxyPackages
from composer_repo.proxy.storage_cache import ComposerStorageCache, NopCache

__all__ = [
    "CACHE_FILE",
    "AlwaysValid",
    "CacheTimeControl",
    "ComposerStorageCache",
    "EmptyRemote",
    "HttpRemote",
    "MergePackage",
    "NopCache",
    "ProxyPackages",
    "RemoteWithErrorHandling",
]
