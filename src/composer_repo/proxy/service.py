"""Per-package documents served in proxy mode."""

from __future__ import annotations

import asyncio
import re
from typing import TYPE_CHECKING

import structlog

from composer_repo.errors import ComposerRepoError
from composer_repo.name import PackageName
from composer_repo.packages import PackageRegistry
from composer_repo.proxy.merge import MergePackage

if TYPE_CHECKING:
    from collections.abc import Callable

    from composer_repo.models.cache import CacheResult
    from composer_repo.proxy.cache_control import CacheControl
    from composer_repo.proxy.remote import Remote
    from composer_repo.proxy.storage_cache import Cache
    from composer_repo.repository import Repository

log = structlog.get_logger()

_PREFIX = re.compile(r"^/p2?/")


def name_from_path(path: str) -> str:
    """``/p2/psr/log~dev.json`` -> ``psr/log``."""
    name = _PREFIX.sub("", path)
    name = re.sub(r"~.*", "", name)
    name = re.sub(r"\^.*", "", name)
    return re.sub(r"\.json$", "", name)


class ProxyPackages:
    """Local versions of a package merged with the cached upstream versions.

    ``remote_for`` builds the upstream source for a package name, so tests and
    callers can plug in any ``Remote``.
    """

    def __init__(
        self,
        repository: Repository,
        cache: Cache,
        control: CacheControl,
        remote_for: Callable[[PackageName], Remote],
    ) -> None:
        self._repo = repository
        self._cache = cache
        self._control = control
        self._remote_for = remote_for

    async def package(self, path: str) -> bytes | None:
        """Merged document for the package addressed by ``path``, or ``None`` for not found."""
        try:
            name = PackageName(name_from_path(path))
        except ComposerRepoError:
            log.info("proxy_invalid_name", path=path)
            return None

        local, remote = await asyncio.gather(self._local(), self._remote(name))
        try:
            return MergePackage(name.string(), local).merge(remote.content)
        except ComposerRepoError as exc:
            log.warning("proxy_merge_failed", package=name.string(), code=exc.code, error=exc.message)
            return None

    async def _local(self) -> bytes:
        registry = await self._repo.packages() or PackageRegistry()
        return registry.content()

    async def _remote(self, name: PackageName) -> CacheResult:
        result = await self._cache.load(name.string(), self._remote_for(name), self._control)
        log.debug("proxy_remote_loaded", package=name.string(), outcome=result.outcome)
        return result
