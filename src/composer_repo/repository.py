"""Package repository over an object store.

Two registries are maintained on every publish: the global one at
``packages.json`` and the per-package one at ``<vendor>/<package>.json``.
Each is created empty the first time it is needed.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from typing import TYPE_CHECKING, Any, TypeVar

import structlog

from composer_repo.errors import ComposerRepoError, ErrorCode
from composer_repo.package import PackageVersionDoc
from composer_repo.packages import PackageRegistry

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from composer_repo.archive import Archive
    from composer_repo.models.archive import ArchiveName
    from composer_repo.name import PackageName
    from composer_repo.storage.base import Storage

log = structlog.get_logger()

T = TypeVar("T")

ALL_PACKAGES = "packages.json"


def _to_bytes(document: dict[str, Any]) -> bytes:
    return json.dumps(document, separators=(",", ":")).encode()


def _with_dist(manifest: dict[str, Any], prefix: str, key: str) -> dict[str, Any]:
    url = f"{prefix.rstrip('/')}/{key}"
    return {**manifest, "dist": {"url": url, "type": "zip"}}


class Repository:
    def __init__(self, storage: Storage, url_prefix: str | None = None) -> None:
        self._storage = storage
        self._prefix = url_prefix

    # ------------------------------------------------------------------
    # Registries
    # ------------------------------------------------------------------

    async def packages(self, name: PackageName | None = None) -> PackageRegistry | None:
        """Global registry, or the per-package one for ``name``. ``None`` if not yet created."""
        key = ALL_PACKAGES if name is None else name.key
        if not await self._storage.exists(key):
            return None
        return PackageRegistry(await self._storage.value(key))

    async def _add_to(
        self,
        key: str,
        name: PackageName | None,
        pack: PackageVersionDoc,
        version: str | None,
    ) -> None:
        registry = await self.packages(name) or PackageRegistry()
        await registry.add(pack, version).save(self._storage, key)

    async def _add(self, pack: PackageVersionDoc, version: str | None = None) -> None:
        name = pack.name()
        await asyncio.gather(
            self._add_to(ALL_PACKAGES, None, pack, version),
            self._add_to(name.key, name, pack, version),
        )
        log.info("package_added", package=name.string(), version=pack.version(version))

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    async def add_json(self, content: bytes, version: str | None = None) -> None:
        """Publish a raw ``composer.json``; ``version`` is used when the manifest has none."""
        key = str(uuid.uuid4())
        await self._storage.save(key, content)
        try:
            pack = PackageVersionDoc(await self._storage.value(key))
            # Validate before touching either registry
            pack.name()
            if pack.version(version) is None:
                raise ComposerRepoError(ErrorCode.BAD_MANIFEST, "Bad package, no 'version' found.")
            await self._add(pack, version)
        finally:
            await self._storage.delete(key)

    async def add_archive(self, archive: Archive, name: ArchiveName, content: bytes) -> None:
        """Publish a package archive.

        The archive's manifest is stamped with the version from the file name,
        the archive is rewritten with that manifest, and the manifest plus a
        ``dist`` pointing at the stored archive is added to the registries.
        Nothing is written until the upload has been fully validated, so a
        rejected upload never replaces an archive published earlier.
        """
        if not self._prefix:
            raise ComposerRepoError(
                ErrorCode.DIST_PREFIX_MISSING,
                "Prefix url for `dist` for uploaded archive was empty.",
            )
        key = name.key
        manifest = await asyncio.to_thread(archive.manifest_from, content)
        manifest["version"] = name.version
        rewritten = await asyncio.to_thread(
            archive.with_replaced_manifest, content, _to_bytes(manifest)
        )
        pack = PackageVersionDoc(_to_bytes(_with_dist(manifest, self._prefix, key)))
        pack.name()

        tmp = f"{uuid.uuid4()}/{name.full}"
        await self._storage.save(tmp, rewritten)
        await self._storage.delete(key)
        await self._storage.move(tmp, key)
        await self._add(pack)

    # ------------------------------------------------------------------
    # Storage passthrough
    # ------------------------------------------------------------------

    async def exists(self, key: str) -> bool:
        return await self._storage.exists(key)

    async def value(self, key: str) -> bytes:
        return await self._storage.value(key)

    async def save(self, key: str, content: bytes) -> None:
        await self._storage.save(key, content)

    async def delete(self, key: str) -> None:
        await self._storage.delete(key)

    async def move(self, source: str, destination: str) -> None:
        await self._storage.move(source, destination)

    async def exclusively(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        return await self._storage.exclusively(key, operation)
