"""The ``packages.json`` registry document.

Shape: ``{"packages": {<vendor/package>: {<version>: <manifest>}}}``. The same
shape is used for the global registry and for every per-package registry.
Instances are immutable: ``add`` returns a new registry that the caller must
``save`` explicitly.
"""

from __future__ import annotations

import copy
import json
from typing import TYPE_CHECKING, Any

from composer_repo.errors import ComposerRepoError, ErrorCode
from composer_repo.package import parse_json_object

if TYPE_CHECKING:
    from composer_repo.package import PackageVersionDoc
    from composer_repo.storage.base import Storage

ATTRIBUTE = "packages"


def _serialize(document: dict[str, Any]) -> bytes:
    return json.dumps(document, separators=(",", ":")).encode()


class PackageRegistry:
    def __init__(self, content: bytes | None = None) -> None:
        if content is None:
            content = _serialize({ATTRIBUTE: {}})
        self._content = bytes(content)

    def content(self) -> bytes:
        return self._content

    def json(self) -> dict[str, Any]:
        return parse_json_object(self._content, ErrorCode.BAD_REGISTRY, "registry")

    def add(self, pack: PackageVersionDoc, default_version: str | None = None) -> PackageRegistry:
        """Return a new registry with ``pack`` stored under its effective version."""
        document = self.json()
        packages = document.get(ATTRIBUTE)
        if packages is None:
            raise ComposerRepoError(
                ErrorCode.BAD_REGISTRY, "Bad content, no 'packages' object found"
            )
        if not isinstance(packages, dict):
            raise ComposerRepoError(ErrorCode.BAD_REGISTRY, "Bad content, 'packages' is not an object")

        name = pack.name().string()
        version = pack.version(default_version)
        if version is None:
            raise ComposerRepoError(
                ErrorCode.BAD_MANIFEST, f"Bad package, no 'version' found for {name!r}."
            )

        versions = packages.get(name)
        versions = dict(versions) if isinstance(versions, dict) else {}
        versions[version] = pack.json()
        packages = {**packages, name: versions}
        return PackageRegistry(_serialize({**document, ATTRIBUTE: packages}))

    def versions(self, name: str) -> dict[str, Any]:
        """Version map for ``name``; empty when the package is unknown."""
        packages = self.json().get(ATTRIBUTE) or {}
        return copy.deepcopy(packages.get(name) or {})

    async def save(self, storage: Storage, key: str) -> None:
        await storage.save(key, self._content)
