"""Merge of the local registry fragment with the upstream one for a package.

Local fragments use the registry shape (versions keyed by version string);
upstream `p2` fragments list versions in an array. A document without
`packages` is an empty fragment.
"""

from __future__ import annotations

import json
import uuid
from typing import Any

import structlog

from composer_repo.errors import ComposerRepoError, ErrorCode
from composer_repo.package import parse_json_object

log = structlog.get_logger()


def _packages(content: bytes, what: str) -> dict[str, Any]:
    document = parse_json_object(content, ErrorCode.BAD_REGISTRY, what)
    packages = document.get("packages") or {}
    if not isinstance(packages, dict):
        raise ComposerRepoError(ErrorCode.BAD_REGISTRY, f"Bad {what}, 'packages' is not an object")
    return packages


class MergePackage:
    """Local versions of ``name`` plus the upstream versions missing locally.

    Local entries always win over remote ones with the same version string.
    Admitted remote entries get a ``name`` (when missing) and a fresh ``uid``.
    """

    def __init__(self, name: str, local: bytes) -> None:
        self._name = name
        self._local = local

    def merge(self, remote: bytes | None) -> bytes | None:
        """Merged ``{"packages": {name: {version: entry}}}``, or ``None`` when empty."""
        local = _packages(self._local, "local registry").get(self._name) or {}
        if not isinstance(local, dict):
            raise ComposerRepoError(
                ErrorCode.BAD_REGISTRY, f"Bad local registry, versions of {self._name} not a map"
            )
        merged = dict(local)
        if remote is not None:
            for entry in self._remote_entries(remote):
                version = entry.get("version")
                if not isinstance(version, str) or version in local:
                    continue
                merged[version] = {
                    **entry,
                    "name": entry.get("name", self._name),
                    "uid": str(uuid.uuid4()),
                }
        if not merged:
            return None
        return json.dumps({"packages": {self._name: merged}}).encode()

    def _remote_entries(self, remote: bytes) -> list[dict[str, Any]]:
        entries = _packages(remote, "remote package").get(self._name) or []
        if not isinstance(entries, list):
            log.warning("remote_versions_not_a_list", package=self._name)
            return []
        return [entry for entry in entries if isinstance(entry, dict)]
