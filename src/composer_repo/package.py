"""A single package version manifest (one ``composer.json``)."""

from __future__ import annotations

import copy
import json
from functools import cached_property
from typing import Any

from composer_repo.errors import ComposerRepoError, ErrorCode
from composer_repo.name import PackageName


def parse_json_object(content: bytes, code: ErrorCode, what: str) -> dict[str, Any]:
    """Parse ``content`` as a JSON object or raise ``ComposerRepoError(code)``."""
    try:
        value = json.loads(content)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ComposerRepoError(code, f"Bad {what}, content is not valid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise ComposerRepoError(code, f"Bad {what}, expected a JSON object")
    return value


class PackageVersionDoc:
    """Immutable view over a manifest's bytes.

    ``name`` is mandatory. ``version`` is optional on the wire; callers supply
    a fallback (e.g. the ``?version=`` query or the archive filename).
    """

    def __init__(self, content: bytes) -> None:
        self._content = bytes(content)

    @cached_property
    def _json(self) -> dict[str, Any]:
        return parse_json_object(self._content, ErrorCode.BAD_MANIFEST, "package")

    def json(self) -> dict[str, Any]:
        return copy.deepcopy(self._json)

    def content(self) -> bytes:
        return self._content

    def name(self) -> PackageName:
        value = self._json.get("name")
        if not isinstance(value, str):
            raise ComposerRepoError(ErrorCode.BAD_MANIFEST, "Bad package, no 'name' found.")
        return PackageName(value)

    def version(self, default: str | None = None) -> str | None:
        value = self._json.get("version")
        if isinstance(value, str):
            return value
        return default
