"""Access to the ``composer.json`` embedded in an uploaded package archive.

Only ZIP is supported. Replacing the manifest rebuilds the whole archive:
packages are uploaded once and read many times, and the new manifest rarely
has the same length as the old one.
"""

from __future__ import annotations

import copy
import io
import zipfile
import zlib
from typing import Any, Protocol

from composer_repo.errors import ComposerRepoError, ErrorCode
from composer_repo.package import parse_json_object

MANIFEST = "composer.json"

# Raised by zipfile for corrupt, truncated, encrypted or unsupported entries
_READ_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    NotImplementedError,
    RuntimeError,
    OSError,
)


class Archive(Protocol):
    def manifest_from(self, data: bytes) -> dict[str, Any]: ...

    def with_replaced_manifest(self, data: bytes, manifest: bytes) -> bytes: ...


def _base_name(entry: zipfile.ZipInfo) -> str:
    return entry.filename.rstrip("/").split("/")[-1] if not entry.is_dir() else ""


class ZipArchive:
    def __init__(self, manifest: str = MANIFEST) -> None:
        self._manifest = manifest

    def _open(self, data: bytes) -> zipfile.ZipFile:
        try:
            return zipfile.ZipFile(io.BytesIO(data))
        except _READ_ERRORS as exc:
            raise ComposerRepoError(
                ErrorCode.BAD_ARCHIVE, f"Not a valid zip archive: {exc}"
            ) from exc

    def _find(self, archive: zipfile.ZipFile) -> zipfile.ZipInfo:
        for entry in archive.infolist():
            if _base_name(entry) == self._manifest:
                return entry
        raise ComposerRepoError(
            ErrorCode.MANIFEST_NOT_FOUND, f"'{self._manifest}' file was not found"
        )

    def manifest_from(self, data: bytes) -> dict[str, Any]:
        """Parse the first entry named like the manifest, at any depth."""
        with self._open(data) as archive:
            entry = self._find(archive)
            try:
                content = archive.read(entry)
            except _READ_ERRORS as exc:
                raise ComposerRepoError(
                    ErrorCode.BAD_ARCHIVE, f"Failed to read {entry.filename}: {exc}"
                ) from exc
        return parse_json_object(content, ErrorCode.BAD_MANIFEST, self._manifest)

    def with_replaced_manifest(self, data: bytes, manifest: bytes) -> bytes:
        """Copy every entry into a new archive, swapping the manifest's bytes.

        Entry names, order, compression and timestamps are kept.
        """
        out = io.BytesIO()
        with self._open(data) as source:
            target_entry = self._find(source)
            with zipfile.ZipFile(out, "w") as target:
                target.comment = source.comment
                for entry in source.infolist():
                    try:
                        content = manifest if entry is target_entry else source.read(entry)
                    except _READ_ERRORS as exc:
                        raise ComposerRepoError(
                            ErrorCode.BAD_ARCHIVE, f"Failed to read {entry.filename}: {exc}"
                        ) from exc
                    # writestr rewrites offsets and sizes on the info it is given
                    target.writestr(copy.copy(entry), content)
        return out.getvalue()
