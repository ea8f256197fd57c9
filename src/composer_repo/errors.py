"""Typed errors raised by the repository core.

Every failure that crosses a module boundary is a ``ComposerRepoError`` with a
stable ``ErrorCode``. ``recoverable`` tells the caller whether retrying the same
request may succeed (e.g. a transient upstream failure) or whether the input
itself is bad.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    INVALID_PACKAGE_NAME = "INVALID_PACKAGE_NAME"
    INVALID_ARCHIVE_NAME = "INVALID_ARCHIVE_NAME"
    BAD_MANIFEST = "BAD_MANIFEST"
    BAD_REGISTRY = "BAD_REGISTRY"
    MANIFEST_NOT_FOUND = "MANIFEST_NOT_FOUND"
    BAD_ARCHIVE = "BAD_ARCHIVE"
    DIST_PREFIX_MISSING = "DIST_PREFIX_MISSING"
    KEY_NOT_FOUND = "KEY_NOT_FOUND"
    UPSTREAM_FETCH_FAILED = "UPSTREAM_FETCH_FAILED"


class ComposerRepoError(Exception):
    def __init__(self, code: ErrorCode, message: str, recoverable: bool = False) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable

    def to_dict(self) -> dict[str, object]:
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "recoverable": self.recoverable,
            }
        }
