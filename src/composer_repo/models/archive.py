from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict

from composer_repo.errors import ComposerRepoError, ErrorCode

# `log-1.1.3.zip`, `my_lib-v2.0.0-beta1.zip`
ARCHIVE_PATH = re.compile(
    r"^/?(?P<full>(?P<name>[a-z0-9_.\-]*)-(?P<version>v?\d+.\d+.\d+[-\w]*).zip)$"
)


class ArchiveName(BaseModel):
    """File name of an uploaded archive and the version it carries."""

    model_config = ConfigDict(frozen=True)

    full: str  # e.g. "log-1.1.3.zip"
    version: str  # e.g. "1.1.3"

    @classmethod
    def from_path(cls, path: str) -> ArchiveName:
        match = ARCHIVE_PATH.match(path)
        if match is None:
            raise ComposerRepoError(
                ErrorCode.INVALID_ARCHIVE_NAME,
                f"Archive name should be like '<name>-<version>.zip': {path!r}",
            )
        return cls(full=match.group("full"), version=match.group("version"))

    @property
    def key(self) -> str:
        """Storage key of the archive."""
        return f"artifacts/{self.full}"
