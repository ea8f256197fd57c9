from __future__ import annotations

from dataclasses import dataclass, field

from composer_repo.errors import ComposerRepoError, ErrorCode


@dataclass(frozen=True)
class PackageName:
    """A ``vendor/package`` identifier.

    Maps to the storage key ``vendor/package.json`` under which the
    per-package registry lives.
    """

    value: str
    vendor: str = field(init=False, repr=False)
    package: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        parts = self.value.split("/")
        if len(parts) != 2 or not all(parts):
            raise ComposerRepoError(
                ErrorCode.INVALID_PACKAGE_NAME,
                f"Invalid name. Should be like '[vendor]/[package]': {self.value!r}",
            )
        object.__setattr__(self, "vendor", parts[0])
        object.__setattr__(self, "package", parts[1])

    @property
    def key(self) -> str:
        return f"{self.vendor}/{self.package}.json"

    def string(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value
