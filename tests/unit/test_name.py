"""Unit tests for composer_repo.name."""

from __future__ import annotations

import pytest

from composer_repo.errors import ComposerRepoError, ErrorCode
from composer_repo.name import PackageName


class TestPackageName:
    def test_parts(self) -> None:
        name = PackageName("psr/log")
        assert name.vendor == "psr"
        assert name.package == "log"
        assert name.string() == "psr/log"

    def test_key(self) -> None:
        assert PackageName("vendor/package").key == "vendor/package.json"

    @pytest.mark.parametrize("value", ["package", "a/b/c", "/log", "psr/", ""])
    def test_malformed_rejected(self, value: str) -> None:
        with pytest.raises(ComposerRepoError) as exc_info:
            PackageName(value)
        assert exc_info.value.code == ErrorCode.INVALID_PACKAGE_NAME
        assert exc_info.value.recoverable is False

    def test_equality_by_value(self) -> None:
        assert PackageName("psr/log") == PackageName("psr/log")
        assert PackageName("psr/log") != PackageName("psr/cache")
