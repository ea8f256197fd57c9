"""Unit tests for configuration defaults and validation."""

from __future__ import annotations

import platformdirs
import pytest
from pydantic import ValidationError

from composer_repo.config import _DEFAULT_DATA_DIR, _DEFAULT_DB_PATH, Settings, StorageSettings


class TestPlatformDefaults:
    """Verify config defaults use platformdirs instead of hardcoded Unix paths."""

    def test_default_data_dir_matches_platformdirs(self) -> None:
        assert platformdirs.user_data_dir("composer-repo") == _DEFAULT_DATA_DIR

    def test_default_db_path_under_data_dir(self) -> None:
        assert _DEFAULT_DB_PATH.startswith(_DEFAULT_DATA_DIR)
        assert _DEFAULT_DB_PATH.endswith("storage.db")

    def test_storage_settings_uses_platform_default(self) -> None:
        assert StorageSettings().db_path == _DEFAULT_DB_PATH


class TestDefaults:
    def test_proxy_ttl_is_ten_minutes(self) -> None:
        assert Settings().proxy.ttl_minutes == 10

    def test_no_url_prefix_by_default(self) -> None:
        assert Settings().repository.url_prefix is None

    def test_local_mode_by_default(self) -> None:
        assert Settings().server.mode == "local"


class TestEnvironment:
    def test_nested_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COMPOSER_REPO__SERVER__MODE", "proxy")
        monkeypatch.setenv("COMPOSER_REPO__PROXY__TTL_MINUTES", "30")
        settings = Settings()
        assert settings.server.mode == "proxy"
        assert settings.proxy.ttl_minutes == 30


class TestConfigValidation:
    def test_wrong_type_raises_validation_error(self) -> None:
        """A non-integer port raises ValidationError immediately."""
        with pytest.raises(ValidationError):
            # type: ignore comment is intentional: we are deliberately passing
            # a wrong type to verify that Pydantic catches and rejects it.
            Settings(server={"port": "not-a-number"})  # type: ignore[arg-type]

    def test_unknown_mode_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            Settings(server={"mode": "mirror"})  # type: ignore[arg-type]

    def test_unknown_top_level_field_raises_validation_error(self) -> None:
        """A YAML typo at the top level (e.g. 'proxi:' instead of 'proxy:') is caught."""
        with pytest.raises(ValidationError):
            Settings(completely_unknown_field="oops")  # type: ignore[call-arg]

    def test_unknown_nested_field_raises_validation_error(self) -> None:
        """Unknown nested model fields raise ValidationError (extra='forbid')."""
        with pytest.raises(ValidationError):
            StorageSettings(db_paht="/intended/path/storage.db")  # type: ignore[call-arg]
