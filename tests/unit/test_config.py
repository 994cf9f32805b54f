# =============================================================================
# tests/unit/test_config.py
# Unit Tests for Settings loading and validation
# =============================================================================

import pytest

from supervision_core.config import Settings, load_settings
from supervision_core.errors import ConfigurationError


class TestSettingsDefaults:
    """Defaults and derived flags"""

    def test_placeholder_gateway_is_unconfigured(self, tmp_path):
        """Default placeholders count as unconfigured"""
        settings = Settings(db_path=tmp_path / "x.db")

        assert not settings.gateway_configured
        assert not settings.sheet_configured
        assert settings.delivery_mode == "fire_and_forget"
        assert settings.archive_max_records is None

    def test_real_url_is_configured(self, settings):
        """A real URL counts as configured"""
        assert settings.gateway_configured


class TestSettingsValidation:
    """Bad values fail fast with ConfigurationError"""

    def test_unknown_delivery_mode(self, tmp_path):
        """Unknown delivery mode fails fast"""
        with pytest.raises(ConfigurationError) as excinfo:
            Settings(db_path=tmp_path / "x.db", delivery_mode="eventually")
        assert excinfo.value.details["config_key"] == "delivery_mode"
        assert not excinfo.value.recoverable

    @pytest.mark.parametrize("limit", [0, -5])
    def test_archive_limit_must_be_positive(self, tmp_path, limit):
        """Archive limit below one is rejected"""
        with pytest.raises(ConfigurationError):
            Settings(db_path=tmp_path / "x.db", archive_max_records=limit)

    def test_non_numeric_timeout(self, tmp_path):
        """Non-numeric timeout is rejected"""
        with pytest.raises(ConfigurationError):
            Settings(db_path=tmp_path / "x.db", request_timeout="soon")

    def test_string_values_are_coerced(self, tmp_path):
        """String values from env or secrets are coerced"""
        settings = Settings(db_path=str(tmp_path / "x.db"), request_timeout="12",
                            archive_max_records="500", cas_max_attempts="3")

        assert settings.request_timeout == 12.0
        assert settings.archive_max_records == 500
        assert settings.cas_max_attempts == 3

    def test_empty_archive_limit_means_unbounded(self, tmp_path):
        """Empty archive limit means no limit"""
        assert Settings(db_path=tmp_path / "x.db", archive_max_records="").archive_max_records is None


class TestLoadSettings:
    """Environment and override precedence"""

    def test_environment_variables(self, monkeypatch, tmp_path):
        """SUPERVISION_* variables are read"""
        monkeypatch.setenv("SUPERVISION_SCRIPT_URL", "https://script.google.com/macros/s/env/exec")
        monkeypatch.setenv("SUPERVISION_DELIVERY_MODE", "acknowledged")
        monkeypatch.setenv("SUPERVISION_DB_PATH", str(tmp_path / "env.db"))

        settings = load_settings()

        assert settings.script_url.endswith("/env/exec")
        assert settings.delivery_mode == "acknowledged"

    def test_generic_anthropic_key_is_picked_up(self, monkeypatch, tmp_path):
        """ANTHROPIC_API_KEY is used as a fallback"""
        monkeypatch.delenv("SUPERVISION_ANTHROPIC_API_KEY", raising=False)
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")

        assert load_settings({"db_path": tmp_path / "x.db"}).anthropic_api_key == "sk-ant-test"

    def test_overrides_win(self, monkeypatch, tmp_path):
        """Explicit overrides beat the environment"""
        monkeypatch.setenv("SUPERVISION_REQUEST_TIMEOUT", "10")

        settings = load_settings({"request_timeout": 3, "db_path": tmp_path / "x.db"})
        assert settings.request_timeout == 3.0

    def test_unknown_keys_are_ignored(self, tmp_path):
        """Unknown keys are dropped with a warning"""
        settings = load_settings({"db_path": tmp_path / "x.db", "colour_scheme": "dark"})
        assert not hasattr(settings, "colour_scheme")
