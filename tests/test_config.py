"""
Unit tests for configuration loading (permit_mcp/config.py).

Settings are read from the process environment, so each test starts from a
clean slate (clean_env fixture: no PERMIT_* variables, empty working
directory so no .env file is picked up) and sets only what it needs.
"""

import pytest
from pydantic import ValidationError

from permit_mcp.config import Settings, load_settings
from permit_mcp.errors import StartupConfigurationError


class TestLoadSettings:
    """Tests for load_settings() and the environment bindings."""

    def test_reads_prefixed_environment_variables(self, clean_env):
        clean_env.setenv("PERMIT_API_KEY", "permit_key_abc")
        clean_env.setenv("PERMIT_PROJECT_ID", "acme")
        clean_env.setenv("PERMIT_ENV_ID", "production")

        settings = load_settings()

        assert settings.api_key == "permit_key_abc"
        assert settings.project_id == "acme"
        assert settings.env_id == "production"

    def test_defaults(self, clean_env):
        clean_env.setenv("PERMIT_API_KEY", "permit_key_abc")

        settings = load_settings()

        assert settings.project_id == "default"
        assert settings.env_id is None
        assert settings.api_url == "https://api.permit.io"
        assert settings.transport == "stdio"
        assert settings.log_level == "info"

    def test_missing_api_key_names_the_variable(self, clean_env):
        with pytest.raises(
            StartupConfigurationError,
            match="Missing required environment variable: PERMIT_API_KEY",
        ):
            load_settings()

    def test_blank_api_key_is_rejected(self, clean_env):
        clean_env.setenv("PERMIT_API_KEY", "   ")

        with pytest.raises(StartupConfigurationError, match="PERMIT_API_KEY"):
            load_settings()

    def test_blank_project_falls_back_to_default(self, clean_env):
        clean_env.setenv("PERMIT_API_KEY", "permit_key_abc")
        clean_env.setenv("PERMIT_PROJECT_ID", "")

        assert load_settings().project_id == "default"

    def test_blank_env_id_counts_as_unset(self, clean_env):
        clean_env.setenv("PERMIT_API_KEY", "permit_key_abc")
        clean_env.setenv("PERMIT_ENV_ID", "")

        assert load_settings().env_id is None

    def test_invalid_transport_is_reported(self, clean_env):
        clean_env.setenv("PERMIT_API_KEY", "permit_key_abc")
        clean_env.setenv("PERMIT_TRANSPORT", "carrier-pigeon")

        with pytest.raises(StartupConfigurationError, match="Invalid value for PERMIT_TRANSPORT"):
            load_settings()

    def test_reads_dotenv_file(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("PERMIT_API_KEY=from-dotenv\nOTHER_TOOL=1\n")

        settings = load_settings()

        assert settings.api_key == "from-dotenv"

    def test_api_url_trailing_slash_stripped(self, make_settings):
        assert make_settings(api_url="https://permit.internal/").api_url == (
            "https://permit.internal"
        )


class TestSettingsImmutability:
    def test_settings_are_frozen(self, make_settings):
        settings = make_settings()

        with pytest.raises(ValidationError):
            settings.env_id = "other"
