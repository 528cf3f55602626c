"""Unit tests for configuration loading.

Tests defaults, environment overrides, and validation errors.
"""

import pytest

from src.services.config import AppConfig, load_config

CONFIG_VARS = (
    "DATABASE_URL",
    "LOCALE",
    "LOG_LEVEL",
    "LOG_FILE",
    "HONOR_CONTRIBUTION_END_DATE",
    "API_HOST",
    "API_PORT",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run from an empty directory (no .env) with no config variables set."""
    monkeypatch.chdir(tmp_path)
    for name in CONFIG_VARS:
        # setenv first so teardown also removes values load_dotenv writes
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


class TestLoadConfig:
    """Tests for load_config function."""

    def test_defaults(self, clean_env):
        config = load_config()

        assert config == AppConfig()
        assert config.database_url == "sqlite:///./coliving.db"
        assert config.locale == "en_SG"
        assert config.honor_contribution_end_date is False
        assert config.api_port == 8000

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("DATABASE_URL", "sqlite:///./other.db")
        clean_env.setenv("LOCALE", "en_GB")
        clean_env.setenv("LOG_LEVEL", "debug")
        clean_env.setenv("LOG_FILE", "var/api.log")
        clean_env.setenv("API_HOST", "127.0.0.1")
        clean_env.setenv("API_PORT", "9001")

        config = load_config()

        assert config.database_url == "sqlite:///./other.db"
        assert config.locale == "en_GB"
        assert config.log_level == "DEBUG"
        assert config.log_file == "var/api.log"
        assert config.api_host == "127.0.0.1"
        assert config.api_port == 9001

    def test_dotenv_file_is_read(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("API_PORT=8123\nHONOR_CONTRIBUTION_END_DATE=yes\n")

        config = load_config()

        assert config.api_port == 8123
        assert config.honor_contribution_end_date is True

    @pytest.mark.parametrize("value,expected", [("true", True), ("1", True), ("off", False), ("", False)])
    def test_honor_end_date_flag(self, clean_env, value, expected):
        clean_env.setenv("HONOR_CONTRIBUTION_END_DATE", value)
        assert load_config().honor_contribution_end_date is expected

    def test_invalid_boolean(self, clean_env):
        clean_env.setenv("HONOR_CONTRIBUTION_END_DATE", "sometimes")
        with pytest.raises(ValueError, match="HONOR_CONTRIBUTION_END_DATE must be a boolean"):
            load_config()

    def test_empty_database_url(self, clean_env):
        clean_env.setenv("DATABASE_URL", "")
        with pytest.raises(ValueError, match="DATABASE_URL is empty"):
            load_config()

    def test_unknown_locale(self, clean_env):
        clean_env.setenv("LOCALE", "xx_NOWHERE")
        with pytest.raises(ValueError, match="not a known locale"):
            load_config()

    def test_invalid_log_level(self, clean_env):
        clean_env.setenv("LOG_LEVEL", "LOUD")
        with pytest.raises(ValueError, match="LOG_LEVEL"):
            load_config()

    def test_invalid_port(self, clean_env):
        clean_env.setenv("API_PORT", "eighty")
        with pytest.raises(ValueError, match="API_PORT must be an integer"):
            load_config()
