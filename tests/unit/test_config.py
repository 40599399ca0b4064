"""
Unit tests for configuration module
"""

import pytest

from hotkey_tracker.core.config import DEFAULT_API_SECRET, Settings

# Mark all tests in this module as unit tests
pytestmark = pytest.mark.unit


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "API_SECRET", "DATABASE_URL", "PORT", "PUBLIC_URL",
        "DISCORD_TOKEN", "DISCORD_CHANNEL_ID", "MAX_SESSIONS",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    """Test application settings configuration"""

    def test_default_settings(self, clean_env):
        settings = Settings(_env_file=None)

        assert settings.app_name == "Hotkey Tracker"
        assert settings.port == 3000
        assert settings.database_url == "sqlite:///./data/sessions.db"
        assert settings.api_secret == DEFAULT_API_SECRET
        assert settings.max_sessions == 100
        assert settings.max_logs_per_session == 1000
        assert settings.max_clicks_per_session == 50
        assert settings.session_retention_days == 7
        assert settings.display_timezone == "Europe/Moscow"

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("API_SECRET", "from-env")
        clean_env.setenv("PORT", "8080")
        clean_env.setenv("MAX_SESSIONS", "3")

        settings = Settings(_env_file=None)

        assert settings.api_secret == "from-env"
        assert settings.port == 8080
        assert settings.max_sessions == 3

    def test_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("API_SECRET=file-secret\nDISCORD_TOKEN=abc\n")

        settings = Settings(_env_file=str(env_file))

        assert settings.api_secret == "file-secret"
        assert settings.discord_token == "abc"


class TestDerivedValues:

    def test_base_url_defaults_to_localhost(self, clean_env):
        settings = Settings(_env_file=None, port=4000)
        assert settings.base_url == "http://localhost:4000"

    def test_view_url_uses_public_url(self, clean_env):
        settings = Settings(_env_file=None, public_url="https://tracker.example/")
        assert settings.view_url("abc") == "https://tracker.example/data/abc"

    @pytest.mark.parametrize(
        "token,channel,enabled",
        [("t", "c", True), ("t", None, False), (None, "c", False), ("", "c", False)],
    )
    def test_discord_enabled(self, clean_env, token, channel, enabled):
        settings = Settings(_env_file=None, discord_token=token, discord_channel_id=channel)
        assert settings.discord_enabled is enabled
