"""
Tests for application settings
"""

from app.core.config import Settings


def test_settings_read_env_file_config():
    assert Settings.model_config["env_file"] == ".env"
    assert "Config" not in vars(Settings)


def test_settings_env_override(monkeypatch):
    monkeypatch.setenv("MAX_PAGE_SIZE", "50")
    monkeypatch.setenv("RATE_LIMIT_WINDOW_SECONDS", "30")

    settings = Settings()
    assert settings.MAX_PAGE_SIZE == 50
    assert settings.RATE_LIMIT_WINDOW_SECONDS == 30
