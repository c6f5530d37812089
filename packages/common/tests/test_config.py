"""Tests for settings loading and validation."""

import pytest
from pydantic import ValidationError

from scholar_common.config import Settings, get_settings


class TestSettingsDefaults:
    """Defaults match the polite crawling policy."""

    def test_throttle_defaults(self):
        settings = Settings()

        assert settings.request_delay_seconds == 2.0
        assert settings.max_retries == 3
        assert settings.backoff_base_seconds == 5.0

    def test_cache_ttl_defaults(self):
        settings = Settings()

        assert settings.profile_ttl_seconds == 86400
        assert settings.article_ttl_seconds == 7 * 86400

    def test_base_url_default(self):
        assert Settings().base_url == "https://scholar.google.com"


class TestSettingsEnvironment:
    """Environment variables override defaults."""

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("SCHOLAR_REQUEST_DELAY_SECONDS", "0.5")
        monkeypatch.setenv("SCHOLAR_ARTICLE_TTL_SECONDS", "60")

        settings = Settings()

        assert settings.request_delay_seconds == 0.5
        assert settings.article_ttl_seconds == 60

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestSettingsValidation:
    """Invalid values are rejected early."""

    def test_log_level_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="LOUD")

    def test_invalid_log_format(self):
        with pytest.raises(ValidationError):
            Settings(log_format="xml")

    def test_negative_delay_rejected(self):
        with pytest.raises(ValidationError):
            Settings(request_delay_seconds=-1)

    def test_trailing_slash_stripped(self):
        assert Settings(base_url="http://localhost:8080/").base_url == "http://localhost:8080"
