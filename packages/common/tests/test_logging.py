"""Tests for logging configuration."""

import pytest

from scholar_common.config import Settings
from scholar_common.logging_config import (
    configure_logging,
    configure_logging_from_settings,
    get_logger,
)


class TestLoggingConfiguration:
    """Test logging configuration and logger creation."""

    def test_configure_logging_sets_up_structlog(self):
        configure_logging(level="INFO", json_output=True)

        logger = get_logger("test_module")

        # structlog returns a lazy proxy, so check by duck typing
        assert callable(logger.info)
        assert callable(logger.warning)
        assert callable(logger.debug)

    def test_json_output_mode_configured(self):
        try:
            configure_logging(level="INFO", json_output=True)
            get_logger("test").info("profile_cache_hit", user="SbUmSEAAAAAJ", articles=58)
        except Exception as e:
            pytest.fail(f"JSON logging configuration failed: {e}")

    def test_human_readable_output_mode(self):
        try:
            configure_logging(level="DEBUG", json_output=False)
            get_logger("dev_test").debug("article_cache_miss", url="https://example.org")
        except Exception as e:
            pytest.fail(f"Console logging configuration failed: {e}")

    def test_different_log_levels(self):
        for level in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            configure_logging(level=level, json_output=False)
            assert get_logger(f"test_{level}") is not None

    def test_configure_from_settings(self):
        settings = Settings(log_level="warning", log_format="JSON")

        try:
            configure_logging_from_settings(settings)
            get_logger("settings_test").warning("article_refresh_failed", error="boom")
        except Exception as e:
            pytest.fail(f"Settings-driven logging configuration failed: {e}")
