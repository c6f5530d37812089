"""Shared test fixtures for the scholar-kb repository.

Provides:
- Settings isolation (no cached settings leak between tests)
- Scrubbing of SCHOLAR_* variables from the developer's environment
"""

import os

import pytest

from scholar_common.config import get_settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Run every test against default settings.

    Tests that need overrides set them with monkeypatch.setenv; the settings
    cache is cleared on both sides so the override is actually read.
    """
    for name in list(os.environ):
        if name.startswith("SCHOLAR_"):
            monkeypatch.delenv(name, raising=False)

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
