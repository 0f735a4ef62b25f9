"""Shared test fixtures."""

from __future__ import annotations

import os

import pytest
from structlog.testing import capture_logs

from selfupdater.config import get_settings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep the developer's SELFUPDATER_* environment out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith("SELFUPDATER_"):
            monkeypatch.delenv(key)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def log_events():
    """Capture structlog events instead of printing them."""
    with capture_logs() as events:
        yield events
