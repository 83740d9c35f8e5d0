"""Shared fixtures for the constraintkit test-suite."""
from datetime import datetime, timezone

import pytest

from constraintkit.core.config import get_settings
from constraintkit.core.logging import configure_logging
from constraintkit.validation import Engine

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return NOW


@pytest.fixture(scope="session", autouse=True)
def _logging():
    """Route debug events through the full processor chain so every log call is exercised."""
    configure_logging(level="DEBUG", json_logs=True)


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Isolate tests from the developer's environment and the settings cache."""
    for name in ("CONSTRAINTKIT_FAIL_FAST", "CONSTRAINTKIT_CLOCK_TIMEZONE", "CONSTRAINTKIT_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def engine() -> Engine:
    return Engine(clock=fixed_clock)


@pytest.fixture
def fail_fast_engine() -> Engine:
    return Engine(clock=fixed_clock, fail_fast=True)
