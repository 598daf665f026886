"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set here, before any test module imports
``app.core.config``, so the global settings are built for tests.
"""

import os

# Set before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("APP_SWEEPERS_ENABLED", "true")

from unittest.mock import Mock  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.core.app_factory import create_app  # noqa: E402
from app.core.config import AppSettings, Settings  # noqa: E402


@pytest.fixture
def clock() -> Mock:
    """Deterministic epoch-millisecond clock, starting at t=0."""
    return Mock(return_value=0)


@pytest.fixture
def make_client(clock: Mock):
    """Build a TestClient for an app with the given AppSettings overrides."""

    def _make(**overrides) -> TestClient:
        overrides.setdefault("sweepers_enabled", False)
        app_settings = Settings(app=AppSettings(**overrides))
        return TestClient(create_app(app_settings, clock=clock))

    return _make
