"""
Pytest configuration and shared fixtures for Sheetboard tests.

Provides common setup, teardown, and fixtures used across
unit tests.
"""
import pytest
import tempfile
import shutil
from pathlib import Path
from unittest.mock import Mock

from sheetboard.controller import KioskController
from tests.fixtures.mock_data import (
    ManualTimers,
    ScriptedFetcher,
    create_mock_settings,
)


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that's cleaned up after tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def timers():
    """Provide a manually advanced clock."""
    return ManualTimers()


@pytest.fixture
def mock_settings():
    """Provide kiosk settings pointing at fake proxies."""
    return create_mock_settings()


@pytest.fixture
def mock_effects():
    """Provide a mock EditEffects host."""
    return Mock(spec=["request_focus", "buffer_changed", "commit", "cancel"])


@pytest.fixture
def make_controller(mock_settings, timers):
    """Build a KioskController around a scripted fetcher.

    Returns (controller, fetcher, rendered_states).
    """

    def _make(results=None, gate=None, viewport=(1920, 1080)):
        fetcher = ScriptedFetcher(results or [], gate=gate)
        rendered = []
        controller = KioskController(
            mock_settings,
            fetcher=fetcher,
            timers=timers,
            on_render=rendered.append,
            viewport=viewport,
        )
        return controller, fetcher, rendered

    return _make


# Custom markers for different test categories
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, isolated)"
    )
    config.addinivalue_line(
        "markers", "network: marks tests that script HTTP interactions"
    )
    config.addinivalue_line(
        "markers", "timing: marks tests that depend on real event-loop timers"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add automatic markers based on location."""
    for item in items:
        # Add unit marker to tests in unit directory
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
