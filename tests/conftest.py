"""Root test configuration for dailyinterval tests."""

from __future__ import annotations

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line('markers', 'unit: Unit tests (no real timers)')
    config.addinivalue_line('markers', 'slow: Long-running tests')
