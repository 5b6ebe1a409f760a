"""
================================================================================
Root Pytest Configuration
================================================================================

Registers the project-wide markers and provides demo-safe defaults.

Important:
  Values below are placeholders for local runs. Real projects should load
  secrets from a secure secret manager in CI/CD.

================================================================================
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )
    config.addinivalue_line(
        "markers", "P3: Low priority tests - extensive validation"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "regression: Full regression test suite"
    )
    config.addinivalue_line(
        "markers", "e2e: Browser tests driving a real Playwright session"
    )
    config.addinivalue_line(
        "markers", "unit: Framework tests against in-memory sessions"
    )

    # Domain markers
    config.addinivalue_line(
        "markers", "api: API-specific tests"
    )
    config.addinivalue_line(
        "markers", "ui: UI-specific tests"
    )


def pytest_collection_modifyitems(config, items):
    """Tag tests by location so suites can be selected with -m."""
    for item in items:
        path = str(item.fspath)
        if "ui_testing" in path:
            item.add_marker(pytest.mark.ui)
        if f"{os.sep}unit{os.sep}" in path:
            item.add_marker(pytest.mark.unit)
        if "http_client" in path:
            item.add_marker(pytest.mark.api)


def pytest_report_header(config):
    return [
        "",
        "=" * 60,
        "Autosync UI Automation Framework",
        "=" * 60,
        "",
    ]


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _demo_safe_env_defaults() -> Generator[None, None, None]:
    """
    Set demo-safe environment defaults if not already provided by the user/CI.

    Only keys that no unit test asserts on are defaulted here.
    """
    defaults = {
        "API_TOKEN": "",
        "LOGGING_LEVEL": "INFO",
    }

    for k, v in defaults.items():
        os.environ.setdefault(k, v)

    yield
