"""
================================================================================
UI Testing Pytest Configuration
================================================================================

Test lifecycle for browser suites.

Key Features:
- One session per test, acquired from the process-wide registry
- Session released in teardown no matter how the test ended
- Screenshot of the thread's session attached to Allure on failure
- Suite skipped when no Playwright browser is installed

================================================================================
"""

from __future__ import annotations

from typing import Generator

import allure
import pytest
from loguru import logger
from playwright.sync_api import Error as PlaywrightError

from autosync.common.config_loader import ConfigLoader, session_config_from, wait_spec_from
from autosync.common.logging_setup import init_logger
from autosync.ui_testing.framework import session_registry
from autosync.ui_testing.framework.poller import WaitSpec
from autosync.ui_testing.framework.session_registry import Session
from autosync.ui_testing.pages.playground_page import PlaygroundPage


# ================================================================================
# Session Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def config() -> ConfigLoader:
    loader = ConfigLoader()
    init_logger(config=loader)
    return loader


@pytest.fixture(scope="session")
def wait_spec(config: ConfigLoader) -> WaitSpec:
    return wait_spec_from(config)


@pytest.fixture
def session(config: ConfigLoader) -> Generator[Session, None, None]:
    """
    Function-scoped browser session.

    Acquired for the current thread and always released in teardown, so a
    failing test cannot leak a browser into the next one.
    """
    try:
        ui_session = session_registry.acquire(session_config_from(config))
    except PlaywrightError as e:
        if "Executable doesn't exist" in str(e):
            pytest.skip(f"Playwright browser not installed: {e}")
        raise

    yield ui_session
    session_registry.release()


@pytest.fixture
def app_session(session: Session) -> Session:
    """Session already navigated to the configured application ``base_url``."""
    if not session.config.base_url:
        pytest.skip("app.base_url is not configured")
    session.navigate(session.config.base_url)
    return session


# ================================================================================
# Page Object Fixtures
# ================================================================================

@pytest.fixture
def playground(session: Session, wait_spec: WaitSpec) -> PlaygroundPage:
    return PlaygroundPage(session, spec=wait_spec).load()


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """
    Attach a screenshot of the failing test's session to the Allure report.

    Best effort: a screenshot failure is logged and never changes the
    test's outcome.
    """
    outcome = yield
    report = outcome.get_result()

    if report.when != "call" or not report.failed:
        return

    ui_session = session_registry.current()
    if ui_session is None or ui_session.closed:
        return

    try:
        screenshot = ui_session.page.screenshot(full_page=True)
    except PlaywrightError as e:
        logger.warning(f"Failed to capture screenshot on failure: {e}")
        return

    allure.attach(
        screenshot,
        name="failure_screenshot",
        attachment_type=allure.attachment_type.PNG,
    )
