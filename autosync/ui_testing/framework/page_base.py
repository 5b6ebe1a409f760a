"""
================================================================================
Base Page Object
================================================================================

Foundation class for Page Object Model implementation.

Page objects hold ElementQuery constants and express user intent through the
session's ElementActions and Waits; they never talk to Playwright directly.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Optional

import allure
from loguru import logger

from .conditions import Pending, Resolved
from .element_actions import ElementActions
from .poller import WaitSpec
from .waits import Waits


class BasePage:
    """
    Base class for all page objects.

    Usage:
        class LoginPage(BasePage):
            URL_PATH = "/login"

            USERNAME = ElementQuery.id("username", "Username input")
            PASSWORD = ElementQuery.id("password", "Password input")
            SUBMIT = ElementQuery.test_id("btn-login", "Login button")

            def login(self, username: str, password: str) -> None:
                self.actions.type_text(self.USERNAME, username)
                self.actions.type_text(self.PASSWORD, password)
                self.actions.click(self.SUBMIT)
    """

    # Override in subclasses
    URL_PATH: str = "/"

    def __init__(
        self,
        session: Any,
        base_url: Optional[str] = None,
        spec: Optional[WaitSpec] = None,
    ):
        """
        Initialize page object.

        Args:
            session: Session this page drives
            base_url: Application base URL. Defaults to the session's
                configured ``base_url``.
            spec: WaitSpec used by this page's actions and waits
        """
        self.session = session
        if base_url is None:
            base_url = getattr(session.config, "base_url", None) or ""
        self.base_url = base_url.rstrip("/")
        self.actions = ElementActions(session, spec)
        self.waits: Waits = self.actions.waits

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.URL_PATH}"

    def open(self) -> "BasePage":
        """Navigate to this page and wait until it reports loaded."""
        with allure.step(f"Open {type(self).__name__}"):
            self.session.navigate(self.url)
            self.waits.until(
                lambda _session: self._loaded_result(),
                description=f"{type(self).__name__} to be loaded",
            )
        return self

    def _loaded_result(self):
        if self.is_page_loaded():
            return Resolved(True)
        return Pending(f"{type(self).__name__} not loaded yet")

    def is_page_loaded(self) -> bool:
        """
        Whether the page finished rendering.

        Subclasses usually probe a landmark element; the default checks
        ``document.readyState``.
        """
        return self.actions.execute_script("document.readyState") == "complete"

    @property
    def title(self) -> str:
        return self.session.page.title()

    @property
    def current_url(self) -> str:
        return self.session.page.url

    def navigate_to(self, path: str) -> None:
        full_url = f"{self.base_url}{path}"
        with allure.step(f"Navigate to {path}"):
            self.session.navigate(full_url)

    def refresh(self) -> None:
        self.session.page.reload()
        self.session.switch_to_default_content()
        logger.debug(f"Refreshed: {self.current_url}")


__all__ = [
    "BasePage",
]
