"""
================================================================================
Waits
================================================================================

Typed synchronization helpers for a single session.

Every helper is a thin wrapper: pick a condition evaluator, hand it to the
Poller with the right WaitSpec. No helper sleeps on its own.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, List, Optional

from loguru import logger
from playwright.sync_api import Dialog, Frame, Locator

from . import conditions
from .conditions import ElementQuery, Evaluator
from .poller import DEFAULT_WAIT_SPEC, Poller, WaitSpec


class AlertHandle:
    """Open JavaScript dialog returned by ``Waits.alert_present``."""

    def __init__(self, session: Any, dialog: Dialog):
        self._session = session
        self._dialog = dialog

    @property
    def text(self) -> str:
        return self._dialog.message

    @property
    def kind(self) -> str:
        """alert, confirm, prompt or beforeunload."""
        return self._dialog.type

    def accept(self, prompt_text: Optional[str] = None) -> None:
        if prompt_text is None:
            self._dialog.accept()
        else:
            self._dialog.accept(prompt_text)
        self._session.forget_dialog(self._dialog)
        logger.info(f"Accepted {self.kind} dialog: {self.text!r}")

    def dismiss(self) -> None:
        self._dialog.dismiss()
        self._session.forget_dialog(self._dialog)
        logger.info(f"Dismissed {self.kind} dialog: {self.text!r}")


class Waits:
    """
    Explicit waits bound to one session.

    Each method takes an optional WaitSpec; without one the instance's spec
    applies, which defaults to 10s timeout / 500ms polling.

    Example:
        waits = Waits(session)
        waits.visible(ElementQuery.css("#results"))
        waits.url_contains("/dashboard", spec=WaitSpec(timeout_ms=30000))
    """

    def __init__(self, session: Any, spec: Optional[WaitSpec] = None):
        """
        Initialize waits.

        Args:
            session: Session the conditions are evaluated against
            spec: Default WaitSpec for this instance
        """
        self.session = session
        self.spec = spec or DEFAULT_WAIT_SPEC
        self._poller = Poller(self.spec)

    def until(
        self,
        evaluator: Evaluator,
        spec: Optional[WaitSpec] = None,
        description: str = "custom condition",
    ) -> Any:
        """Wait for an arbitrary condition evaluator."""
        return self._poller.wait(self.session, evaluator, spec=spec, description=description)

    # =========================================================================
    # Element States
    # =========================================================================

    def visible(self, query: ElementQuery, spec: Optional[WaitSpec] = None) -> Locator:
        return self.until(conditions.visible(query), spec, f"{query} to be visible")

    def clickable(self, query: ElementQuery, spec: Optional[WaitSpec] = None) -> Locator:
        return self.until(conditions.clickable(query), spec, f"{query} to be clickable")

    def present(self, query: ElementQuery, spec: Optional[WaitSpec] = None) -> Locator:
        return self.until(conditions.present(query), spec, f"{query} to be present")

    def invisible(self, query: ElementQuery, spec: Optional[WaitSpec] = None) -> bool:
        return self.until(conditions.invisible(query), spec, f"{query} to be invisible")

    def all_visible(self, query: ElementQuery, spec: Optional[WaitSpec] = None) -> List[Locator]:
        return self.until(conditions.all_visible(query), spec, f"all of {query} to be visible")

    def text_contains(
        self,
        query: ElementQuery,
        text: str,
        spec: Optional[WaitSpec] = None,
    ) -> bool:
        return self.until(
            conditions.text_contains(query, text),
            spec,
            f"text of {query} to contain {text!r}",
        )

    def attribute_equals(
        self,
        query: ElementQuery,
        attribute: str,
        expected: str,
        spec: Optional[WaitSpec] = None,
    ) -> bool:
        return self.until(
            conditions.attribute_equals(query, attribute, expected),
            spec,
            f"{attribute} of {query} to equal {expected!r}",
        )

    # =========================================================================
    # Page States
    # =========================================================================

    def url_contains(self, fragment: str, spec: Optional[WaitSpec] = None) -> bool:
        return self.until(conditions.url_contains(fragment), spec, f"url to contain {fragment!r}")

    def document_ready(self, spec: Optional[WaitSpec] = None) -> bool:
        return self.until(conditions.document_ready(), spec, "document to be ready")

    def network_idle(
        self,
        signal: str = conditions.NETWORK_IDLE_SIGNAL,
        spec: Optional[WaitSpec] = None,
    ) -> bool:
        """
        Wait until the page's pending-request counter drops to zero.

        Pages without the counter are treated as idle immediately.
        """
        return self.until(conditions.network_idle(signal), spec, "network to be idle")

    def frame_and_switch(self, query: ElementQuery, spec: Optional[WaitSpec] = None) -> Frame:
        """
        Wait for a frame and move the session's focus into it.

        Not idempotent: calling it twice switches twice, the second time
        relative to the frame entered by the first call.
        """
        return self.until(
            conditions.frame_available_and_switch(query),
            spec,
            f"frame {query} to be available",
        )

    def alert_present(self, spec: Optional[WaitSpec] = None) -> AlertHandle:
        dialog = self.until(conditions.alert_present(), spec, "dialog to be open")
        return AlertHandle(self.session, dialog)


__all__ = [
    "AlertHandle",
    "Waits",
]
