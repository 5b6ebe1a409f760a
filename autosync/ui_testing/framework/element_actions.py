# ================================================================================
# Element Actions Module
# ================================================================================
#
# UI interactions that wait before they touch the page.
#
# Key Features:
#   - Every action is preceded by the wait it needs (clickable, visible, present)
#   - Non-waiting probes (is_displayed / is_enabled) for branching decisions
#   - Script-based escape hatches (force_click, execute_script)
#   - Frame and dialog helpers
#   - Allure step per action, loguru trace per action
#
# ================================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

import allure
from loguru import logger
from playwright.sync_api import Locator
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from .conditions import PROBE_TIMEOUT_MS, ElementQuery
from .exceptions import OptionNotFoundError
from .poller import WaitSpec
from .waits import Waits


_OPTIONS_SCRIPT = "el => Array.from(el.options).map(o => [o.value, o.text.trim()])"
_SCROLL_SCRIPT = "el => el.scrollIntoView({behavior: 'smooth', block: 'center'})"


@dataclass(frozen=True)
class InteractionTarget:
    """
    An element resolved for exactly one interaction.

    Attributes:
        query: What was asked for
        condition: Condition it satisfied (clickable, visible, present)
        locator: Resolved Playwright locator
    """
    query: ElementQuery
    condition: str
    locator: Locator


class ElementActions:
    """
    Interaction layer over a single session.

    Actions wait, then act. Probes answer immediately and are meant for
    branching on optional UI.

    Example:
        actions = ElementActions(session)
        actions.type_text(ElementQuery.id("username"), "demo_user")
        actions.click(ElementQuery.test_id("btn-login"))
        if actions.is_displayed(ElementQuery.css(".cookie-banner")):
            actions.click(ElementQuery.css(".cookie-banner button"))
    """

    def __init__(self, session: Any, spec: Optional[WaitSpec] = None):
        """
        Initialize ElementActions.

        Args:
            session: Session to act on
            spec: Default WaitSpec for the waits preceding each action
        """
        self.session = session
        self._waits = Waits(session, spec)

    @property
    def waits(self) -> Waits:
        return self._waits

    def _target(self, query: ElementQuery, condition: str, spec: Optional[WaitSpec]) -> InteractionTarget:
        wait_for = getattr(self._waits, condition)
        return InteractionTarget(query, condition, wait_for(query, spec))

    # =========================================================================
    # Pointer Actions
    # =========================================================================

    @allure.step("Click on element: {query}")
    def click(self, query: ElementQuery, spec: Optional[WaitSpec] = None) -> None:
        target = self._target(query, "clickable", spec)
        target.locator.click()
        logger.info(f"Clicked on element: {query}")

    @allure.step("JavaScript click on element: {query}")
    def force_click(self, query: ElementQuery, spec: Optional[WaitSpec] = None) -> None:
        """
        Click through script, skipping visibility and occlusion checks.

        Only waits for presence. Use for elements covered by overlays.
        """
        target = self._target(query, "present", spec)
        target.locator.evaluate("el => el.click()")
        logger.info(f"JS clicked on element: {query}")

    @allure.step("Double-click on element: {query}")
    def double_click(self, query: ElementQuery, spec: Optional[WaitSpec] = None) -> None:
        target = self._target(query, "clickable", spec)
        target.locator.dblclick()
        logger.info(f"Double-clicked on element: {query}")

    @allure.step("Right-click on element: {query}")
    def right_click(self, query: ElementQuery, spec: Optional[WaitSpec] = None) -> None:
        target = self._target(query, "clickable", spec)
        target.locator.click(button="right")
        logger.info(f"Right-clicked on element: {query}")

    @allure.step("Hover over element: {query}")
    def hover(self, query: ElementQuery, spec: Optional[WaitSpec] = None) -> None:
        target = self._target(query, "clickable", spec)
        target.locator.hover()
        logger.info(f"Hovered over element: {query}")

    @allure.step("Scroll to element: {query}")
    def scroll_into_view(self, query: ElementQuery, spec: Optional[WaitSpec] = None) -> None:
        """
        Smooth-scroll the element to the viewport centre.

        Returns as soon as the scroll starts; wait for the next condition
        (e.g. clickable) separately.
        """
        target = self._target(query, "present", spec)
        target.locator.evaluate(_SCROLL_SCRIPT)
        logger.info(f"Scrolled to element: {query}")

    # =========================================================================
    # Keyboard and Form Actions
    # =========================================================================

    @allure.step("Type '{text}' into element: {query}")
    def type_text(self, query: ElementQuery, text: str, spec: Optional[WaitSpec] = None) -> None:
        """Clear the field, then type ``text`` key by key."""
        target = self._target(query, "visible", spec)
        target.locator.clear()
        target.locator.press_sequentially(text)
        logger.info(f"Typed '{text[:50]}' into element: {query}")

    @allure.step("Clear element: {query}")
    def clear(self, query: ElementQuery, spec: Optional[WaitSpec] = None) -> None:
        target = self._target(query, "visible", spec)
        target.locator.clear()
        logger.info(f"Cleared element: {query}")

    @allure.step("Select by text '{text}' from: {query}")
    def select_by_text(self, query: ElementQuery, text: str, spec: Optional[WaitSpec] = None) -> None:
        self._select(query, "text", text, spec)

    @allure.step("Select by value '{value}' from: {query}")
    def select_by_value(self, query: ElementQuery, value: str, spec: Optional[WaitSpec] = None) -> None:
        self._select(query, "value", value, spec)

    def _select(self, query: ElementQuery, by: str, wanted: str, spec: Optional[WaitSpec]) -> None:
        target = self._target(query, "visible", spec)
        options: List[List[str]] = target.locator.evaluate(_OPTIONS_SCRIPT)

        index = 1 if by == "text" else 0
        match = next((option for option in options if option[index] == wanted), None)
        if match is None:
            available = [option[index] for option in options]
            logger.error(f"Option {by}={wanted!r} not found in {query}")
            raise OptionNotFoundError(str(query), by, wanted, available)

        target.locator.select_option(value=match[0])
        logger.info(f"Selected '{wanted}' by {by} from: {query}")

    # =========================================================================
    # Reads
    # =========================================================================

    def get_text(self, query: ElementQuery, spec: Optional[WaitSpec] = None) -> str:
        target = self._target(query, "visible", spec)
        text = target.locator.inner_text()
        logger.debug(f"Got text from {query}: '{text}'")
        return text

    def get_attribute(
        self,
        query: ElementQuery,
        attribute: str,
        spec: Optional[WaitSpec] = None,
    ) -> Optional[str]:
        target = self._target(query, "present", spec)
        value = target.locator.get_attribute(attribute)
        logger.debug(f"Got attribute {attribute} from {query}: '{value}'")
        return value

    # =========================================================================
    # Probes (never wait)
    # =========================================================================

    def is_displayed(self, query: ElementQuery) -> bool:
        locator = self.session.locate(query)
        if locator.count() == 0:
            return False
        return locator.first.is_visible()

    def is_enabled(self, query: ElementQuery) -> bool:
        locator = self.session.locate(query)
        if locator.count() == 0:
            return False
        try:
            return locator.first.is_enabled(timeout=PROBE_TIMEOUT_MS)
        except PlaywrightTimeoutError:
            # Detached between count() and the read
            return False

    # =========================================================================
    # Frames, Dialogs and Scripts
    # =========================================================================

    @allure.step("Switch to frame: {query}")
    def switch_to_frame(self, query: ElementQuery, spec: Optional[WaitSpec] = None) -> None:
        self._waits.frame_and_switch(query, spec)

    def switch_to_default_content(self) -> None:
        self.session.switch_to_default_content()

    @allure.step("Accept alert")
    def accept_alert(self, prompt_text: Optional[str] = None, spec: Optional[WaitSpec] = None) -> str:
        alert = self._waits.alert_present(spec)
        text = alert.text
        alert.accept(prompt_text)
        return text

    @allure.step("Dismiss alert")
    def dismiss_alert(self, spec: Optional[WaitSpec] = None) -> str:
        alert = self._waits.alert_present(spec)
        text = alert.text
        alert.dismiss()
        return text

    def execute_script(self, script: str, *args: Any) -> Any:
        """
        Evaluate ``script`` in the current frame. No implicit wait.

        Playwright passes a single argument to the script: with one
        positional arg it is passed as-is, with several they arrive as an
        array.
        """
        scope = self.session.scope
        if not args:
            return scope.evaluate(script)
        if len(args) == 1:
            return scope.evaluate(script, args[0])
        return scope.evaluate(script, list(args))


__all__ = [
    "ElementActions",
    "InteractionTarget",
]
