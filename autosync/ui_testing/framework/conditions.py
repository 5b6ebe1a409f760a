"""
================================================================================
Condition Evaluators
================================================================================

Building blocks of the synchronization layer.

A condition evaluator is a plain callable ``evaluate(session)`` returning one of
three results:

    - ``Pending(state)``       - not there yet, poll again
    - ``Resolved(value)``      - done, hand ``value`` back to the caller
    - ``Failed(kind, ...)``    - something went wrong; the active WaitSpec
                                 decides whether ``kind`` is retried

Evaluators never sleep and never cache: every call reads fresh state from the
session, so the poller can re-run them as often as it likes.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, List, Optional, TypeVar, Union

from playwright.sync_api import TimeoutError as PlaywrightTimeoutError


T = TypeVar("T")

# Upper bound for Playwright calls that auto-wait on an element which was
# present a moment ago (is_enabled, inner_text, get_attribute ...)
PROBE_TIMEOUT_MS = 100

# Pending-requests counter exposed by pages using jQuery. Evaluates to null
# when the page has no such signal.
NETWORK_IDLE_SIGNAL = (
    "typeof window.jQuery !== 'undefined' && window.jQuery.active !== undefined"
    " ? window.jQuery.active : null"
)


# =============================================================================
# Condition Results
# =============================================================================

class FailureKind(str, Enum):
    """Classification of a failed condition check."""

    NO_SUCH_ELEMENT = "no_such_element"
    STALE_ELEMENT = "stale_element"
    INVALID_SELECTOR = "invalid_selector"
    SCRIPT_ERROR = "script_error"
    SESSION_CLOSED = "session_closed"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Pending:
    """Condition not met yet; ``state`` describes what was observed."""

    state: str = "condition not met"


@dataclass(frozen=True)
class Resolved(Generic[T]):
    """Condition met; ``value`` is returned by the wait."""

    value: T


@dataclass(frozen=True)
class Failed:
    """Condition check failed with a classified error."""

    kind: FailureKind
    detail: str = ""
    cause: Optional[BaseException] = field(default=None, compare=False)

    def describe(self) -> str:
        return f"{self.kind.value}: {self.detail}" if self.detail else self.kind.value


ConditionResult = Union[Pending, Resolved[T], Failed]
Evaluator = Callable[[Any], "ConditionResult[T]"]


_INVALID_SELECTOR_MARKERS = (
    "while parsing selector",
    "is not a valid selector",
    "unknown engine",
    "is not a valid xpath expression",
    "failed to execute 'queryselector",
)
_STALE_MARKERS = (
    "not attached to the dom",
    "element is detached",
    "node is detached",
    "frame was detached",
    "execution context was destroyed",
)
_CLOSED_MARKERS = (
    "target closed",
    "has been closed",
    "connection closed",
)
_SCRIPT_MARKERS = (
    "referenceerror",
    "typeerror",
    "syntaxerror",
    "evaluation failed",
)


def classify_error(exc: BaseException) -> FailureKind:
    """
    Map an exception raised while checking a condition to a FailureKind.

    Playwright reports most problems as a generic ``Error`` with a
    descriptive message, so classification is message based. A Playwright
    ``TimeoutError`` from a short probe means the element vanished between
    the count and the read, i.e. it went stale.
    """
    if isinstance(exc, PlaywrightTimeoutError):
        return FailureKind.STALE_ELEMENT

    message = str(exc).lower()
    if any(marker in message for marker in _INVALID_SELECTOR_MARKERS):
        return FailureKind.INVALID_SELECTOR
    if any(marker in message for marker in _STALE_MARKERS):
        return FailureKind.STALE_ELEMENT
    if any(marker in message for marker in _CLOSED_MARKERS):
        return FailureKind.SESSION_CLOSED
    if any(marker in message for marker in _SCRIPT_MARKERS):
        return FailureKind.SCRIPT_ERROR
    return FailureKind.UNKNOWN


# =============================================================================
# Element Queries
# =============================================================================

class By:
    """Supported ElementQuery strategies."""

    CSS = "css"
    XPATH = "xpath"
    ID = "id"
    NAME = "name"
    TEXT = "text"
    TEST_ID = "test_id"


_STRATEGIES = (By.CSS, By.XPATH, By.ID, By.NAME, By.TEXT, By.TEST_ID)


@dataclass(frozen=True)
class ElementQuery:
    """
    Immutable descriptor of zero or more elements.

    Page objects keep these as class-level constants; the same query can be
    resolved against any number of sessions.

    Attributes:
        strategy: One of the ``By`` constants
        selector: Selector string in that strategy's syntax
        description: Optional human-readable name used in logs and reports
    """

    strategy: str
    selector: str
    description: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if self.strategy not in _STRATEGIES:
            raise ValueError(
                f"Unknown locator strategy: {self.strategy}. "
                f"Expected one of: {', '.join(_STRATEGIES)}"
            )
        if not self.selector:
            raise ValueError("ElementQuery selector must not be empty")

    @classmethod
    def css(cls, selector: str, description: str = "") -> "ElementQuery":
        return cls(By.CSS, selector, description)

    @classmethod
    def xpath(cls, selector: str, description: str = "") -> "ElementQuery":
        return cls(By.XPATH, selector, description)

    @classmethod
    def id(cls, element_id: str, description: str = "") -> "ElementQuery":
        return cls(By.ID, element_id, description)

    @classmethod
    def name(cls, name: str, description: str = "") -> "ElementQuery":
        return cls(By.NAME, name, description)

    @classmethod
    def text(cls, text: str, description: str = "") -> "ElementQuery":
        return cls(By.TEXT, text, description)

    @classmethod
    def test_id(cls, test_id: str, description: str = "") -> "ElementQuery":
        return cls(By.TEST_ID, test_id, description)

    @property
    def playwright_selector(self) -> str:
        """Selector string understood by ``Frame.locator``."""
        if self.strategy == By.NAME:
            escaped = self.selector.replace('"', '\\"')
            return f'css=[name="{escaped}"]'
        if self.strategy == By.TEST_ID:
            return f"data-testid={self.selector}"
        return f"{self.strategy}={self.selector}"

    def __str__(self) -> str:
        return self.description or f"{self.strategy}={self.selector}"


# =============================================================================
# Element Conditions
# =============================================================================

def _missing(query: ElementQuery) -> Failed:
    return Failed(FailureKind.NO_SUCH_ELEMENT, f"no element matches {query}")


def present(query: ElementQuery) -> Evaluator:
    """Element attached to the DOM; resolves to its locator."""
    def evaluate(session):
        locator = session.locate(query)
        if locator.count() == 0:
            return _missing(query)
        return Resolved(locator.first)
    return evaluate


def visible(query: ElementQuery) -> Evaluator:
    """Element attached and rendered; resolves to its locator."""
    def evaluate(session):
        locator = session.locate(query)
        if locator.count() == 0:
            return _missing(query)
        element = locator.first
        if not element.is_visible():
            return Pending(f"{query} is attached but hidden")
        return Resolved(element)
    return evaluate


def clickable(query: ElementQuery) -> Evaluator:
    """Element visible and enabled; resolves to its locator."""
    def evaluate(session):
        locator = session.locate(query)
        if locator.count() == 0:
            return _missing(query)
        element = locator.first
        if not element.is_visible():
            return Pending(f"{query} is attached but hidden")
        if not element.is_enabled(timeout=PROBE_TIMEOUT_MS):
            return Pending(f"{query} is visible but disabled")
        return Resolved(element)
    return evaluate


def invisible(query: ElementQuery) -> Evaluator:
    """Element hidden or gone from the DOM; resolves to True."""
    def evaluate(session):
        locator = session.locate(query)
        if locator.count() == 0:
            return Resolved(True)
        if locator.first.is_visible():
            return Pending(f"{query} is still visible")
        return Resolved(True)
    return evaluate


def all_visible(query: ElementQuery) -> Evaluator:
    """At least one match and every match visible; resolves to the list."""
    def evaluate(session):
        locator = session.locate(query)
        count = locator.count()
        if count == 0:
            return _missing(query)
        elements: List[Any] = [locator.nth(i) for i in range(count)]
        hidden = sum(1 for element in elements if not element.is_visible())
        if hidden:
            return Pending(f"{hidden} of {count} elements matching {query} are hidden")
        return Resolved(elements)
    return evaluate


def text_contains(query: ElementQuery, text: str) -> Evaluator:
    """Rendered text of the first match contains ``text``."""
    def evaluate(session):
        locator = session.locate(query)
        if locator.count() == 0:
            return _missing(query)
        actual = locator.first.inner_text(timeout=PROBE_TIMEOUT_MS)
        if text in actual:
            return Resolved(True)
        return Pending(f"text of {query} is {actual!r}")
    return evaluate


def attribute_equals(query: ElementQuery, attribute: str, expected: str) -> Evaluator:
    """Attribute ``attribute`` of the first match equals ``expected``."""
    def evaluate(session):
        locator = session.locate(query)
        if locator.count() == 0:
            return _missing(query)
        actual = locator.first.get_attribute(attribute, timeout=PROBE_TIMEOUT_MS)
        if actual == expected:
            return Resolved(True)
        return Pending(f"{attribute} of {query} is {actual!r}")
    return evaluate


# =============================================================================
# Page Conditions
# =============================================================================

def url_contains(fragment: str) -> Evaluator:
    def evaluate(session):
        url = session.page.url
        if fragment in url:
            return Resolved(True)
        return Pending(f"url is {url!r}")
    return evaluate


def document_ready() -> Evaluator:
    def evaluate(session):
        state = session.scope.evaluate("document.readyState")
        if state == "complete":
            return Resolved(True)
        return Pending(f"document.readyState is {state!r}")
    return evaluate


def network_idle(signal: str = NETWORK_IDLE_SIGNAL) -> Evaluator:
    """
    Host-side pending-requests counter reached zero.

    ``signal`` is a JavaScript expression evaluated in the current frame.
    A page that does not provide the counter (expression yields
    undefined/null) counts as idle right away.
    """
    def evaluate(session):
        pending = session.scope.evaluate(signal)
        if pending is None:
            return Resolved(True)
        try:
            in_flight = int(pending)
        except (TypeError, ValueError):
            return Failed(
                FailureKind.SCRIPT_ERROR,
                f"network signal returned non-numeric value {pending!r}",
            )
        if in_flight <= 0:
            return Resolved(True)
        return Pending(f"{in_flight} request(s) in flight")
    return evaluate


def frame_available_and_switch(query: ElementQuery) -> Evaluator:
    """
    Frame element loaded; switches the session's focus into it.

    NOT idempotent: every resolution changes session focus, and queries are
    resolved relative to the current focus, so evaluating it twice descends
    twice. Resolves to the Playwright Frame.
    """
    def evaluate(session):
        locator = session.locate(query)
        if locator.count() == 0:
            return _missing(query)
        handle = locator.first.element_handle(timeout=PROBE_TIMEOUT_MS)
        if handle is None:
            return Pending(f"{query} has no loaded frame content")
        try:
            frame = handle.content_frame()
        finally:
            handle.dispose()
        if frame is None:
            return Pending(f"{query} has no loaded frame content")
        session.switch_to_frame(frame)
        return Resolved(frame)
    return evaluate


def alert_present() -> Evaluator:
    """A JavaScript dialog is open; resolves to the Playwright Dialog."""
    def evaluate(session):
        dialog = session.poll_dialog()
        if dialog is None:
            return Pending("no dialog is open")
        return Resolved(dialog)
    return evaluate


__all__ = [
    "FailureKind",
    "Pending",
    "Resolved",
    "Failed",
    "ConditionResult",
    "Evaluator",
    "classify_error",
    "By",
    "ElementQuery",
    "PROBE_TIMEOUT_MS",
    "NETWORK_IDLE_SIGNAL",
    "present",
    "visible",
    "clickable",
    "invisible",
    "all_visible",
    "text_contains",
    "attribute_equals",
    "url_contains",
    "document_ready",
    "network_idle",
    "frame_available_and_switch",
    "alert_present",
]
