"""
================================================================================
Unit Test Fixtures
================================================================================

In-memory stand-ins for a browser session. They mimic the small part of the
Playwright sync API the framework touches (Locator, Frame, Page, Dialog), so
the synchronization core can be exercised without launching a browser.

Tests shape the fake DOM by selector:

    >>> fake_session.dom["css=#submit"] = [FakeElement(enabled=False)]

and mutate it between attempts to simulate rendering.

================================================================================
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import pytest

from autosync.ui_testing.framework.session_registry import SessionConfig


@dataclass
class FakeElement:
    """A DOM element as seen through a locator."""
    visible: bool = True
    enabled: bool = True
    text: str = ""
    value: str = ""
    attributes: Dict[str, str] = field(default_factory=dict)
    options: List[List[str]] = field(default_factory=list)
    frame: Any = None
    calls: List[tuple] = field(default_factory=list)


class FakeLocator:
    """Lazy view over the elements matching one selector."""

    def __init__(self, resolve: Callable[[], List[FakeElement]], index: Optional[int] = None):
        self._resolve = resolve
        self._index = index

    def _element(self) -> FakeElement:
        elements = self._resolve()
        index = self._index or 0
        if index >= len(elements):
            raise RuntimeError("Element is not attached to the DOM")
        return elements[index]

    def count(self) -> int:
        return len(self._resolve())

    @property
    def first(self) -> "FakeLocator":
        return FakeLocator(self._resolve, 0)

    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(self._resolve, index)

    # Reads
    def is_visible(self) -> bool:
        elements = self._resolve()
        index = self._index or 0
        return index < len(elements) and elements[index].visible

    def is_enabled(self, timeout: Optional[float] = None) -> bool:
        return self._element().enabled

    def inner_text(self, timeout: Optional[float] = None) -> str:
        return self._element().text

    def get_attribute(self, name: str, timeout: Optional[float] = None) -> Optional[str]:
        return self._element().attributes.get(name)

    def element_handle(self, timeout: Optional[float] = None) -> "FakeHandle":
        element = self._element()
        handle = FakeHandle(element)
        element.calls.append(("element_handle", handle))
        return handle

    # Interactions
    def click(self, **kwargs: Any) -> None:
        element = self._element()
        if not element.visible or not element.enabled:
            raise RuntimeError("Timeout 10000ms exceeded waiting for element to be actionable")
        element.calls.append(("click", kwargs))

    def dblclick(self) -> None:
        self._element().calls.append(("dblclick", {}))

    def hover(self) -> None:
        self._element().calls.append(("hover", {}))

    def clear(self) -> None:
        element = self._element()
        element.value = ""
        element.calls.append(("clear", {}))

    def press_sequentially(self, text: str) -> None:
        element = self._element()
        element.value += text
        element.calls.append(("press_sequentially", {"text": text}))

    def select_option(self, value: str) -> None:
        element = self._element()
        element.value = value
        element.calls.append(("select_option", {"value": value}))

    def evaluate(self, script: str, arg: Any = None) -> Any:
        element = self._element()
        element.calls.append(("evaluate", {"script": script}))
        if "options" in script:
            return element.options
        return None


class FakeHandle:
    def __init__(self, element: FakeElement):
        self._element = element
        self.disposed = False

    def content_frame(self) -> Any:
        return self._element.frame

    def dispose(self) -> None:
        self.disposed = True


class FakeFrame:
    """Query scope: the page's main frame or an iframe."""

    def __init__(self, name: str = "main"):
        self.name = name
        self.url = f"about:{name}"
        self.scripts: Dict[str, Any] = {"document.readyState": "complete"}
        self.evaluated: List[tuple] = []

    def evaluate(self, script: str, arg: Any = None) -> Any:
        self.evaluated.append((script, arg))
        result = self.scripts.get(script)
        return result() if callable(result) else result


class FakePage:
    def __init__(self) -> None:
        self.url = "about:blank"
        self.main_frame = FakeFrame()
        self.visited: List[str] = []
        self.reloads = 0

    def goto(self, url: str) -> None:
        self.url = url
        self.visited.append(url)

    def title(self) -> str:
        return "Fake Page"

    def reload(self) -> None:
        self.reloads += 1


class FakeDialog:
    def __init__(self, message: str, dialog_type: str = "alert"):
        self.message = message
        self.type = dialog_type
        self.accepted: Optional[tuple] = None
        self.dismissed = False

    def accept(self, prompt_text: Optional[str] = None) -> None:
        self.accepted = (prompt_text,)

    def dismiss(self) -> None:
        self.dismissed = True


class FakeSession:
    """
    Session double exposing the same surface as ``Session``.

    ``dom`` maps Playwright selectors to element lists and is looked up on
    every locator call, so changes show up on the next poll.
    """

    def __init__(self, config: Optional[SessionConfig] = None):
        self.config = config or SessionConfig(base_url="http://app.test")
        self.page = FakePage()
        self.dom: Dict[str, List[FakeElement]] = {}
        self.frame_doms: Dict[int, Dict[str, List[FakeElement]]] = {}
        self.cancel_event = threading.Event()
        self.dialogs: List[FakeDialog] = []
        self.frame: Optional[FakeFrame] = None
        self.locate_calls = 0
        self.closed = False
        self.close_error: Optional[Exception] = None

    @property
    def scope(self) -> FakeFrame:
        return self.frame or self.page.main_frame

    def _current_dom(self) -> Dict[str, List[FakeElement]]:
        if self.frame is None:
            return self.dom
        return self.frame_doms.setdefault(id(self.frame), {})

    def locate(self, query) -> FakeLocator:
        self.locate_calls += 1
        selector = query.playwright_selector
        return FakeLocator(lambda: self._current_dom().get(selector, []))

    def switch_to_frame(self, frame: FakeFrame) -> None:
        self.frame = frame

    def switch_to_default_content(self) -> None:
        self.frame = None

    def poll_dialog(self) -> Optional[FakeDialog]:
        return self.dialogs[0] if self.dialogs else None

    def forget_dialog(self, dialog: FakeDialog) -> None:
        if dialog in self.dialogs:
            self.dialogs.remove(dialog)

    def navigate(self, url: str) -> None:
        self.page.goto(url)
        self.switch_to_default_content()

    def cancel(self) -> None:
        self.cancel_event.set()

    def close(self) -> None:
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def session_factory():
    """Factory that records every FakeSession it builds."""
    built: List[FakeSession] = []

    def factory(config: SessionConfig) -> FakeSession:
        session = FakeSession(config)
        built.append(session)
        return session

    factory.built = built
    return factory
