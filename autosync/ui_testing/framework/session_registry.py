"""
================================================================================
Session Registry
================================================================================

Browser session lifecycle for parallel UI automation.

Features:
    - One Playwright session per worker thread, never shared
    - Local launch (chromium / firefox / webkit, chrome / edge / safari aliases)
    - Remote connection to a Playwright or CDP endpoint
    - Frame focus and dialog capture per session
    - Cancellation signal that interrupts in-progress waits
    - Teardown that always frees resources and only logs close failures

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger
from playwright.sync_api import (
    Browser,
    BrowserContext,
    Dialog,
    Frame,
    Locator,
    Page,
    Playwright,
    sync_playwright,
)

from .conditions import ElementQuery
from .exceptions import DuplicateSessionError, SessionCloseError


# Backend name -> (Playwright browser type, release channel)
BACKENDS: Dict[str, Tuple[str, Optional[str]]] = {
    "chromium": ("chromium", None),
    "firefox": ("firefox", None),
    "webkit": ("webkit", None),
    "chrome": ("chromium", "chrome"),
    "edge": ("chromium", "msedge"),
    "safari": ("webkit", None),
}

# Default Chromium arguments
CHROMIUM_ARGS: List[str] = [
    "--disable-notifications",
    "--disable-popup-blocking",
    "--disable-infobars",
    "--disable-extensions",
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--ignore-certificate-errors",
]


@dataclass(frozen=True)
class SessionConfig:
    """
    How to build a session. Passed in verbatim by the configuration layer.

    Attributes:
        backend: Browser backend name (see BACKENDS)
        headless: Run browser without a visible window
        remote_endpoint: Connect to this endpoint instead of launching locally.
            ``ws://`` endpoints use Playwright's protocol, ``http(s)://``
            endpoints use CDP (chromium only).
        implicit_wait_ms: Default timeout of Playwright actions
        page_load_timeout_ms: Default navigation timeout
        base_url: Application URL opened by the test lifecycle
        viewport: Context viewport size
        launch_args: Extra browser arguments (appended to the defaults)
    """
    backend: str = "chromium"
    headless: bool = True
    remote_endpoint: Optional[str] = None
    implicit_wait_ms: int = 10000
    page_load_timeout_ms: int = 30000
    base_url: Optional[str] = None
    viewport: Dict[str, int] = field(default_factory=lambda: {"width": 1920, "height": 1080})
    launch_args: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.backend.lower() not in BACKENDS:
            raise ValueError(
                f"Unsupported backend: {self.backend}. "
                f"Expected one of: {', '.join(BACKENDS)}"
            )


class Session:
    """
    One isolated automation context: a Playwright driver, browser, context and
    page owned by the thread that created it.

    Queries resolve relative to the current *focus*, which is the page's main
    frame until ``switch_to_frame`` moves it.

    Dialogs (alert/confirm/prompt) are captured instead of being
    auto-dismissed and stay open until accepted or dismissed. Playwright keeps
    the page blocked while a captured dialog is open, so the action that
    triggers it must not wait on the page (e.g. open it from a timer, or use
    ``force_click``).

    Usage:
        session = Session.launch(SessionConfig(backend="firefox"))
        try:
            session.navigate("https://example.com")
        finally:
            session.close()
    """

    def __init__(
        self,
        config: SessionConfig,
        playwright: Optional[Playwright],
        browser: Optional[Browser],
        context: BrowserContext,
        page: Page,
    ):
        self.config = config
        self.page = page
        self.thread_id = threading.get_ident()
        self.cancel_event = threading.Event()

        self._playwright = playwright
        self._browser = browser
        self._context = context
        self._frame: Optional[Frame] = None
        self._dialogs: List[Dialog] = []
        self._closed = False

        page.on("dialog", self._dialogs.append)

    @classmethod
    def launch(cls, config: SessionConfig) -> "Session":
        """
        Start Playwright in the calling thread and open a new session.

        Args:
            config: Session configuration

        Returns:
            Ready-to-use Session
        """
        browser_name, channel = BACKENDS[config.backend.lower()]
        playwright = sync_playwright().start()
        browser: Optional[Browser] = None
        try:
            launcher = getattr(playwright, browser_name)

            if config.remote_endpoint:
                if config.remote_endpoint.startswith(("http://", "https://")):
                    browser = launcher.connect_over_cdp(config.remote_endpoint)
                else:
                    browser = launcher.connect(config.remote_endpoint)
                logger.debug(f"Connected to remote {browser_name}: {config.remote_endpoint}")
            else:
                launch_options: Dict[str, Any] = {"headless": config.headless}
                if channel:
                    launch_options["channel"] = channel
                args = list(config.launch_args)
                if browser_name == "chromium":
                    args = CHROMIUM_ARGS + args
                if args:
                    launch_options["args"] = args
                browser = launcher.launch(**launch_options)
                logger.debug(
                    f"Browser started: {config.backend} (headless={config.headless})"
                )

            context = browser.new_context(
                viewport=config.viewport,
                ignore_https_errors=True,
            )
            context.set_default_timeout(config.implicit_wait_ms)
            context.set_default_navigation_timeout(config.page_load_timeout_ms)
            page = context.new_page()
        except Exception:
            # Stop the driver process when the launch itself fails
            try:
                if browser is not None:
                    browser.close()
            except Exception as close_error:
                logger.debug(f"Closing browser after failed launch failed: {close_error}")
            finally:
                playwright.stop()
            raise

        return cls(config, playwright, browser, context, page)

    # =========================================================================
    # Focus
    # =========================================================================

    @property
    def scope(self) -> Frame:
        """Frame that queries and scripts currently target."""
        return self._frame or self.page.main_frame

    def locate(self, query: ElementQuery) -> Locator:
        """Build a lazy locator for ``query`` within the current focus."""
        return self.scope.locator(query.playwright_selector)

    def switch_to_frame(self, frame: Frame) -> None:
        self._frame = frame
        logger.debug(f"Switched focus to frame: {frame.name or frame.url}")

    def switch_to_default_content(self) -> None:
        self._frame = None
        logger.debug("Switched focus to main frame")

    # =========================================================================
    # Dialogs
    # =========================================================================

    def poll_dialog(self) -> Optional[Dialog]:
        """
        Return the oldest open dialog, or None.

        The sync API only delivers events while it is talking to the driver,
        so this gives the driver a moment to flush pending dialog events.
        """
        self.page.wait_for_timeout(1)
        return self._dialogs[0] if self._dialogs else None

    def forget_dialog(self, dialog: Dialog) -> None:
        if dialog in self._dialogs:
            self._dialogs.remove(dialog)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def navigate(self, url: str) -> None:
        self.page.goto(url)
        self.switch_to_default_content()
        logger.debug(f"Navigated to: {url}")

    def cancel(self) -> None:
        """
        Interrupt waits running on this session (callable from any thread).

        The signal stays set, so every later wait fails fast too, until
        ``reset_cancel`` is called.
        """
        self.cancel_event.set()

    def reset_cancel(self) -> None:
        """Clear a cancellation so waits run again. Closed sessions stay cancelled."""
        if self._closed:
            return
        self.cancel_event.clear()
        logger.debug("Cancellation cleared")

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """
        Close context, browser and driver.

        Every step is attempted even when an earlier one fails, so a
        crashed browser still releases its driver process.

        Raises:
            SessionCloseError: One or more steps failed
        """
        if self._closed:
            return
        self._closed = True
        self.cancel_event.set()

        steps: List[Tuple[str, Callable[[], None]]] = [("context", self._context.close)]
        if self._browser is not None:
            steps.append(("browser", self._browser.close))
        if self._playwright is not None:
            steps.append(("playwright", self._playwright.stop))

        errors: List[BaseException] = []
        for name, step in steps:
            try:
                step()
            except Exception as e:
                logger.debug(f"Closing {name} failed: {e}")
                errors.append(e)

        self._dialogs.clear()
        self._frame = None
        if errors:
            raise SessionCloseError(errors)
        logger.debug("Session closed")


SessionFactory = Callable[[SessionConfig], Any]


class SessionRegistry:
    """
    Holds at most one live session per thread.

    Slots are keyed by thread id. A thread only ever reads or writes its own
    slot; the lock serialises map mutation, not browser startup.

    Usage:
        registry = SessionRegistry()
        session = registry.acquire(SessionConfig())
        try:
            ...
        finally:
            registry.release()
    """

    def __init__(self, factory: Optional[SessionFactory] = None):
        """
        Initialize registry.

        Args:
            factory: Builds a session from a SessionConfig. Defaults to
                ``Session.launch``.
        """
        self._factory = factory or Session.launch
        self._sessions: Dict[int, Any] = {}
        self._owners: Dict[int, threading.Thread] = {}
        self._lock = threading.Lock()

    def _own_session(self) -> Optional[Any]:
        """
        Calling thread's session, or None.

        Thread ids are reused once a thread exits. A slot left behind by an
        exited thread that never released is dropped here rather than handed
        to the new thread; its browser cannot be closed from another thread,
        so it is only logged.
        """
        key = threading.get_ident()
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                return None
            owner = self._owners.get(key)
            if owner is threading.current_thread():
                return session
            del self._sessions[key]
            self._owners.pop(key, None)

        owner_name = owner.name if owner is not None else "unknown"
        logger.warning(
            f"Dropped session left behind by exited thread '{owner_name}' "
            f"(thread id {key} was reused)"
        )
        return None

    def acquire(self, config: SessionConfig) -> Any:
        """
        Create the calling thread's session.

        A slot left by an exited thread whose id the caller now reuses does
        not count as held; it is dropped with a warning.

        Raises:
            DuplicateSessionError: The thread already holds a session
        """
        thread = threading.current_thread()
        if self._own_session() is not None:
            raise DuplicateSessionError(thread.name)

        session = self._factory(config)
        key = threading.get_ident()
        with self._lock:
            self._sessions[key] = session
            self._owners[key] = thread

        logger.info(f"Session acquired for thread '{thread.name}' ({config.backend})")
        return session

    def current(self) -> Optional[Any]:
        """Calling thread's session, or None. Never creates one."""
        return self._own_session()

    def release(self) -> None:
        """
        Close and forget the calling thread's session.

        No-op when the thread holds none. Close failures are logged and
        never raised, so teardown cannot mask the test's own outcome.
        """
        session = self._own_session()
        if session is None:
            return
        key = threading.get_ident()
        with self._lock:
            self._sessions.pop(key, None)
            self._owners.pop(key, None)

        thread_name = threading.current_thread().name
        try:
            session.close()
        except Exception as e:
            logger.warning(f"Failed to close session for thread '{thread_name}': {e}")
        else:
            logger.info(f"Session released for thread '{thread_name}'")

    def cancel(self, thread_id: int) -> bool:
        """
        Interrupt waits on another thread's session.

        Returns:
            True if that thread held a session
        """
        session = self._sessions.get(thread_id)
        if session is None:
            return False
        session.cancel()
        logger.warning(f"Cancellation requested for session of thread {thread_id}")
        return True

    def __len__(self) -> int:
        return len(self._sessions)


# =============================================================================
# Process-wide Registry
# =============================================================================

_registry = SessionRegistry()


def get_registry() -> SessionRegistry:
    return _registry


def acquire(config: SessionConfig) -> Any:
    """Create the calling thread's session in the process-wide registry."""
    return _registry.acquire(config)


def current() -> Optional[Any]:
    return _registry.current()


def release() -> None:
    _registry.release()


def cancel(thread_id: int) -> bool:
    """Interrupt waits on ``thread_id``'s session in the process-wide registry."""
    return _registry.cancel(thread_id)


__all__ = [
    "BACKENDS",
    "SessionConfig",
    "Session",
    "SessionRegistry",
    "get_registry",
    "acquire",
    "current",
    "release",
    "cancel",
]
