"""
================================================================================
UI Testing Framework
================================================================================

Playwright-based synchronization and session-isolation core.

Components:
    - conditions: condition evaluators and ElementQuery
    - poller: generic retry loop and WaitSpec
    - waits: typed wait helpers bound to a session
    - element_actions: interactions that wait before acting
    - session_registry: one browser session per thread
    - page_base: base page object

Author: Automation Team
License: MIT
================================================================================
"""

from .conditions import (
    By,
    ElementQuery,
    Failed,
    FailureKind,
    Pending,
    Resolved,
)
from .element_actions import ElementActions, InteractionTarget
from .exceptions import (
    AutosyncError,
    DuplicateSessionError,
    OptionNotFoundError,
    SessionCloseError,
    UnignoredConditionError,
    WaitError,
    WaitInterruptedError,
    WaitTimeoutError,
)
from .page_base import BasePage
from .poller import DEFAULT_WAIT_SPEC, WAIT_PRESETS, Poller, WaitSpec, get_wait_spec, wait
from .session_registry import (
    Session,
    SessionConfig,
    SessionRegistry,
    acquire,
    cancel,
    current,
    get_registry,
    release,
)
from .waits import AlertHandle, Waits

__all__ = [
    "By",
    "ElementQuery",
    "Failed",
    "FailureKind",
    "Pending",
    "Resolved",
    "ElementActions",
    "InteractionTarget",
    "AutosyncError",
    "DuplicateSessionError",
    "OptionNotFoundError",
    "SessionCloseError",
    "UnignoredConditionError",
    "WaitError",
    "WaitInterruptedError",
    "WaitTimeoutError",
    "BasePage",
    "DEFAULT_WAIT_SPEC",
    "WAIT_PRESETS",
    "Poller",
    "WaitSpec",
    "get_wait_spec",
    "wait",
    "Session",
    "SessionConfig",
    "SessionRegistry",
    "acquire",
    "cancel",
    "current",
    "get_registry",
    "release",
    "AlertHandle",
    "Waits",
]
