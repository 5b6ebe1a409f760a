"""
================================================================================
Framework Exceptions
================================================================================

Every failure surfaced by the synchronization core derives from AutosyncError.
Each exception keeps what is needed to diagnose it: the last observed state
for timeouts, the original cause for everything else.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence


class AutosyncError(Exception):
    """Base exception for the automation core."""
    pass


# =============================================================================
# Wait Errors
# =============================================================================

class WaitError(AutosyncError):
    """Base exception for failed waits."""

    def __init__(self, message: str, description: str = "", attempts: int = 0, elapsed: float = 0.0):
        super().__init__(message)
        self.description = description
        self.attempts = attempts
        self.elapsed = elapsed


class WaitTimeoutError(WaitError, TimeoutError):
    """Condition never resolved within the time budget."""

    def __init__(
        self,
        description: str,
        timeout_ms: int,
        last_state: str,
        attempts: int,
        elapsed: float,
    ):
        super().__init__(
            f"Timed out after {elapsed:.2f}s ({attempts} attempt(s), "
            f"timeout={timeout_ms}ms) waiting for: {description}. "
            f"Last observed state: {last_state}",
            description=description,
            attempts=attempts,
            elapsed=elapsed,
        )
        self.timeout_ms = timeout_ms
        self.last_state = last_state


class UnignoredConditionError(WaitError):
    """A non-transient failure occurred while checking a condition."""

    def __init__(
        self,
        description: str,
        kind: Any,
        detail: str,
        attempts: int,
        elapsed: float,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(
            f"Condition failed with {getattr(kind, 'value', kind)} "
            f"while waiting for: {description}. {detail}".rstrip(),
            description=description,
            attempts=attempts,
            elapsed=elapsed,
        )
        self.kind = kind
        self.detail = detail
        self.cause = cause


class WaitInterruptedError(WaitError, InterruptedError):
    """The wait was cancelled by the surrounding test execution."""
    pass


# =============================================================================
# Session Errors
# =============================================================================

class DuplicateSessionError(AutosyncError):
    """The calling thread already holds a live session."""

    def __init__(self, thread_name: str):
        super().__init__(
            f"Thread '{thread_name}' already holds a session. "
            f"Call release() before acquiring a new one."
        )
        self.thread_name = thread_name


class SessionCloseError(AutosyncError):
    """One or more resources of a session failed to close."""

    def __init__(self, errors: Sequence[BaseException]):
        self.errors: List[BaseException] = list(errors)
        super().__init__(
            "Failed to close session cleanly: "
            + "; ".join(f"{type(e).__name__}: {e}" for e in self.errors)
        )


# =============================================================================
# Interaction Errors
# =============================================================================

class OptionNotFoundError(AutosyncError):
    """No option of a selection control matched the requested text or value."""

    def __init__(self, control: str, by: str, wanted: str, available: Sequence[str]):
        self.control = control
        self.by = by
        self.wanted = wanted
        self.available = list(available)
        super().__init__(
            f"No option with {by} {wanted!r} in {control}. "
            f"Available: {self.available}"
        )


__all__ = [
    "AutosyncError",
    "WaitError",
    "WaitTimeoutError",
    "UnignoredConditionError",
    "WaitInterruptedError",
    "DuplicateSessionError",
    "SessionCloseError",
    "OptionNotFoundError",
]
