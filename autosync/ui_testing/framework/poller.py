# ================================================================================
# Poller Module
# ================================================================================
#
# Generic retry loop behind every wait in the framework.
#
# Key Features:
#   - Monotonic deadline, at least one attempt per wait
#   - Explicit set of ignorable failure kinds per WaitSpec
#   - Optional exponential backoff between attempts
#   - Prompt cancellation through a threading.Event
#   - Allure step per wait, loguru tracing per attempt
#
# Usage:
#   value = wait(session, conditions.visible(query))
#   value = Poller(WaitSpec(timeout_ms=2000)).wait(session, evaluator, description="...")
#
# ================================================================================

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, FrozenSet, Optional, TypeVar

import allure
from loguru import logger

from .conditions import (
    ConditionResult,
    Evaluator,
    Failed,
    FailureKind,
    Pending,
    Resolved,
    classify_error,
)
from .exceptions import UnignoredConditionError, WaitInterruptedError, WaitTimeoutError


T = TypeVar("T")

DEFAULT_IGNORED_FAILURES: FrozenSet[FailureKind] = frozenset({
    FailureKind.NO_SUCH_ELEMENT,
    FailureKind.STALE_ELEMENT,
})


@dataclass(frozen=True)
class WaitSpec:
    """
    Configuration of a single wait.

    Attributes:
        timeout_ms: Total time budget in milliseconds
        poll_interval_ms: Delay between attempts in milliseconds
        ignored_failures: Failure kinds retried instead of raised
        backoff_multiplier: Growth factor applied to the delay after each attempt
        max_poll_interval_ms: Upper bound for the delay when backing off

    A poll interval that is not positive or exceeds the timeout degrades
    the wait to a single attempt.
    """
    timeout_ms: int = 10000
    poll_interval_ms: int = 500
    ignored_failures: FrozenSet[FailureKind] = field(default=DEFAULT_IGNORED_FAILURES)
    backoff_multiplier: float = 1.0
    max_poll_interval_ms: Optional[int] = None

    def __post_init__(self) -> None:
        # Accept any iterable of kinds but store an immutable set
        object.__setattr__(self, "ignored_failures", frozenset(self.ignored_failures))

    @property
    def single_attempt(self) -> bool:
        return self.poll_interval_ms <= 0 or self.poll_interval_ms > self.timeout_ms

    def with_overrides(self, **changes: Any) -> "WaitSpec":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def ignoring(self, *kinds: FailureKind) -> "WaitSpec":
        """Return a copy that additionally ignores ``kinds``."""
        return replace(self, ignored_failures=self.ignored_failures | frozenset(kinds))

    def next_interval(self, current_ms: float) -> float:
        next_ms = current_ms * self.backoff_multiplier
        if self.max_poll_interval_ms is not None:
            next_ms = min(next_ms, self.max_poll_interval_ms)
        return next_ms


DEFAULT_WAIT_SPEC = WaitSpec()

# Pre-configured wait specs for common scenarios
WAIT_PRESETS: Dict[str, WaitSpec] = {
    "default": DEFAULT_WAIT_SPEC,

    # Elements expected almost immediately (already rendered pages)
    "fast": WaitSpec(timeout_ms=3000, poll_interval_ms=100),

    # Full page loads and SPA route changes
    "page_load": WaitSpec(timeout_ms=30000, poll_interval_ms=500),

    # Long-running backend work reflected in the UI
    "slow": WaitSpec(
        timeout_ms=60000,
        poll_interval_ms=1000,
        backoff_multiplier=1.5,
        max_poll_interval_ms=5000,
    ),
}


def get_wait_spec(preset: str) -> WaitSpec:
    """
    Get the WaitSpec registered under ``preset``.

    Returns:
        The preset, or DEFAULT_WAIT_SPEC when the name is unknown
    """
    return WAIT_PRESETS.get(preset, DEFAULT_WAIT_SPEC)


class Poller:
    """
    Re-evaluates a condition against a session until it resolves.

    Each attempt calls the evaluator again so it observes fresh state. The
    outcome of an attempt decides what happens next:

        - Resolved: return its value immediately
        - Failed with a kind outside ``spec.ignored_failures``: raise
          UnignoredConditionError without waiting for the deadline
        - Pending or ignorable Failed: sleep and retry until the deadline,
          then raise WaitTimeoutError with the last observed state

    Example:
        poller = Poller(WaitSpec(timeout_ms=2000, poll_interval_ms=250))
        button = poller.wait(session, conditions.clickable(submit), description="submit clickable")
    """

    def __init__(
        self,
        spec: Optional[WaitSpec] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize poller.

        Args:
            spec: Default WaitSpec used when a call passes none
            clock: Monotonic time source in seconds
        """
        self.spec = spec or DEFAULT_WAIT_SPEC
        self._clock = clock

    def wait(
        self,
        session: Any,
        evaluator: Evaluator,
        spec: Optional[WaitSpec] = None,
        description: str = "condition",
        cancel_event: Optional[threading.Event] = None,
    ) -> T:
        """
        Block until ``evaluator`` resolves for ``session``.

        Args:
            session: Session handed to the evaluator on every attempt
            evaluator: Callable returning Pending / Resolved / Failed
            spec: Per-call override of the poller's WaitSpec
            description: Human-readable condition name for logs and errors
            cancel_event: Event that aborts the wait when set. Defaults to
                the session's ``cancel_event`` when it has one.

        Returns:
            The value carried by the Resolved result

        Raises:
            WaitTimeoutError: Deadline passed without resolution
            UnignoredConditionError: A non-ignorable failure occurred
            WaitInterruptedError: ``cancel_event`` was set
        """
        spec = spec or self.spec
        if cancel_event is None:
            cancel_event = getattr(session, "cancel_event", None)

        with allure.step(f"Wait until {description}"):
            return self._poll(session, evaluator, spec, description, cancel_event)

    def _poll(
        self,
        session: Any,
        evaluator: Evaluator,
        spec: WaitSpec,
        description: str,
        cancel_event: Optional[threading.Event],
    ) -> T:
        start = self._clock()
        deadline = start + spec.timeout_ms / 1000
        interval_ms = float(spec.poll_interval_ms)
        attempt = 0
        last_state = "not evaluated"

        logger.debug(
            f"Waiting for: {description} "
            f"(timeout={spec.timeout_ms}ms, poll={spec.poll_interval_ms}ms)"
        )

        while True:
            self._check_cancelled(cancel_event, description, attempt, start)
            attempt += 1
            result = self._evaluate(evaluator, session)

            if isinstance(result, Resolved):
                logger.debug(
                    f"Condition met after {attempt} attempt(s) "
                    f"({self._clock() - start:.2f}s): {description}"
                )
                return result.value

            if isinstance(result, Failed):
                if result.kind not in spec.ignored_failures:
                    elapsed = self._clock() - start
                    logger.error(
                        f"Non-ignorable failure while waiting for {description}: "
                        f"{result.describe()}"
                    )
                    raise UnignoredConditionError(
                        description,
                        result.kind,
                        result.detail,
                        attempts=attempt,
                        elapsed=elapsed,
                        cause=result.cause,
                    ) from result.cause
                last_state = result.describe()
            else:
                last_state = result.state

            remaining = deadline - self._clock()
            if spec.single_attempt or remaining <= 0:
                elapsed = self._clock() - start
                logger.error(
                    f"Timeout after {elapsed:.2f}s waiting for: {description}. "
                    f"Last state: {last_state}"
                )
                raise WaitTimeoutError(
                    description,
                    spec.timeout_ms,
                    last_state,
                    attempts=attempt,
                    elapsed=elapsed,
                )

            logger.trace(f"Attempt {attempt}: {last_state}. Retrying in {interval_ms:.0f}ms")
            self._sleep(min(interval_ms / 1000, remaining), cancel_event, description, attempt, start)
            interval_ms = spec.next_interval(interval_ms)

    def _evaluate(self, evaluator: Evaluator, session: Any) -> ConditionResult:
        # Evaluators written by page objects may still raise; route those
        # exceptions through the same ignorable/non-ignorable decision.
        try:
            result = evaluator(session)
        except Exception as exc:
            return Failed(classify_error(exc), f"{type(exc).__name__}: {exc}", exc)
        if not isinstance(result, (Pending, Resolved, Failed)):
            raise TypeError(
                f"Condition evaluator returned {type(result).__name__}; "
                f"expected Pending, Resolved or Failed"
            )
        return result

    def _sleep(
        self,
        seconds: float,
        cancel_event: Optional[threading.Event],
        description: str,
        attempt: int,
        start: float,
    ) -> None:
        if cancel_event is None:
            time.sleep(seconds)
            return
        if cancel_event.wait(seconds):
            self._check_cancelled(cancel_event, description, attempt, start)

    def _check_cancelled(
        self,
        cancel_event: Optional[threading.Event],
        description: str,
        attempt: int,
        start: float,
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            elapsed = self._clock() - start
            logger.warning(f"Wait cancelled after {attempt} attempt(s): {description}")
            raise WaitInterruptedError(
                f"Wait for {description} was cancelled",
                description=description,
                attempts=attempt,
                elapsed=elapsed,
            )


def wait(
    session: Any,
    evaluator: Evaluator,
    spec: Optional[WaitSpec] = None,
    description: str = "condition",
) -> Any:
    """Wait for ``evaluator`` using a one-off Poller (see Poller.wait)."""
    return Poller(spec).wait(session, evaluator, description=description)


__all__ = [
    "WaitSpec",
    "DEFAULT_WAIT_SPEC",
    "DEFAULT_IGNORED_FAILURES",
    "WAIT_PRESETS",
    "get_wait_spec",
    "Poller",
    "wait",
]
