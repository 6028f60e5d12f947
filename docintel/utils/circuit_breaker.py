"""Circuit breaker guarding calls to an external inference service.

The breaker state is an explicit tagged value (Closed, Open, HalfOpen).
Transitions are pure functions of ``(state, now, outcome)`` so they can be
tested with a fake clock; ``CircuitBreaker`` only applies them under a lock.

One breaker exists per external service and is shared by every in-flight
request. The lock is held only while reading or replacing the state, never
across the awaited call.
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Tuple, TypeVar, Union

from docintel.exceptions import CircuitOpenError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_FAILURE_THRESHOLD = 5
DEFAULT_RESET_TIMEOUT = 60.0  # seconds


class CircuitStatus(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


@dataclass(frozen=True)
class ClosedState:
    failure_count: int = 0

    status = CircuitStatus.CLOSED


@dataclass(frozen=True)
class OpenState:
    failure_count: int
    until: float

    status = CircuitStatus.OPEN


@dataclass(frozen=True)
class HalfOpenState:
    """A single probe call is in flight; everything else is rejected."""

    failure_count: int

    status = CircuitStatus.HALF_OPEN


CircuitState = Union[ClosedState, OpenState, HalfOpenState]


def admit(state: CircuitState, now: float) -> Tuple[bool, CircuitState]:
    """Decide whether a call may proceed.

    Returns:
        ``(allowed, next_state)``
    """
    if isinstance(state, ClosedState):
        return True, state
    if isinstance(state, OpenState):
        if now < state.until:
            return False, state
        return True, HalfOpenState(failure_count=state.failure_count)
    return False, state


def record_success(state: CircuitState) -> CircuitState:
    # A late success from a call admitted before the trip does not close an open circuit
    if isinstance(state, OpenState):
        return state
    return ClosedState(failure_count=0)


def record_failure(
    state: CircuitState,
    now: float,
    failure_threshold: int,
    reset_timeout: float,
) -> CircuitState:
    failure_count = state.failure_count + 1
    if isinstance(state, ClosedState) and failure_count < failure_threshold:
        return ClosedState(failure_count=failure_count)
    return OpenState(failure_count=failure_count, until=now + reset_timeout)


def record_abandoned(state: CircuitState, now: float) -> CircuitState:
    # A cancelled probe gives no evidence either way; let the next caller probe again
    if isinstance(state, HalfOpenState):
        return OpenState(failure_count=state.failure_count, until=now)
    return state


class CircuitBreaker:
    """Process-wide protective gate around a fallible async operation.

    Args:
        failure_threshold: Consecutive failures that trip the breaker
        reset_timeout: Seconds to stay open before letting a probe through
        clock: Monotonic time source, injectable for tests
        name: Label used in log messages and errors
    """

    def __init__(
        self,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        reset_timeout: float = DEFAULT_RESET_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        name: str = "inference",
    ):
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        if reset_timeout <= 0:
            raise ValueError("reset_timeout must be positive")

        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.name = name
        self._clock = clock
        self._lock = threading.Lock()
        self._state: CircuitState = ClosedState()

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    async def call(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` if the breaker admits it and record the outcome.

        Raises:
            CircuitOpenError: If the breaker is open (or a probe is in flight)
            Exception: Whatever ``operation`` raised, after recording the failure
        """
        self._enter()

        settled = False
        try:
            result = await operation()
            settled = True
            self._apply(lambda state, now: record_success(state))
            return result
        except Exception:
            settled = True
            self._apply(
                lambda state, now: record_failure(
                    state, now, self.failure_threshold, self.reset_timeout
                )
            )
            raise
        finally:
            if not settled:
                self._apply(record_abandoned)

    def snapshot(self) -> Dict[str, Any]:
        """Return a JSON-friendly view of the current state."""
        with self._lock:
            state = self._state
        return {
            "name": self.name,
            "state": state.status.value,
            "failure_count": state.failure_count,
            "next_attempt": state.until if isinstance(state, OpenState) else None,
        }

    def _enter(self) -> None:
        with self._lock:
            now = self._clock()
            allowed, new_state = admit(self._state, now)
            previous = self._state
            self._state = new_state

        if not allowed:
            raise CircuitOpenError(
                f"Circuit breaker '{self.name}' is {previous.status.value}. "
                "Service temporarily unavailable."
            )
        if new_state is not previous:
            logger.info(f"Circuit breaker '{self.name}' half-open; letting one probe call through")

    def _apply(self, transition: Callable[[CircuitState, float], CircuitState]) -> None:
        with self._lock:
            previous = self._state
            self._state = transition(previous, self._clock())
            current = self._state

        if current.status is not previous.status:
            if isinstance(current, OpenState):
                logger.warning(
                    f"Circuit breaker '{self.name}' opened after {current.failure_count} failures; "
                    f"rejecting calls for {self.reset_timeout:.0f}s"
                )
            else:
                logger.info(f"Circuit breaker '{self.name}' {current.status.value.lower()}")
