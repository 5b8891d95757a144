"""Per-provider circuit breaker.

A provider that fails `threshold` times in a row is skipped for `cooldown`
seconds. After the cool-down one trial call is let through (half-open); a
success closes the breaker, a failure re-opens it for another cool-down.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Optional

from .time_provider import TimeProvider

logger = logging.getLogger(__name__)

CLOSED = 'closed'
OPEN = 'open'
HALF_OPEN = 'half_open'


@dataclass
class _BreakerState:
    failures: int = 0
    opened_at: Optional[float] = None
    trial_in_progress: bool = False


class CircuitBreaker:
    """Tracks consecutive failures for any number of named providers."""

    def __init__(
        self,
        threshold: int = 3,
        cooldown: float = 300,
        time_provider: Optional[TimeProvider] = None,
    ):
        self._threshold = threshold
        self._cooldown = cooldown
        self._time = time_provider or TimeProvider.get_default()
        self._states: dict[str, _BreakerState] = {}
        self._lock = threading.Lock()

    def _state_of(self, state: _BreakerState) -> str:
        if state.opened_at is None:
            return CLOSED
        if self._time.timestamp() - state.opened_at >= self._cooldown:
            return HALF_OPEN
        return OPEN

    def state(self, name: str) -> str:
        with self._lock:
            return self._state_of(self._states.setdefault(name, _BreakerState()))

    def allow(self, name: str) -> bool:
        """Whether a call to `name` may proceed now.

        In the half-open state only the first caller gets the trial call.
        """
        with self._lock:
            state = self._states.setdefault(name, _BreakerState())
            current = self._state_of(state)
            if current == CLOSED:
                return True
            if current == HALF_OPEN and not state.trial_in_progress:
                state.trial_in_progress = True
                return True
            return False

    def record_success(self, name: str) -> None:
        with self._lock:
            state = self._states.setdefault(name, _BreakerState())
            if state.opened_at is not None:
                logger.info(f"Circuit breaker for {name} closed")
            state.failures = 0
            state.opened_at = None
            state.trial_in_progress = False

    def record_failure(self, name: str) -> None:
        with self._lock:
            state = self._states.setdefault(name, _BreakerState())
            state.failures += 1
            if state.trial_in_progress or state.failures >= self._threshold:
                if state.opened_at is None or state.trial_in_progress:
                    logger.warning(
                        f"Circuit breaker for {name} opened after {state.failures} "
                        f"consecutive failures; cooling down {self._cooldown}s"
                    )
                state.opened_at = self._time.timestamp()
                state.trial_in_progress = False

    def reset(self, name: Optional[str] = None) -> None:
        with self._lock:
            if name is None:
                self._states.clear()
            else:
                self._states.pop(name, None)

    def snapshot(self) -> dict:
        """Breaker state and failure count per known provider."""
        with self._lock:
            return {
                name: {'state': self._state_of(state), 'failures': state.failures}
                for name, state in self._states.items()
            }
