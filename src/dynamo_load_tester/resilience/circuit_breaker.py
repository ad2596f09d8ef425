"""Sliding-window circuit breaker shared by all write tasks."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from dynamo_load_tester.configuration.runtime_settings import CircuitBreakerSettings

_LOGGER = logging.getLogger(__name__)


class CircuitState(str, Enum):
    """Circuit breaker state."""

    CLOSED = "Closed"
    OPEN = "Open"
    HALF_OPEN = "HalfOpen"


@dataclass(frozen=True)
class CircuitPermit:
    """Admission of one call, tied to the breaker period it was admitted in."""

    state: CircuitState
    generation: int


@dataclass(frozen=True)
class CircuitBreakerStats:
    """Point-in-time view of the breaker."""

    state: CircuitState
    window_calls: int
    window_failures: int
    failure_rate: float
    half_open_calls: int
    times_opened: int
    rejected_calls: int


class CircuitBreaker:
    """Failure-rate circuit breaker over the most recent ``window_size`` calls.

    Every transition happens under one lock, so concurrent callers can never
    admit more than ``half_open_max_calls`` trial calls per half-open period.
    ``try_acquire`` returns a permit naming the state and period a call was
    admitted under, or None when the call is short-circuited. Every state
    change starts a new period, and results carrying an older period are
    ignored, so a late result from an earlier period cannot flip the current one.
    """

    def __init__(
        self,
        settings: CircuitBreakerSettings | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings or CircuitBreakerSettings()
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._generation = 0
        self._window: deque[bool] = deque(maxlen=self._settings.window_size)
        self._open_until = 0.0
        self._half_open_calls = 0
        self._times_opened = 0
        self._rejected_calls = 0

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    def try_acquire(self) -> CircuitPermit | None:
        """Admit one call, returning its permit, or None when short-circuited."""
        with self._lock:
            if self._state is CircuitState.OPEN:
                if self._clock() < self._open_until:
                    self._rejected_calls += 1
                    return None
                self._state = CircuitState.HALF_OPEN
                self._generation += 1
                self._half_open_calls = 0
                _LOGGER.info("Circuit breaker transitioning from OPEN to HALF_OPEN")
            if self._state is CircuitState.HALF_OPEN:
                if self._half_open_calls >= self._settings.half_open_max_calls:
                    self._rejected_calls += 1
                    return None
                self._half_open_calls += 1
            return CircuitPermit(self._state, self._generation)

    def record_result(self, permit: CircuitPermit, *, failed: bool) -> None:
        """Fold the result of a call admitted with ``permit``."""
        with self._lock:
            if permit.generation != self._generation:
                return
            if self._state is CircuitState.HALF_OPEN:
                if failed:
                    self._open("trial call failed")
                else:
                    self._state = CircuitState.CLOSED
                    self._generation += 1
                    self._window.clear()
                    self._half_open_calls = 0
                    _LOGGER.info("Circuit breaker transitioning from HALF_OPEN to CLOSED")
                return
            if self._state is CircuitState.CLOSED:
                self._window.append(failed)
                if self._failure_threshold_reached():
                    self._open(f"failure rate {self._failure_rate():.1f}%")

    def stats(self) -> CircuitBreakerStats:
        with self._lock:
            return CircuitBreakerStats(
                state=self._state,
                window_calls=len(self._window),
                window_failures=sum(self._window),
                failure_rate=self._failure_rate(),
                half_open_calls=self._half_open_calls,
                times_opened=self._times_opened,
                rejected_calls=self._rejected_calls,
            )

    def _failure_rate(self) -> float:
        if not self._window:
            return 0.0
        return sum(self._window) * 100.0 / len(self._window)

    def _failure_threshold_reached(self) -> bool:
        return (
            len(self._window) >= self._settings.minimum_calls
            and self._failure_rate() >= self._settings.failure_rate_threshold
        )

    def _open(self, reason: str) -> None:
        self._state = CircuitState.OPEN
        self._generation += 1
        self._open_until = self._clock() + self._settings.cooldown_seconds
        self._half_open_calls = 0
        self._window.clear()
        self._times_opened += 1
        _LOGGER.warning(
            "Circuit breaker OPEN for %.1fs (%s)", self._settings.cooldown_seconds, reason
        )
