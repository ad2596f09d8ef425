"""Bounded admission control for in-flight write operations."""

from __future__ import annotations

import logging
import threading
import time

from .run_cancellation import RunCancellation

_LOGGER = logging.getLogger(__name__)


class AdmissionCancelledError(Exception):
    """Raised when a blocked acquire is aborted by run cancellation."""


class AdmissionPermit:
    """One admitted operation slot; released exactly once."""

    def __init__(self, controller: AdmissionController, level: int) -> None:
        self._controller = controller
        self._released = False
        self.level = level

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._controller.release()

    def __enter__(self) -> AdmissionPermit:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


class AdmissionController:
    """Counting permit pool capped at ``capacity``.

    ``acquire(level)`` blocks while ``level`` or more permits are held, so a
    caller admits work at a concurrency level at or below the capacity
    without resizing the pool. Cancellation wakes every blocked acquirer.
    """

    def __init__(self, capacity: int, cancellation: RunCancellation | None = None) -> None:
        if capacity < 1:
            raise ValueError("Admission capacity must be at least 1.")
        self._capacity = capacity
        self._in_flight = 0
        self._peak_in_flight = 0
        self._condition = threading.Condition()
        self._cancellation = cancellation or RunCancellation()
        self._cancellation.on_cancel(self._wake_all)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def in_flight(self) -> int:
        with self._condition:
            return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        with self._condition:
            return self._peak_in_flight

    def acquire(self, level: int | None = None) -> AdmissionPermit:
        """Block until fewer than ``level`` permits are held, then take one."""
        effective_level = self._capacity if level is None else min(max(level, 1), self._capacity)
        with self._condition:
            while self._in_flight >= effective_level:
                if self._cancellation.is_cancelled:
                    raise AdmissionCancelledError("Admission aborted by run cancellation.")
                self._condition.wait()
            if self._cancellation.is_cancelled:
                raise AdmissionCancelledError("Admission aborted by run cancellation.")
            self._in_flight += 1
            self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
        return AdmissionPermit(self, effective_level)

    def release(self) -> None:
        with self._condition:
            if self._in_flight == 0:
                raise RuntimeError("release() called without a held permit.")
            self._in_flight -= 1
            self._condition.notify_all()

    def wait_until_idle(
        self, timeout: float | None = None, *, cancel_grace: float | None = None
    ) -> bool:
        """Wait until no permit is held; return False on timeout.

        With ``cancel_grace``, a cancellation seen before or during the wait
        caps the remaining wait at ``cancel_grace`` seconds from that moment.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        awaiting_cancel = cancel_grace is not None
        with self._condition:
            while self._in_flight:
                if awaiting_cancel and self._cancellation.is_cancelled:
                    awaiting_cancel = False
                    grace_deadline = time.monotonic() + (cancel_grace or 0.0)
                    deadline = grace_deadline if deadline is None else min(deadline, grace_deadline)
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._condition.wait(remaining)
            return True

    def _wake_all(self) -> None:
        _LOGGER.debug("Waking blocked acquirers after cancellation")
        with self._condition:
            self._condition.notify_all()
