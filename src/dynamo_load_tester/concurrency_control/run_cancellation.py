"""Run-level cancellation signal."""

from __future__ import annotations

import threading
from collections.abc import Callable


class RunCancellation:
    """Cancellation handle shared by the dispatcher, blocked acquirers and backoff waits."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._callbacks: list[Callable[[], None]] = []
        self._lock = threading.Lock()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Signal cancellation and wake everything registered on this handle."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
        for callback in callbacks:
            callback()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; return True early when cancelled."""
        return self._event.wait(timeout=max(timeout, 0.0))

    def on_cancel(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()
