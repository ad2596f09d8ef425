"""Periodic publishing of in-progress run metrics."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Protocol

from dynamo_load_tester.metrics_aggregation.run_metrics import MetricsSnapshot

_LOGGER = logging.getLogger(__name__)


class MetricsSink(Protocol):  # pylint: disable=too-few-public-methods
    """Destination for metrics snapshots; publishing is fire-and-forget."""

    def publish(self, snapshot: MetricsSnapshot) -> None: ...


class LoggingMetricsSink:  # pylint: disable=too-few-public-methods
    """Writes each snapshot as one INFO log line."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or _LOGGER

    def publish(self, snapshot: MetricsSnapshot) -> None:
        errors = ", ".join(
            f"{category.value}={count}" for category, count in sorted(snapshot.error_counts.items())
        )
        self._logger.info(
            "Progress after %.1fs: %d operations (%d ok, %d failed), %.1f ops/s%s",
            snapshot.elapsed_seconds,
            snapshot.total_operations,
            snapshot.total_successes,
            snapshot.total_errors,
            snapshot.current_throughput,
            f" [{errors}]" if errors else "",
        )


class PeriodicSnapshotPublisher:
    """Background thread pulling a snapshot every ``interval_seconds``.

    Sink failures are logged and never stop the run.
    """

    def __init__(
        self,
        snapshot_source: Callable[[], MetricsSnapshot],
        sink: MetricsSink,
        interval_seconds: float,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("Snapshot interval must be positive.")
        self._snapshot_source = snapshot_source
        self._sink = sink
        self._interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("Publisher already started.")
        thread = threading.Thread(target=self._run, name="metrics-publisher", daemon=True)
        thread.start()
        self._thread = thread

    def stop(self, *, publish_final: bool = True) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)
        if publish_final:
            self._publish_once()

    def __enter__(self) -> PeriodicSnapshotPublisher:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval_seconds):
            self._publish_once()

    def _publish_once(self) -> None:
        try:
            self._sink.publish(self._snapshot_source())
        except Exception:  # pylint: disable=broad-exception-caught
            _LOGGER.exception("Publishing metrics snapshot failed")
