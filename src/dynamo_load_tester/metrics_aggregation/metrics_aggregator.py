"""Thread-safe metrics aggregation service."""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from dynamo_load_tester.error_classification.failure_categories import ErrorCategory

from .percentiles import latency_percentiles
from .run_metrics import (
    ConcurrencyLevelSummary,
    MetricsSnapshot,
    OperationOutcome,
    RunSummary,
)

_LOGGER = logging.getLogger(__name__)


class MetricsFinalizedError(Exception):
    """Raised when the aggregator is used after ``finalize``."""


@dataclass
class _MetricsBucket:
    """Mutable per-level aggregate; guarded by the aggregator lock."""

    successes: int = 0
    errors: int = 0
    attempts: int = 0
    cumulative_latency_ms: float = 0.0
    latencies_ms: list[float] = field(default_factory=list)
    error_counts: Counter[ErrorCategory] = field(default_factory=Counter)

    @property
    def operations(self) -> int:
        return self.successes + self.errors

    def add(self, outcome: OperationOutcome) -> None:
        latency_ms = outcome.latency_seconds * 1000.0
        if outcome.success:
            self.successes += 1
        else:
            self.errors += 1
            self.error_counts[outcome.error_category or ErrorCategory.UNKNOWN] += 1
        self.attempts += outcome.attempts
        self.cumulative_latency_ms += latency_ms
        self.latencies_ms.append(latency_ms)

    def summarize(self, level: int) -> ConcurrencyLevelSummary:
        return ConcurrencyLevelSummary(
            concurrency_level=level,
            operations=self.operations,
            successes=self.successes,
            errors=self.errors,
            average_latency_ms=self.cumulative_latency_ms / self.operations,
            min_latency_ms=min(self.latencies_ms),
            max_latency_ms=max(self.latencies_ms),
            percentiles=latency_percentiles(self.latencies_ms),
            error_counts=self.error_counts,
        )


class MetricsAggregator:
    """Accumulates operation outcomes into per-concurrency-level buckets.

    ``record`` may be called from any number of worker threads. ``finalize``
    runs once and turns the buckets into a ``RunSummary``; any later
    ``record`` or ``finalize`` raises ``MetricsFinalizedError``.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._clock = clock
        self._now = now or (lambda: datetime.now(UTC))
        self._lock = threading.Lock()
        self._buckets: dict[int, _MetricsBucket] = {}
        self._started_clock: float | None = None
        self._started_at: datetime | None = None
        self._finalized = False

    @property
    def is_finalized(self) -> bool:
        with self._lock:
            return self._finalized

    def start(self) -> None:
        """Mark the start of the measured run window."""
        with self._lock:
            if self._finalized:
                raise MetricsFinalizedError("Cannot restart a finalized aggregator.")
            self._started_clock = self._clock()
            self._started_at = self._now()

    def record(self, outcome: OperationOutcome) -> None:
        with self._lock:
            if self._finalized:
                raise MetricsFinalizedError(
                    "record() called after finalize(); the outcome would be lost."
                )
            bucket = self._buckets.get(outcome.concurrency_level)
            if bucket is None:
                bucket = self._buckets[outcome.concurrency_level] = _MetricsBucket()
            bucket.add(outcome)

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            elapsed = self._elapsed_seconds()
            successes = sum(bucket.successes for bucket in self._buckets.values())
            errors = sum(bucket.errors for bucket in self._buckets.values())
            error_counts: Counter[ErrorCategory] = Counter()
            for bucket in self._buckets.values():
                error_counts.update(bucket.error_counts)
        total = successes + errors
        return MetricsSnapshot(
            taken_at=self._now(),
            elapsed_seconds=elapsed,
            total_operations=total,
            total_successes=successes,
            total_errors=errors,
            error_counts=error_counts,
            current_throughput=total / elapsed if elapsed > 0 else 0.0,
        )

    def finalize(
        self,
        *,
        target_name: str,
        expected_duplicates: int = 0,
        cancelled: bool = False,
    ) -> RunSummary:
        """Close the aggregator and build the run summary."""
        with self._lock:
            if self._finalized:
                raise MetricsFinalizedError("finalize() may only be called once.")
            self._finalized = True
            duration = self._elapsed_seconds()
            buckets = dict(self._buckets)

        started_at = self._started_at or self._now()
        levels = tuple(bucket.summarize(level) for level, bucket in sorted(buckets.items()))
        all_latencies = [
            latency for bucket in buckets.values() for latency in bucket.latencies_ms
        ]
        error_counts: Counter[ErrorCategory] = Counter()
        for bucket in buckets.values():
            error_counts.update(bucket.error_counts)
        successes = sum(level.successes for level in levels)
        errors = sum(level.errors for level in levels)
        total = successes + errors
        summary = RunSummary(
            target_name=target_name,
            started_at=started_at,
            finished_at=started_at + timedelta(seconds=duration),
            duration_seconds=duration,
            total_operations=total,
            total_successes=successes,
            total_errors=errors,
            error_counts=error_counts,
            levels=levels,
            percentiles=latency_percentiles(all_latencies),
            average_latency_ms=sum(all_latencies) / total if total else 0.0,
            throughput=total / duration if duration > 0 else 0.0,
            total_attempts=sum(bucket.attempts for bucket in buckets.values()),
            expected_duplicates=expected_duplicates,
            cancelled=cancelled,
        )
        _LOGGER.info(
            "Finalized metrics: %d operations, %d successes, %d errors in %.2fs",
            total,
            successes,
            errors,
            duration,
        )
        return summary

    def _elapsed_seconds(self) -> float:
        if self._started_clock is None:
            return 0.0
        return max(self._clock() - self._started_clock, 0.0)
