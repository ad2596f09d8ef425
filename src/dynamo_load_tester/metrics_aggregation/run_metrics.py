"""Metrics aggregation entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType

from dynamo_load_tester.error_classification.failure_categories import ErrorCategory


@dataclass(frozen=True)
class OperationOutcome:
    """Final outcome of one item, tagged with the concurrency level at dispatch."""

    success: bool
    latency_seconds: float
    concurrency_level: int
    error_category: ErrorCategory | None = None
    attempts: int = 1


@dataclass(frozen=True)
class LatencyPercentiles:
    """Latency percentiles in milliseconds."""

    p50: float = 0.0
    p90: float = 0.0
    p95: float = 0.0
    p99: float = 0.0


@dataclass(frozen=True)
class ConcurrencyLevelSummary:  # pylint: disable=too-many-instance-attributes
    """Aggregates for one concurrency level."""

    concurrency_level: int
    operations: int
    successes: int
    errors: int
    average_latency_ms: float
    min_latency_ms: float
    max_latency_ms: float
    percentiles: LatencyPercentiles
    error_counts: Mapping[ErrorCategory, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "error_counts", MappingProxyType(dict(self.error_counts)))

    @property
    def success_rate(self) -> float:
        return self.successes * 100.0 / self.operations if self.operations else 0.0


@dataclass(frozen=True)
class MetricsSnapshot:
    """Read-only view of aggregator state while a run is in progress."""

    taken_at: datetime
    elapsed_seconds: float
    total_operations: int
    total_successes: int
    total_errors: int
    error_counts: Mapping[ErrorCategory, int]
    current_throughput: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "error_counts", MappingProxyType(dict(self.error_counts)))


@dataclass(frozen=True)
class RunSummary:  # pylint: disable=too-many-instance-attributes
    """Immutable result of one run, produced once by ``MetricsAggregator.finalize``."""

    target_name: str
    started_at: datetime
    finished_at: datetime
    duration_seconds: float
    total_operations: int
    total_successes: int
    total_errors: int
    error_counts: Mapping[ErrorCategory, int]
    levels: tuple[ConcurrencyLevelSummary, ...]
    percentiles: LatencyPercentiles
    average_latency_ms: float
    throughput: float
    total_attempts: int = 0
    expected_duplicates: int = 0
    cancelled: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "error_counts", MappingProxyType(dict(self.error_counts)))

    @property
    def success_rate(self) -> float:
        if not self.total_operations:
            return 0.0
        return self.total_successes * 100.0 / self.total_operations

    @property
    def error_rate(self) -> float:
        if not self.total_operations:
            return 0.0
        return self.total_errors * 100.0 / self.total_operations

    @property
    def duplicate_errors(self) -> int:
        return self.error_counts.get(ErrorCategory.DUPLICATE_KEY, 0)

    @property
    def peak_concurrency_level(self) -> int:
        return max((level.concurrency_level for level in self.levels), default=0)
