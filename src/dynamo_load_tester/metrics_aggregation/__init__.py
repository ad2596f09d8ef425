"""Metrics aggregation exports."""

from .metrics_aggregator import MetricsAggregator, MetricsFinalizedError
from .percentiles import latency_percentiles, percentile
from .run_metrics import (
    ConcurrencyLevelSummary,
    LatencyPercentiles,
    MetricsSnapshot,
    OperationOutcome,
    RunSummary,
)

__all__ = [
    "OperationOutcome",
    "LatencyPercentiles",
    "ConcurrencyLevelSummary",
    "MetricsSnapshot",
    "RunSummary",
    "MetricsAggregator",
    "MetricsFinalizedError",
    "percentile",
    "latency_percentiles",
]
