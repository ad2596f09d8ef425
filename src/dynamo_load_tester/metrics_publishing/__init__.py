"""Metrics publishing exports."""

from .snapshot_publisher import LoggingMetricsSink, MetricsSink, PeriodicSnapshotPublisher

__all__ = ["MetricsSink", "LoggingMetricsSink", "PeriodicSnapshotPublisher"]
