"""Percentile computation tests."""

from __future__ import annotations

import random

import pytest
from dynamo_load_tester.metrics_aggregation import latency_percentiles, percentile


def test_nearest_rank_on_small_sample() -> None:
    values = [15.0, 20.0, 35.0, 40.0, 50.0]

    assert percentile(values, 5) == 15.0
    assert percentile(values, 30) == 20.0
    assert percentile(values, 40) == 20.0
    assert percentile(values, 50) == 35.0
    assert percentile(values, 100) == 50.0


def test_rank_zero_clamps_to_smallest_value() -> None:
    assert percentile([1.0, 2.0, 3.0], 0) == 1.0


def test_empty_sample_yields_zero() -> None:
    assert percentile([], 99) == 0.0
    assert latency_percentiles([]).p99 == 0.0


def test_rank_outside_range_is_rejected() -> None:
    with pytest.raises(ValueError):
        percentile([1.0], 101)


def test_one_to_hundred_maps_rank_to_value() -> None:
    result = latency_percentiles([float(value) for value in range(100, 0, -1)])

    assert (result.p50, result.p90, result.p95, result.p99) == (50.0, 90.0, 95.0, 99.0)


def test_percentiles_are_monotonic() -> None:
    rng = random.Random(42)
    for size in (1, 2, 7, 100, 1001):
        result = latency_percentiles([rng.expovariate(0.1) for _ in range(size)])
        assert result.p50 <= result.p90 <= result.p95 <= result.p99
