"""Nearest-rank percentile computation."""

from __future__ import annotations

import math
from collections.abc import Sequence

from .run_metrics import LatencyPercentiles


def percentile(sorted_values: Sequence[float], rank: float) -> float:
    """Return the nearest-rank percentile of ascending ``sorted_values``.

    The 1-based rank is ``ceil(rank / 100 * n)`` clamped to ``[1, n]``; no
    interpolation is applied, so the result is always an observed value.
    An empty sequence yields 0.0.
    """
    if not sorted_values:
        return 0.0
    if not 0.0 <= rank <= 100.0:
        raise ValueError(f"Percentile rank must be between 0 and 100, got {rank}.")
    count = len(sorted_values)
    position = min(max(math.ceil(rank * count / 100.0), 1), count)
    return sorted_values[position - 1]


def latency_percentiles(latencies_ms: Sequence[float]) -> LatencyPercentiles:
    ordered = sorted(latencies_ms)
    return LatencyPercentiles(
        p50=percentile(ordered, 50),
        p90=percentile(ordered, 90),
        p95=percentile(ordered, 95),
        p99=percentile(ordered, 99),
    )
