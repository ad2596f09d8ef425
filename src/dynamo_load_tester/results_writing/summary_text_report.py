"""Plain-text run report."""

from __future__ import annotations

from dynamo_load_tester.metrics_aggregation.run_metrics import RunSummary

from .report_models import RunMetadata

_RULE = "=" * 72
_SECTION_RULE = "-" * 72


def render_summary_text(summary: RunSummary, metadata: RunMetadata | None = None) -> str:
    """Render overview, performance, percentiles, errors and per-level sections."""
    lines: list[str] = [_RULE, f"LOAD TEST REPORT: {summary.target_name}", _RULE]
    lines.extend(_overview_lines(summary, metadata))
    lines.extend(_performance_lines(summary))
    lines.extend(_error_lines(summary))
    lines.extend(_level_lines(summary))
    lines.append(_RULE)
    return "\n".join(lines) + "\n"


def _section(title: str) -> list[str]:
    return ["", title, _SECTION_RULE]


def _overview_lines(summary: RunSummary, metadata: RunMetadata | None) -> list[str]:
    lines = _section("OVERVIEW")
    lines.append(f"Started:            {summary.started_at.isoformat()}")
    lines.append(f"Finished:           {summary.finished_at.isoformat()}")
    lines.append(f"Duration:           {summary.duration_seconds:.2f}s")
    if summary.cancelled:
        lines.append("Status:             CANCELLED (partial results)")
    if metadata is not None:
        config = metadata.config
        lines.append(f"Environment:        {config.environment}")
        lines.append(f"Total items:        {config.total_items}")
        lines.append(f"Concurrency limit:  {config.concurrency_limit}")
        lines.append(
            f"Max concurrency:    {config.max_concurrency_level} "
            f"({config.max_concurrency_percentage:g}%)"
        )
        lines.append(f"Peak in flight:     {metadata.peak_in_flight}")
        lines.append(f"Duplicate rate:     {config.duplicate_percentage:g}%")
    lines.append(f"Total operations:   {summary.total_operations}")
    lines.append(
        f"Successes:          {summary.total_successes} ({summary.success_rate:.2f}%)"
    )
    lines.append(f"Errors:             {summary.total_errors} ({summary.error_rate:.2f}%)")
    if metadata is not None:
        lines.append(
            f"Circuit breaker:    opened {metadata.circuit_breaker_openings}x, "
            f"rejected {metadata.circuit_breaker_rejections} calls"
        )
        if metadata.cleaned_items is not None:
            lines.append(f"Cleaned up items:   {metadata.cleaned_items}")
    return lines


def _performance_lines(summary: RunSummary) -> list[str]:
    lines = _section("PERFORMANCE")
    lines.append(f"Throughput:         {summary.throughput:.2f} ops/s")
    lines.append(f"Average latency:    {summary.average_latency_ms:.2f} ms")
    lines.append(f"Total attempts:     {summary.total_attempts}")
    percentiles = summary.percentiles
    lines.extend(_section("LATENCY PERCENTILES (ms)"))
    lines.append(f"p50:                {percentiles.p50:.2f}")
    lines.append(f"p90:                {percentiles.p90:.2f}")
    lines.append(f"p95:                {percentiles.p95:.2f}")
    lines.append(f"p99:                {percentiles.p99:.2f}")
    return lines


def _error_lines(summary: RunSummary) -> list[str]:
    lines = _section("ERROR ANALYSIS")
    if not summary.error_counts:
        lines.append("No errors recorded.")
        return lines
    for category, count in sorted(
        summary.error_counts.items(), key=lambda entry: (-entry[1], entry[0].value)
    ):
        share = count * 100.0 / summary.total_operations if summary.total_operations else 0.0
        lines.append(f"{category.value:<20}{count:>10} ({share:.2f}%)")
    lines.append(
        f"Duplicate keys:     {summary.duplicate_errors} observed, "
        f"{summary.expected_duplicates} injected"
    )
    return lines


def _level_lines(summary: RunSummary) -> list[str]:
    lines = _section("CONCURRENCY LEVELS")
    lines.append(
        f"{'Level':>6} {'Ops':>8} {'OK':>8} {'Errors':>8} {'Avg ms':>10} {'p95 ms':>10} {'OK %':>8}"
    )
    for level in summary.levels:
        lines.append(
            f"{level.concurrency_level:>6} {level.operations:>8} {level.successes:>8} "
            f"{level.errors:>8} {level.average_latency_ms:>10.2f} "
            f"{level.percentiles.p95:>10.2f} {level.success_rate:>8.2f}"
        )
    return lines
