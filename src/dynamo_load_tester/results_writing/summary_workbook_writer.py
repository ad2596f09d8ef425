"""Run summary workbook writer service."""

from __future__ import annotations

from pathlib import Path

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from dynamo_load_tester.metrics_aggregation.run_metrics import RunSummary

from .report_models import RunMetadata

RUN_INFO_SHEET = "RunInfo"
LEVELS_SHEET = "ConcurrencyLevels"
ERRORS_SHEET = "Errors"

LEVEL_COLUMNS = (
    "concurrency_level",
    "operations",
    "successes",
    "errors",
    "success_rate",
    "avg_latency_ms",
    "min_latency_ms",
    "max_latency_ms",
    "p50_ms",
    "p90_ms",
    "p95_ms",
    "p99_ms",
)


def write_summary_workbook(
    summary: RunSummary,
    output_path: Path | str,
    metadata: RunMetadata | None = None,
) -> Path:
    """Write the run summary to an ``.xlsx`` workbook and return its path."""
    workbook = Workbook()
    _write_run_info_sheet(workbook.active, summary, metadata)
    _write_levels_sheet(workbook.create_sheet(LEVELS_SHEET), summary)
    _write_errors_sheet(workbook.create_sheet(ERRORS_SHEET), summary)

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(output)
    return output


def _write_run_info_sheet(sheet, summary: RunSummary, metadata: RunMetadata | None) -> None:
    sheet.title = RUN_INFO_SHEET
    entries: list[tuple[str, object]] = [
        ("target_name", summary.target_name),
        ("started_at", summary.started_at.isoformat()),
        ("finished_at", summary.finished_at.isoformat()),
        ("duration_seconds", round(summary.duration_seconds, 3)),
        ("cancelled", summary.cancelled),
        ("total_operations", summary.total_operations),
        ("total_successes", summary.total_successes),
        ("total_errors", summary.total_errors),
        ("success_rate", round(summary.success_rate, 2)),
        ("throughput_ops_per_second", round(summary.throughput, 2)),
        ("avg_latency_ms", round(summary.average_latency_ms, 2)),
        ("p50_ms", summary.percentiles.p50),
        ("p90_ms", summary.percentiles.p90),
        ("p95_ms", summary.percentiles.p95),
        ("p99_ms", summary.percentiles.p99),
        ("total_attempts", summary.total_attempts),
        ("expected_duplicates", summary.expected_duplicates),
    ]
    if metadata is not None:
        config = metadata.config
        entries.extend(
            (
                ("environment", config.environment),
                ("concurrency_limit", config.concurrency_limit),
                ("max_concurrency_level", config.max_concurrency_level),
                ("max_concurrency_percentage", config.max_concurrency_percentage),
                ("duplicate_percentage", config.duplicate_percentage),
                ("peak_in_flight", metadata.peak_in_flight),
                ("circuit_breaker_openings", metadata.circuit_breaker_openings),
                ("circuit_breaker_rejections", metadata.circuit_breaker_rejections),
            )
        )
        if metadata.cleaned_items is not None:
            entries.append(("cleaned_items", metadata.cleaned_items))
    for row, (key, value) in enumerate(entries, start=1):
        sheet.cell(row=row, column=1, value=key)
        sheet.cell(row=row, column=2, value=value)
    sheet.column_dimensions["A"].width = 30


def _write_levels_sheet(sheet, summary: RunSummary) -> None:
    for column, header in enumerate(LEVEL_COLUMNS, start=1):
        sheet.cell(row=1, column=column, value=header)
        sheet.column_dimensions[get_column_letter(column)].width = max(len(header) + 2, 12)
    for row, level in enumerate(summary.levels, start=2):
        values = (
            level.concurrency_level,
            level.operations,
            level.successes,
            level.errors,
            round(level.success_rate, 2),
            round(level.average_latency_ms, 3),
            round(level.min_latency_ms, 3),
            round(level.max_latency_ms, 3),
            level.percentiles.p50,
            level.percentiles.p90,
            level.percentiles.p95,
            level.percentiles.p99,
        )
        for column, value in enumerate(values, start=1):
            sheet.cell(row=row, column=column, value=value)


def _write_errors_sheet(sheet, summary: RunSummary) -> None:
    sheet.cell(row=1, column=1, value="error_category")
    sheet.cell(row=1, column=2, value="count")
    sheet.cell(row=1, column=3, value="share_percent")
    ordered = sorted(summary.error_counts.items(), key=lambda entry: (-entry[1], entry[0].value))
    for row, (category, count) in enumerate(ordered, start=2):
        share = count * 100.0 / summary.total_operations if summary.total_operations else 0.0
        sheet.cell(row=row, column=1, value=category.value)
        sheet.cell(row=row, column=2, value=count)
        sheet.cell(row=row, column=3, value=round(share, 2))
