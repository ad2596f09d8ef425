"""Results writing domain exports."""

from .report_models import RunMetadata
from .summary_text_report import render_summary_text
from .summary_workbook_writer import (
    ERRORS_SHEET,
    LEVELS_SHEET,
    RUN_INFO_SHEET,
    write_summary_workbook,
)

__all__ = [
    "RunMetadata",
    "render_summary_text",
    "write_summary_workbook",
    "RUN_INFO_SHEET",
    "LEVELS_SHEET",
    "ERRORS_SHEET",
]
