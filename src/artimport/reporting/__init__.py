"""Console summaries, audit reports and progress logging."""

from __future__ import annotations

from .console import (
    display_bulk_approval,
    display_dry_run_report,
    display_results,
    display_status,
    display_validation_results,
)
from .progress import ProgressLogger
from .reports import (
    DryRunReport,
    DryRunSummary,
    ReportContext,
    artwork_url,
    build_detailed_report,
    default_report_path,
    generate_dry_run_report,
    save_detailed_report,
    save_dry_run_report,
    save_new_artwork_report,
)

__all__ = [
    "DryRunReport",
    "DryRunSummary",
    "ProgressLogger",
    "ReportContext",
    "artwork_url",
    "build_detailed_report",
    "default_report_path",
    "display_bulk_approval",
    "display_dry_run_report",
    "display_results",
    "display_status",
    "display_validation_results",
    "generate_dry_run_report",
    "save_detailed_report",
    "save_dry_run_report",
    "save_new_artwork_report",
]
