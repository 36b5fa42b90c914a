from __future__ import annotations

from ..models.entity_row import EntityKind
from ..models.validation_report import ValidationReport

"""SUMMARY line rendering for batch validation runs."""


def _format_seconds(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # avoid scientific notation for very small values
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(report: ValidationReport) -> str:
    """Render the SUMMARY line for a finished run.

    Format:
    SUMMARY files={loaded}/{total} clients={n} workers={n} tasks={n}
    errors={n} elapsed_sec={elapsed}

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2025, 1, 1, tzinfo=timezone.utc)
        >>> report = ValidationReport(
        ...     files=[], stats={}, errors=[], start_time=t, end_time=t, elapsed_seconds=2.0
        ... )
        >>> render_summary_line(report)
        'SUMMARY files=0/0 clients=0 workers=0 tasks=0 errors=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY files={report.loaded_files}/{len(report.files)} "
        f"clients={report.rows_for(EntityKind.CLIENT)} "
        f"workers={report.rows_for(EntityKind.WORKER)} "
        f"tasks={report.rows_for(EntityKind.TASK)} "
        f"errors={report.total_errors} "
        f"elapsed_sec={_format_seconds(report.elapsed_seconds)}"
    )
