from __future__ import annotations

from orderdesk.models.import_result import ImportResult

"""SUMMARY line rendering."""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # 지수 표기 회피
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ImportResult) -> str:
    """Render the SUMMARY line for one import run.

    Format:
    SUMMARY file={name} rows={n} new={n} updated={n} unchanged={n} upserted={n} elapsed_sec={x}

    Examples:
        >>> from datetime import datetime, timezone
        >>> from orderdesk.models.import_result import AnalysisResult
        >>> start = datetime(2024, 5, 3, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 5, 3, 10, 0, 2, tzinfo=timezone.utc)
        >>> analysis = AnalysisResult("orders.xlsx", total_rows=10, new_rows=2, updated_rows=1)
        >>> render_summary_line(ImportResult(analysis, 3, start, end, 2.0, uploaded=True))
        'SUMMARY file=orders.xlsx rows=10 new=2 updated=1 unchanged=7 upserted=3 elapsed_sec=2'
    """
    a = result.analysis
    return (
        f"SUMMARY file={a.file_name} "
        f"rows={a.total_rows} "
        f"new={a.new_rows} "
        f"updated={a.updated_rows} "
        f"unchanged={a.unchanged_rows} "
        f"upserted={result.upserted_rows} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
