from __future__ import annotations

from ..models.processing_result import IngestionResult

"""SUMMARY line rendering.

Format:
SUMMARY files={n} completed={c} ready={r} failed={f} vendors={v}
spend={s} fallback={b} elapsed_sec={e}
"""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if abs(value) < 0.01:
        # avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.2f}".rstrip("0").rstrip(".")


def render_summary_line(result: IngestionResult) -> str:
    """Render the one-line run summary.

    >>> from datetime import datetime, timezone
    >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
    >>> render_summary_line(IngestionResult(2, 1, 0, 5, 1500.5, 1, t, t, 2.0))
    'SUMMARY files=3 completed=2 ready=1 failed=0 vendors=5 spend=1500.5 fallback=1 elapsed_sec=2'
    """
    return (
        f"SUMMARY files={result.total_files} "
        f"completed={result.completed_files} "
        f"ready={result.ready_files} "
        f"failed={result.failed_files} "
        f"vendors={result.total_vendors} "
        f"spend={_format_number(result.total_spend)} "
        f"fallback={result.fallback_files} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)}"
    )
