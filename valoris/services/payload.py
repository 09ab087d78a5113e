from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from ..models.records import RawRow, VendorAggregate
from .normalizer import canonical_category, canonical_segment

"""Stage 1 request payload preparation.

Two shapes are sent to the normalization stage:

- ``json``: the grouped vendor list (at most MAX_SAMPLE_ROWS) plus summary
  statistics, used whenever local extraction found at least two vendors
  with positive spend
- ``markdown``: a plain-text table of the *raw* rows, sorted by a
  best-effort spend column and capped to MAX_TABLE_ROWS, used when local
  extraction was too sparse; the remote analyser gets the surrounding
  columns to work from instead
"""

__all__ = [
    "MAX_SAMPLE_ROWS",
    "MAX_TABLE_ROWS",
    "MAX_TABLE_COLUMNS",
    "MIN_VENDORS_WITH_SPEND",
    "StagePayload",
    "best_effort_spend",
    "build_markdown_table",
    "build_json_summary",
    "prepare_payload",
]

MAX_SAMPLE_ROWS = 100
MAX_TABLE_ROWS = 12
MAX_TABLE_COLUMNS = 10
MAX_CELL_CHARS = 100
MIN_VENDORS_WITH_SPEND = 2
LARGE_PAYLOAD_CHARS = 50_000

SPEND_SORT_KEYS = ("Annual Spend", "Spend", "Amount", "Cost")


@dataclass(frozen=True)
class StagePayload:
    format: str  # "json" | "markdown"
    body: dict[str, Any]

    @property
    def is_markdown(self) -> bool:
        return self.format == "markdown"


def best_effort_spend(row: RawRow) -> float:
    """Sort key for raw rows: first truthy well-known spend column."""
    raw: Any = 0
    for key in SPEND_SORT_KEYS:
        if row.get(key):
            raw = row[key]
            break
    cleaned = re.sub(r"[^\d.-]", "", str(raw))
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def _markdown_cell(value: Any) -> str:
    if value is None:
        return ""
    text = str(value).replace("|", "\\|").replace("\n", " ").strip()
    return text[:MAX_CELL_CHARS]


def build_markdown_table(rows: list[RawRow]) -> str:
    if not rows:
        return "No data available"

    columns: list[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    columns = columns[:MAX_TABLE_COLUMNS]

    ranked = sorted(rows, key=best_effort_spend, reverse=True)[:MAX_TABLE_ROWS]

    lines = [
        "# Procurement Data",
        "",
        f"**Total Records:** {len(rows)}",
        "",
        "| " + " | ".join(columns) + " |",
        "| " + " | ".join("---" for _ in columns) + " |",
    ]
    for row in ranked:
        lines.append("| " + " | ".join(_markdown_cell(row.get(c)) for c in columns) + " |")
    if len(rows) > MAX_TABLE_ROWS:
        lines.append("")
        lines.append(f"*Showing top {MAX_TABLE_ROWS} highest-spend rows of {len(rows)} total records*")
    return "\n".join(lines) + "\n"


def build_json_summary(rows: list[RawRow], vendors: list[VendorAggregate]) -> dict[str, Any]:
    sample = vendors[:MAX_SAMPLE_ROWS]
    sample_rows = [
        {
            "vendor": v.vendor,
            "spend": round(v.spend, 2),
            "category": canonical_category(v.category),
            "segment": canonical_segment(v.segment),
        }
        for v in sample
    ]
    with_spend = [v for v in sample if v.spend > 0]
    avg = sum(v.spend for v in sample) / len(sample) if sample else 0.0
    return {
        "totalRows": len(rows),
        "sampleRows": sample_rows,
        "columns": list(sample_rows[0].keys()) if sample_rows else [],
        "dataQuality": {
            "totalVendors": len(sample),
            "withSpendData": len(with_spend),
            "avgSpend": avg,
        },
    }


def prepare_payload(
    rows: list[RawRow], vendors: list[VendorAggregate], schema_version: str
) -> StagePayload:
    """Pick the payload shape for stage 1 and build it."""
    with_spend = [v for v in vendors if v.spend > 0]
    if len(with_spend) < MIN_VENDORS_WITH_SPEND:
        return StagePayload(
            format="markdown",
            body={"schemaVersion": schema_version, "format": "markdown", "csv_data": build_markdown_table(rows)},
        )
    return StagePayload(
        format="json",
        body={"schemaVersion": schema_version, "format": "json", "data": build_json_summary(rows, vendors)},
    )
