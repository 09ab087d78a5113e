from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Run-level result models for a batch of ingested files.

The CLI renders an IngestionResult into the SUMMARY line
(``valoris.services.summary.render_summary_line``).
"""


@dataclass(frozen=True)
class FileStat:
    """Per-file statistics."""
    file_name: str
    status: str  # FileStatus value
    vendors: int
    spend: float
    fallback: bool
    elapsed_seconds: float


@dataclass(frozen=True)
class IngestionResult:
    """Aggregated outcome of one ``ingest_all`` call."""
    completed_files: int
    ready_files: int
    failed_files: int
    total_vendors: int
    total_spend: float
    fallback_files: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    file_stats: list[FileStat] | None = None

    @property
    def total_files(self) -> int:
        return self.completed_files + self.ready_files + self.failed_files
