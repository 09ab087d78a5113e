from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path

from ..errors import ParsingError, ValidationError
from ..excel.numbers import NumberLocale
from ..excel.reader import read_tabular_file
from ..logging.error_log import ErrorLogBuffer
from ..models.processing_result import FileStat, IngestionResult
from ..models.uploaded_file import FileKind, FileStatus, UploadedFile, classify_file
from .conversation_store import ConversationStore, generate_file_id
from .pipeline import AnalysisPipeline
from .progress import ProgressTracker

"""Ingestion orchestration.

Routes each file by suffix:

- workbook / delimited text: read -> analyze -> store (COMPLETED)
- PDF / image: listed without analysis (READY)
- anything else: ERROR ("unsupported file type")

Files are handled strictly one after another. A failure is isolated to its
file (ERROR status plus an error log record); only ConfigError escapes, since
no file can be analysed without the service configuration.
"""

__all__ = [
    "READ_STAGE",
    "ANALYZE_STAGE",
    "IngestionService",
]

READ_STAGE = "read"
ANALYZE_STAGE = "analyze"

logger = logging.getLogger(__name__)


class IngestionService:
    def __init__(
        self,
        pipeline: AnalysisPipeline,
        store: ConversationStore,
        error_log: ErrorLogBuffer | None = None,
        locale: NumberLocale = NumberLocale.NONE,
    ) -> None:
        self.pipeline = pipeline
        self.store = store
        self.error_log = error_log if error_log is not None else pipeline.error_log
        self.locale = locale

    def _fail(self, uploaded: UploadedFile, stage: str, error: Exception) -> UploadedFile:
        if self.error_log is not None:
            self.error_log.record_error(uploaded.name, stage, error)
        logger.error("file=%s stage=%s %s", uploaded.name, stage, error)
        return replace(uploaded, status=FileStatus.ERROR, end_time=datetime.now(UTC), error=str(error))

    async def ingest(self, path: Path) -> UploadedFile:
        """Run one file through its route and return its final state.

        Raises:
            ConfigError: the analysis service is not configured
        """
        uploaded = UploadedFile(
            path=path,
            name=path.name,
            size=path.stat().st_size if path.exists() else 0,
            kind=classify_file(path),
            status=FileStatus.PROCESSING,
            start_time=datetime.now(UTC),
        )

        if uploaded.kind in (FileKind.DOCUMENT, FileKind.IMAGE):
            logger.info("file=%s kind=%s accepted without analysis", uploaded.name, uploaded.kind.value)
            return replace(uploaded, status=FileStatus.READY, end_time=datetime.now(UTC))
        if uploaded.kind is FileKind.UNSUPPORTED:
            return self._fail(uploaded, READ_STAGE, ParsingError(f"unsupported file type: {path.suffix or path.name}"))

        try:
            rows = read_tabular_file(path, self.locale)
        except ParsingError as e:
            return self._fail(uploaded, READ_STAGE, e)
        uploaded = replace(uploaded, row_count=len(rows))

        try:
            result = await self.pipeline.analyze(rows, uploaded.name)
        except ValidationError as e:
            return self._fail(uploaded, ANALYZE_STAGE, e)

        file_id = generate_file_id(uploaded.name)
        self.store.store_result(file_id, uploaded.name, rows, result)
        logger.info(
            "file=%s completed rows=%d vendors=%d spend=%.2f fallback=%s",
            uploaded.name, len(rows), len(result.analysis), result.summary.past_spend, result.fallback,
        )
        return replace(
            uploaded,
            status=FileStatus.COMPLETED,
            file_id=file_id,
            vendor_count=len(result.analysis),
            total_spend=result.summary.past_spend,
            fallback=result.fallback,
            end_time=datetime.now(UTC),
        )

    async def ingest_all(self, paths: Sequence[Path]) -> IngestionResult:
        start_time = datetime.now(UTC)
        file_stats: list[FileStat] = []
        completed = ready = failed = fallback_files = total_vendors = 0
        total_spend = 0.0

        with ProgressTracker(len(paths)) as progress:
            for path in paths:
                progress.start_file(path.name)
                uploaded = await self.ingest(path)
                progress.finish_file(uploaded.status)

                if uploaded.status is FileStatus.COMPLETED:
                    completed += 1
                    total_vendors += uploaded.vendor_count
                    total_spend += uploaded.total_spend
                    if uploaded.fallback:
                        fallback_files += 1
                elif uploaded.status is FileStatus.READY:
                    ready += 1
                else:
                    failed += 1

                elapsed = (
                    (uploaded.end_time - uploaded.start_time).total_seconds()
                    if uploaded.start_time and uploaded.end_time
                    else 0.0
                )
                file_stats.append(
                    FileStat(
                        file_name=uploaded.name,
                        status=uploaded.status.value,
                        vendors=uploaded.vendor_count,
                        spend=uploaded.total_spend,
                        fallback=uploaded.fallback,
                        elapsed_seconds=elapsed,
                    )
                )

        end_time = datetime.now(UTC)
        return IngestionResult(
            completed_files=completed,
            ready_files=ready,
            failed_files=failed,
            total_vendors=total_vendors,
            total_spend=total_spend,
            fallback_files=fallback_files,
            start_time=start_time,
            end_time=end_time,
            elapsed_seconds=(end_time - start_time).total_seconds(),
            file_stats=file_stats,
        )
