from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from valoris.errors import ValorisError, truncate_body
from valoris.models.error_record import ErrorRecord

"""Failure log buffering.

- Fixed JSON Lines schema (no extra keys)
- One ``errors-YYYYMMDD-HHMMSS.log`` (UTC) per run, created on first flush
- Records are buffered in memory and written in one go by ``flush()``

Single event loop, no thread safety required.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """In-memory buffer for error records. Flush writes JSON Lines."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir if logs_dir is not None else LOGS_DIR

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._records)

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def record_error(self, file: str, stage: str, error: Exception) -> ErrorRecord:
        """Build and buffer a record from a raised exception."""
        if isinstance(error, ValorisError):
            error_type = error.error_type
            status = error.status_code if error.status_code is not None else -1
            message = error.message
            body = getattr(error, "body", "")
            if body:
                message = f"{message} body={truncate_body(body)}"
        else:
            error_type = "UNEXPECTED_ERROR"
            status = -1
            message = str(error)
        record = ErrorRecord.create(file, stage, status, error_type, message)
        self.append(record)
        return record

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the run's log file.

        Returns the file path, or None when nothing was ever buffered (no empty
        log files are created for clean runs).
        """
        if not self._records:
            return self._file_path
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
