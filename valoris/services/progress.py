from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from valoris.models.uploaded_file import FileStatus

"""Batch ingestion progress bar (tqdm, TTY only).

Non-TTY runs (CI, piped output) get no bar at all so the labeled log lines
stay clean. The postfix tracks completed / ready / failed counts.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """One bar over the files of an ingestion run."""

    def __init__(self, total_files: int, *, description: str = "Analyzing files") -> None:
        self.total_files = total_files
        self.description = description
        self.current_file = 0
        self.counts: dict[str, int] = {"completed": 0, "ready": 0, "failed": 0}

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_files,
                desc=description,
                unit="file",
                leave=True,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_file(self, file_name: str) -> None:
        self.current_file += 1
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({file_name})")

    def finish_file(self, status: FileStatus) -> None:
        """Count the file's final status and advance the bar."""
        if status is FileStatus.COMPLETED:
            self.counts["completed"] += 1
        elif status is FileStatus.READY:
            self.counts["ready"] += 1
        else:
            self.counts["failed"] += 1

        if self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_description(self.description)
            self.pbar.set_postfix(**self.counts)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
