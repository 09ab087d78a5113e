from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

"""UploadedFile domain model and FileStatus enum.

An UploadedFile tracks one dropped/picked file through ingestion:
pending -> processing -> (completed | error), or pending -> ready for
accepted file types that are not analysed (PDF, images).
"""


class FileStatus(Enum):
    """Status of one uploaded file.

    - PENDING: accepted, not yet looked at
    - PROCESSING: being read / analysed
    - COMPLETED: analysis stored in the conversation store
    - READY: accepted type that is listed but not analysed
    - ERROR: undecodable or unsupported file (error badge in the UI)
    """
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    READY = "ready"
    ERROR = "error"


class FileKind(Enum):
    WORKBOOK = "workbook"
    DELIMITED = "delimited"
    DOCUMENT = "document"
    IMAGE = "image"
    UNSUPPORTED = "unsupported"


WORKBOOK_SUFFIXES = {".xlsx", ".xlsm", ".xls"}
DELIMITED_SUFFIXES = {".csv", ".tsv", ".txt"}
DOCUMENT_SUFFIXES = {".pdf"}
IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg"}


def classify_file(path: Path) -> FileKind:
    """Map a file name to the ingestion route it takes."""
    suffix = path.suffix.lower()
    if suffix in WORKBOOK_SUFFIXES:
        return FileKind.WORKBOOK
    if suffix in DELIMITED_SUFFIXES:
        return FileKind.DELIMITED
    if suffix in DOCUMENT_SUFFIXES:
        return FileKind.DOCUMENT
    if suffix in IMAGE_SUFFIXES:
        return FileKind.IMAGE
    return FileKind.UNSUPPORTED


@dataclass(frozen=True)
class UploadedFile:
    """Ingestion outcome for a single file."""
    path: Path
    name: str
    size: int
    kind: FileKind
    status: FileStatus = FileStatus.PENDING
    file_id: str | None = None           # ConversationStore key once COMPLETED
    row_count: int = 0                   # RawRows read from the file
    vendor_count: int = 0                # items in the stored analysis
    total_spend: float = 0.0             # summary past spend
    fallback: bool = False               # analysis synthesised locally
    start_time: datetime | None = None
    end_time: datetime | None = None
    error: str | None = None

    @property
    def analyzable(self) -> bool:
        return self.kind in (FileKind.WORKBOOK, FileKind.DELIMITED)
