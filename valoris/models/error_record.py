from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines failure log.

One record per failed remote stage call or undecodable upload. ``status`` is
the HTTP status code when one was received and -1 otherwise (transport
failures, parsing failures of uploaded files).
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Uploaded file name, or the content hash when no name is known
        stage: Pipeline stage (``read``, ``analyze``, ``normalize``, ``enrich``)
        status: HTTP status code, -1 when not applicable
        error_type: Taxonomy code in UPPER_SNAKE_CASE
        message: Error message including the truncated response body
    """
    timestamp: str
    file: str
    stage: str
    status: int
    error_type: str
    message: str

    @staticmethod
    def create(file: str, stage: str, status: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            stage=stage,
            status=status,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        """Serialize to a single JSON line without extra keys."""
        return json.dumps(asdict(self), ensure_ascii=False)
