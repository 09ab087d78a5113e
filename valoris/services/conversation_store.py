from __future__ import annotations

import json
import logging
import re
import secrets
import string
import time
from collections.abc import Sequence
from datetime import UTC, datetime

from valoris.models.analysis import AnalysisResult, SpendAnalysisItem, SummaryMetrics
from valoris.models.conversation import ChatContext, ChatMessage, ConversationRecord, VendorSpend
from valoris.models.records import RawRow

"""In-process conversation/context store.

One ConversationRecord per uploaded file, keyed by file id, plus a pointer
to the "current" file. Chat context is recomputed from every stored record on
each call. State lives as long as the store instance; ``clear()`` is the
logout path.
"""

__all__ = [
    "TOP_CATEGORIES",
    "TOP_VENDORS",
    "ConversationStore",
    "generate_file_id",
    "generate_message_id",
]

TOP_CATEGORIES = 5
TOP_VENDORS = 10

_BASE36 = string.digits + string.ascii_lowercase

logger = logging.getLogger(__name__)


def _random_suffix(length: int = 6) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def generate_file_id(file_name: str) -> str:
    """``<sanitised name>_<ms timestamp>_<6 base36 chars>``; unique per call."""
    sanitized = re.sub(r"[^a-zA-Z0-9]", "", file_name).lower()
    return f"{sanitized}_{time.time_ns() // 1_000_000}_{_random_suffix()}"


def generate_message_id() -> str:
    return f"msg_{time.time_ns() // 1_000_000}_{_random_suffix()}"


class ConversationStore:
    def __init__(self) -> None:
        self._records: dict[str, ConversationRecord] = {}
        self._current_id: str | None = None

    def store_analysis(
        self,
        file_id: str,
        file_name: str,
        rows: Sequence[RawRow],
        analysis: list[SpendAnalysisItem],
        summary: SummaryMetrics,
    ) -> ConversationRecord:
        """Create or replace the record for ``file_id`` and make it current."""
        record = ConversationRecord(
            file_id=file_id,
            file_name=file_name,
            upload_timestamp=datetime.now(UTC),
            raw_rows=list(rows),
            analysis_results=list(analysis),
            summary_metrics=summary,
        )
        self._records[file_id] = record
        self._current_id = file_id
        logger.info(
            "stored analysis file=%s vendors=%d spend=%.2f", file_name, len(analysis), summary.past_spend
        )
        return record

    def store_result(
        self, file_id: str, file_name: str, rows: Sequence[RawRow], result: AnalysisResult
    ) -> ConversationRecord:
        return self.store_analysis(file_id, file_name, rows, result.analysis, result.summary)

    def get_chat_context(self, file_id: str | None = None) -> ChatContext:
        target = file_id or self._current_id
        current = self._records.get(target) if target else None
        files = list(self._records.values())

        total_vendors = sum(len(f.analysis_results) for f in files)
        total_spend = sum(f.summary_metrics.past_spend for f in files)
        total_savings = sum(f.summary_metrics.potential_savings.midpoint for f in files)

        category_spend: dict[str, float] = {}
        vendors: list[VendorSpend] = []
        for f in files:
            for item in f.analysis_results:
                category_spend[item.category] = category_spend.get(item.category, 0.0) + item.past_spend
                vendors.append(VendorSpend(name=item.vendor, spend=item.past_spend, category=item.category))

        top_categories = [
            name for name, _ in sorted(category_spend.items(), key=lambda kv: kv[1], reverse=True)
        ][:TOP_CATEGORIES]
        top_vendors = sorted(vendors, key=lambda v: v.spend, reverse=True)[:TOP_VENDORS]

        return ChatContext(
            current_file=current,
            available_files=files,
            total_vendors=total_vendors,
            total_spend=total_spend,
            total_savings=total_savings,
            top_categories=top_categories,
            top_vendors=top_vendors,
        )

    def add_chat_message(self, file_id: str, message: ChatMessage) -> bool:
        """Append to the file's transcript; unknown ids are logged and ignored."""
        record = self._records.get(file_id)
        if record is None:
            logger.warning("conversation not found for file_id=%s; message dropped", file_id)
            return False
        record.conversation_history.append(message)
        return True

    def get_conversation_history(self, file_id: str) -> list[ChatMessage]:
        record = self._records.get(file_id)
        return list(record.conversation_history) if record else []

    def available_files(self) -> list[ConversationRecord]:
        return list(self._records.values())

    def set_current_file(self, file_id: str) -> bool:
        if file_id in self._records:
            self._current_id = file_id
            return True
        logger.warning("file not found: %s", file_id)
        return False

    @property
    def current_file(self) -> ConversationRecord | None:
        return self._records.get(self._current_id) if self._current_id else None

    def clear(self) -> None:
        self._records.clear()
        self._current_id = None

    def export_conversation(self, file_id: str) -> str:
        """JSON export of one file's summary and transcript ('' when unknown)."""
        record = self._records.get(file_id)
        if record is None:
            return ""
        summary = record.summary_metrics
        data = {
            "fileName": record.file_name,
            "analysisDate": record.upload_timestamp.isoformat(),
            "vendorCount": len(record.analysis_results),
            "totalSpend": summary.past_spend,
            "potentialSavings": {"min": summary.potential_savings.min, "max": summary.potential_savings.max},
            "conversationHistory": [
                {"role": m.role, "content": m.content, "timestamp": m.timestamp.isoformat()}
                for m in record.conversation_history
            ],
        }
        return json.dumps(data, indent=2, ensure_ascii=False)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, file_id: object) -> bool:
        return file_id in self._records
