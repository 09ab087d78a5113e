from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .analysis import SpendAnalysisItem, SummaryMetrics
from .records import RawRow

"""Conversation models for the chat assistant.

A ConversationRecord bundles one uploaded file's analysis with its chat
transcript. The transcript is append-only; messages are frozen once created.
"""

__all__ = [
    "ROLES",
    "MessageContext",
    "ChatMessage",
    "ConversationRecord",
    "VendorSpend",
    "ChatContext",
]

ROLES = ("user", "assistant")


@dataclass(frozen=True)
class MessageContext:
    file_id: str
    vendor_mentioned: list[str] | None = None
    savings_calculated: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"fileId": self.file_id}
        if self.vendor_mentioned is not None:
            data["vendorMentioned"] = list(self.vendor_mentioned)
        if self.savings_calculated is not None:
            data["savingsCalculated"] = self.savings_calculated
        return data


@dataclass(frozen=True)
class ChatMessage:
    id: str
    role: str  # one of ROLES
    content: str
    timestamp: datetime
    context: MessageContext | None = None

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"invalid chat role: {self.role!r}")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.context is not None:
            data["context"] = self.context.to_dict()
        return data


@dataclass
class ConversationRecord:
    """Per-file bundle owned by the ConversationStore."""
    file_id: str
    file_name: str
    upload_timestamp: datetime
    raw_rows: list[RawRow]
    analysis_results: list[SpendAnalysisItem]
    summary_metrics: SummaryMetrics
    conversation_history: list[ChatMessage] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "fileId": self.file_id,
            "fileName": self.file_name,
            "uploadTimestamp": self.upload_timestamp.isoformat(),
            "analysisResults": [item.to_dict() for item in self.analysis_results],
            "summaryMetrics": self.summary_metrics.to_dict(),
            "conversationHistory": [m.to_dict() for m in self.conversation_history],
        }


@dataclass(frozen=True)
class VendorSpend:
    name: str
    spend: float
    category: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "spend": self.spend, "category": self.category}


@dataclass(frozen=True)
class ChatContext:
    """Aggregate view over every stored file, rebuilt on each request."""
    current_file: ConversationRecord | None
    available_files: list[ConversationRecord]
    total_vendors: int
    total_spend: float
    total_savings: float
    top_categories: list[str]
    top_vendors: list[VendorSpend]

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentFile": self.current_file.to_dict() if self.current_file else None,
            "availableFiles": [
                {"fileId": f.file_id, "fileName": f.file_name} for f in self.available_files
            ],
            "totalVendors": self.total_vendors,
            "totalSpend": self.total_spend,
            "totalSavings": self.total_savings,
            "topCategories": list(self.top_categories),
            "topVendors": [v.to_dict() for v in self.top_vendors],
        }
