"""Domain models for the Valoris spend analysis pipeline.

Row-level records, analysis results, conversation records and per-file
ingestion state. All JSON-facing models expose ``to_dict`` producing the
camelCase wire shape used by the dashboard.
"""

from .analysis import (
    AnalysisDetails,
    AnalysisResult,
    SavingsBand,
    SpendAnalysisItem,
    SummaryMetrics,
    VendorAlternative,
)
from .conversation import ChatContext, ChatMessage, ConversationRecord, MessageContext, VendorSpend
from .records import NormalizedRecord, RawRow, VendorAggregate
from .uploaded_file import FileKind, FileStatus, UploadedFile

__all__ = [
    # Row models
    "RawRow",
    "NormalizedRecord",
    "VendorAggregate",
    # Analysis models
    "AnalysisDetails",
    "AnalysisResult",
    "SavingsBand",
    "SpendAnalysisItem",
    "SummaryMetrics",
    "VendorAlternative",
    # Conversation models
    "ChatContext",
    "ChatMessage",
    "ConversationRecord",
    "MessageContext",
    "VendorSpend",
    # Ingestion models
    "FileKind",
    "FileStatus",
    "UploadedFile",
]
