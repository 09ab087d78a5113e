from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""Row-level models produced by the normalizer and the vendor aggregator.

RawRow is not a class: it is whatever mapping the tabular reader yields
(column label -> scalar). Column names vary per uploaded file.
"""

__all__ = [
    "RawRow",
    "NormalizedRecord",
    "VendorAggregate",
]

RawRow = dict[str, Any]


@dataclass(frozen=True)
class NormalizedRecord:
    """One spreadsheet row reduced to the four fields the pipeline uses.

    Only emitted when ``vendor`` is non-empty and ``spend`` is positive.
    """
    vendor: str
    spend: float
    category: str
    segment: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "vendor": self.vendor,
            "spend": self.spend,
            "category": self.category,
            "segment": self.segment,
        }


@dataclass(frozen=True)
class VendorAggregate:
    """All records of one vendor (case-insensitive) with spend summed.

    ``vendor``, ``category`` and ``segment`` come from the first record seen.
    """
    vendor: str
    spend: float
    category: str
    segment: str
    row_count: int = 1

    @property
    def key(self) -> str:
        return self.vendor.lower()

    def to_dict(self) -> dict[str, Any]:
        return {
            "vendor": self.vendor,
            "spend": self.spend,
            "category": self.category,
            "segment": self.segment,
        }
