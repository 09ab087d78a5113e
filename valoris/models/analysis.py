from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""Analysis result models.

These mirror the JSON contract consumed by the dashboard: attribute names are
snake_case in Python and camelCase on the wire (``to_dict`` / ``from_dict``).

Aggregate invariant: ``summary.past_spend`` and ``summary.projected_spend`` are
the sums of the same fields over ``analysis``. The pipeline never trusts a
remote summary; it always builds the summary locally from the final item list
(see ``valoris.services.spend_mapping.build_summary``).
"""

__all__ = [
    "RISK_LEVELS",
    "VendorAlternative",
    "AnalysisDetails",
    "SpendAnalysisItem",
    "SavingsBand",
    "SummaryMetrics",
    "AnalysisResult",
]

RISK_LEVELS = ("Low", "Medium", "High")


@dataclass(frozen=True)
class VendorAlternative:
    vendor: str
    estimated_price: str
    feasibility: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "vendor": self.vendor,
            "estimatedPrice": self.estimated_price,
            "feasibility": self.feasibility,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> VendorAlternative:
        return VendorAlternative(
            vendor=str(data.get("vendor") or "Alternative Vendor"),
            estimated_price=str(data.get("estimatedPrice") or data.get("price") or "Price on request"),
            feasibility=str(data.get("feasibility") or "Contact vendor for details"),
        )


@dataclass(frozen=True)
class AnalysisDetails:
    description: str
    implementation: str
    timeline: str
    risk_level: str  # one of RISK_LEVELS

    def __post_init__(self) -> None:
        if self.risk_level not in RISK_LEVELS:
            raise ValueError(f"invalid risk level: {self.risk_level!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "implementation": self.implementation,
            "timeline": self.timeline,
            "riskLevel": self.risk_level,
        }

    @staticmethod
    def from_dict(data: Any) -> AnalysisDetails:
        if not isinstance(data, dict):
            data = {}
        risk = str(data.get("riskLevel") or "Medium").capitalize()
        return AnalysisDetails(
            description=str(data.get("description") or ""),
            implementation=str(data.get("implementation") or ""),
            timeline=str(data.get("timeline") or ""),
            risk_level=risk if risk in RISK_LEVELS else "Medium",
        )


@dataclass(frozen=True)
class SpendAnalysisItem:
    """One vendor line of the optimization analysis."""
    id: str
    vendor: str
    segment: str
    category: str
    type: str
    item: str
    past_spend: float
    projected_spend: float
    projected_change: str
    savings_range: str
    savings_percentage: str
    confidence: float  # 0..1
    details: AnalysisDetails
    alternatives: list[VendorAlternative] | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence out of range: {self.confidence}")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "vendor": self.vendor,
            "segment": self.segment,
            "category": self.category,
            "type": self.type,
            "item": self.item,
            "pastSpend": self.past_spend,
            "projectedSpend": self.projected_spend,
            "projectedChange": self.projected_change,
            "savingsRange": self.savings_range,
            "savingsPercentage": self.savings_percentage,
            "confidence": self.confidence,
            "details": self.details.to_dict(),
        }
        if self.alternatives is not None:
            data["alternatives"] = [a.to_dict() for a in self.alternatives]
        return data


@dataclass(frozen=True)
class SavingsBand:
    min: float
    max: float

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2


@dataclass(frozen=True)
class SummaryMetrics:
    past_spend: float
    projected_spend: float
    potential_savings: SavingsBand
    roi: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "pastSpend": self.past_spend,
            "projectedSpend": self.projected_spend,
            "potentialSavings": {
                "min": self.potential_savings.min,
                "max": self.potential_savings.max,
            },
            "roi": self.roi,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Final output of one ingestion.

    ``fallback`` and ``content_hash`` are bookkeeping for logs and callers;
    they are not part of the wire shape returned by ``to_dict``.
    """
    analysis: list[SpendAnalysisItem]
    summary: SummaryMetrics
    fallback: bool = False
    content_hash: str = field(default="", compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "analysis": [item.to_dict() for item in self.analysis],
            "summary": self.summary.to_dict(),
        }
