from __future__ import annotations

from valoris.errors import ValidationError
from valoris.models.analysis import (
    AnalysisDetails,
    AnalysisResult,
    SpendAnalysisItem,
    VendorAlternative,
)
from valoris.models.records import VendorAggregate

from .normalizer import canonical_category, canonical_segment
from .spend_mapping import (
    ITEM_SAVINGS_MAX,
    ITEM_SAVINGS_MIN,
    PROJECTED_GROWTH,
    build_summary,
    format_currency,
)

"""Local analysis synthesis used when the remote stages cannot be completed.

Output depends only on the vendor aggregates, so the same input always
produces the same result.
"""

__all__ = [
    "FALLBACK_CONFIDENCE",
    "synthesize_item",
    "synthesize_analysis",
]

FALLBACK_CONFIDENCE = 0.7
ALTERNATIVE_DISCOUNTS = (0.88, 0.92)


def _alternatives(vendor: VendorAggregate) -> list[VendorAlternative]:
    return [
        VendorAlternative(
            vendor=f"Alternative {label} for {vendor.vendor}",
            estimated_price=format_currency(vendor.spend * discount),
            feasibility="Requires market validation",
        )
        for label, discount in zip(("A", "B"), ALTERNATIVE_DISCOUNTS, strict=True)
    ]


def synthesize_item(vendor: VendorAggregate, index: int) -> SpendAnalysisItem:
    spend = vendor.spend
    return SpendAnalysisItem(
        id=f"vendor-{index + 1}",
        vendor=vendor.vendor,
        segment=canonical_segment(vendor.segment),
        category=canonical_category(vendor.category),
        type=vendor.category or "Other",
        item=f"{vendor.vendor} Analysis",
        past_spend=spend,
        projected_spend=round(spend * (1 + PROJECTED_GROWTH), 2),
        projected_change=f"+{PROJECTED_GROWTH * 100:.0f}%",
        savings_range=(
            f"{format_currency(spend * ITEM_SAVINGS_MIN)} to {format_currency(spend * ITEM_SAVINGS_MAX)}"
        ),
        savings_percentage="-8 to -15%",
        confidence=FALLBACK_CONFIDENCE,
        details=AnalysisDetails(
            description=f"Estimated optimization for {vendor.vendor} (local estimate)",
            implementation="Review contract terms and request competing quotes",
            timeline="45-90 days",
            risk_level="Medium",
        ),
        alternatives=_alternatives(vendor),
    )


def synthesize_analysis(vendors: list[VendorAggregate], content_hash: str = "") -> AnalysisResult:
    """Build a fallback AnalysisResult, one item per vendor aggregate.

    Raises:
        ValidationError: there is no vendor to build an estimate from
    """
    if not vendors:
        raise ValidationError("no vendor with positive spend to estimate from")
    analysis = [synthesize_item(v, i) for i, v in enumerate(vendors)]
    return AnalysisResult(
        analysis=analysis,
        summary=build_summary(analysis),
        fallback=True,
        content_hash=content_hash,
    )
