from __future__ import annotations

import re
from typing import Any

from valoris.errors import ValidationError
from valoris.models.analysis import (
    AnalysisDetails,
    SavingsBand,
    SpendAnalysisItem,
    SummaryMetrics,
    VendorAlternative,
)

"""Mapping of remote stage items onto SpendAnalysisItem, and local summaries.

Two item shapes are understood:

- analysis-shaped items (``vendor`` + ``pastSpend``) are taken as they are
- workflow-shaped items (``itemName``, ``spend``, ``alternatives`` with a
  ``price`` string) get projected spend, a savings band and a confidence
  derived from the alternatives offered
"""

__all__ = [
    "PROJECTED_GROWTH",
    "SUMMARY_SAVINGS_MIN",
    "SUMMARY_SAVINGS_MAX",
    "format_currency",
    "parse_price",
    "map_analysis_item",
    "map_workflow_item",
    "map_items",
    "build_summary",
]

PROJECTED_GROWTH = 0.05
ITEM_SAVINGS_MIN = 0.08
ITEM_SAVINGS_MAX = 0.15
ALTERNATIVE_SAVINGS_MAX = 0.20
SUMMARY_SAVINGS_MIN = 0.08
SUMMARY_SAVINGS_MAX = 0.18

BASE_CONFIDENCE = 0.70


def format_currency(amount: float) -> str:
    return f"€{amount:,.0f}"


def parse_price(value: Any) -> float:
    """'108.50 €' -> 108.5; anything unparsable -> 0.0."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    cleaned = re.sub(r"[€$,\s]", "", str(value or ""))
    match = re.match(r"^-?\d+(?:\.\d+)?", cleaned)
    return float(match.group(0)) if match else 0.0


def _float(value: Any, field_name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"item field {field_name!r} is not numeric: {value!r}") from e


def map_analysis_item(data: dict[str, Any], index: int) -> SpendAnalysisItem:
    """Accept an item that already carries the analysis fields."""
    vendor = str(data["vendor"])
    past = _float(data["pastSpend"], "pastSpend")
    alternatives = data.get("alternatives")
    try:
        return SpendAnalysisItem(
            id=str(data.get("id") or f"vendor-{index + 1}"),
            vendor=vendor,
            segment=str(data.get("segment") or "Operations"),
            category=str(data.get("category") or "Other"),
            type=str(data.get("type") or ""),
            item=str(data.get("item") or f"{vendor} Analysis"),
            past_spend=past,
            projected_spend=_float(data.get("projectedSpend", past), "projectedSpend"),
            projected_change=str(data.get("projectedChange") or "0%"),
            savings_range=str(data.get("savingsRange") or ""),
            savings_percentage=str(data.get("savingsPercentage") or ""),
            confidence=_float(data.get("confidence", BASE_CONFIDENCE), "confidence"),
            details=AnalysisDetails.from_dict(data.get("details")),
            alternatives=(
                [VendorAlternative.from_dict(a) for a in alternatives if isinstance(a, dict)]
                if isinstance(alternatives, list)
                else None
            ),
        )
    except ValueError as e:
        raise ValidationError(f"item {index + 1} ({vendor}): {e}") from e


def map_workflow_item(data: dict[str, Any], index: int) -> SpendAnalysisItem:
    """Map a workflow item (itemName/spend/alternatives) onto the analysis shape."""
    vendor = str(data.get("itemName") or f"Vendor {index + 1}")
    past = parse_price(data.get("spend", 0))
    projected = round(past * (1 + PROJECTED_GROWTH), 2)

    min_savings: float = round(past * ITEM_SAVINGS_MIN)
    max_savings: float = round(past * ITEM_SAVINGS_MAX)
    savings_percentage = "-8 to -15%"

    listed = data.get("alternatives")
    raw_alternatives = [a for a in listed if isinstance(a, dict)] if isinstance(listed, list) else []
    prices = [p for p in (parse_price(a.get("price") or a.get("estimatedPrice")) for a in raw_alternatives) if p > 0]
    if prices:
        cheapest = min(prices)
        if cheapest < past:
            min_savings = past - cheapest
            max_savings = round(past * ALTERNATIVE_SAVINGS_MAX)
            savings_percentage = f"-{round((past - cheapest) / past * 100)} to -20%"

    alternatives = [VendorAlternative.from_dict(a) for a in raw_alternatives]
    count = len(alternatives)

    confidence = BASE_CONFIDENCE
    if count > 0:
        confidence += 0.10
    if count > 1:
        confidence += 0.10
    info = data.get("additionalInformation")
    if info and info != "-":
        confidence += 0.05

    return SpendAnalysisItem(
        id=str(data.get("uniqueId") or f"vendor-{index + 1}"),
        vendor=vendor,
        segment="Operations",
        category=str(data.get("subCategory") or data.get("category") or "Hardware"),
        type=str(data.get("category") or "MRO"),
        item=f"{vendor} Analysis",
        past_spend=past,
        projected_spend=projected,
        projected_change=f"+{PROJECTED_GROWTH * 100:.0f}%",
        savings_range=f"{format_currency(min_savings)} to {format_currency(max_savings)}",
        savings_percentage=savings_percentage,
        confidence=round(min(confidence, 1.0), 2),
        details=AnalysisDetails(
            description=f"Analysis for {vendor} - {count} alternatives found",
            implementation=(
                f"Compare with {count} alternative(s) and negotiate terms"
                if count
                else "Review contract terms and market alternatives"
            ),
            timeline="30-60 days" if count > 1 else "45-90 days",
            risk_level="Low" if count else "Medium",
        ),
        alternatives=alternatives,
    )


def map_items(items: list[Any]) -> list[SpendAnalysisItem]:
    """Map every dict in ``items``; non-dict entries are ignored.

    Raises:
        ValidationError: no usable item, or an item with invalid fields
    """
    mapped: list[SpendAnalysisItem] = []
    for index, data in enumerate(items):
        if not isinstance(data, dict):
            continue
        try:
            if "vendor" in data and "pastSpend" in data:
                mapped.append(map_analysis_item(data, index))
            else:
                mapped.append(map_workflow_item(data, index))
        except (TypeError, AttributeError, KeyError) as e:
            raise ValidationError(f"item {index + 1} is malformed: {e}") from e
    if not mapped:
        raise ValidationError("response contained no analysis items")
    return mapped


def build_summary(analysis: list[SpendAnalysisItem]) -> SummaryMetrics:
    """Summary computed from the final item list.

    ``past_spend`` and ``projected_spend`` are plain sums over ``analysis`` so
    they always agree with the items they describe.
    """
    past = sum(item.past_spend for item in analysis)
    projected = sum(item.projected_spend for item in analysis)
    band = SavingsBand(min=past * SUMMARY_SAVINGS_MIN, max=past * SUMMARY_SAVINGS_MAX)
    roi = round(band.midpoint / past * 100) if past else 0
    return SummaryMetrics(past_spend=past, projected_spend=projected, potential_savings=band, roi=roi)
