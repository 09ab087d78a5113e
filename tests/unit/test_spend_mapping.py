from __future__ import annotations

import pytest

from valoris.errors import ValidationError
from valoris.services.spend_mapping import (
    build_summary,
    map_items,
    map_workflow_item,
    parse_price,
)


def test_parse_price():
    assert parse_price("108.50 €") == 108.5
    assert parse_price("$1,080.50") == 1080.5
    assert parse_price(99) == 99.0
    assert parse_price(None) == 0.0
    assert parse_price("on request") == 0.0


def test_workflow_item_with_cheaper_alternatives():
    item = map_workflow_item(
        {
            "itemName": "Bolt Co",
            "spend": 1000,
            "uniqueId": "u1",
            "category": "MRO",
            "subCategory": "Fasteners",
            "additionalInformation": "framework contract",
            "alternatives": [
                {"vendor": "Nut Co", "price": "850.00 €", "feasibility": "High"},
                {"vendor": "Screw Co", "price": "900"},
            ],
        },
        0,
    )
    assert item.id == "u1"
    assert item.vendor == "Bolt Co"
    assert item.category == "Fasteners"
    assert item.type == "MRO"
    assert item.past_spend == 1000.0
    assert item.projected_spend == 1050.0
    assert item.projected_change == "+5%"
    assert item.savings_range == "€150 to €200"
    assert item.savings_percentage == "-15 to -20%"
    assert item.confidence == 0.95
    assert item.details.risk_level == "Low"
    assert item.details.timeline == "30-60 days"
    assert [a.vendor for a in item.alternatives] == ["Nut Co", "Screw Co"]
    assert item.alternatives[0].estimated_price == "850.00 €"


def test_workflow_item_without_alternatives():
    item = map_workflow_item({"spend": 200, "additionalInformation": "-"}, 2)
    assert item.id == "vendor-3"
    assert item.vendor == "Vendor 3"
    assert item.category == "Hardware"
    assert item.savings_range == "€16 to €30"
    assert item.savings_percentage == "-8 to -15%"
    assert item.confidence == 0.7
    assert item.details.risk_level == "Medium"
    assert item.details.timeline == "45-90 days"
    assert item.alternatives == []


def test_workflow_item_more_expensive_alternative_keeps_default_band():
    item = map_workflow_item({"itemName": "X", "spend": 100, "alternatives": [{"price": "150"}]}, 0)
    assert item.savings_percentage == "-8 to -15%"
    assert item.confidence == 0.8


def test_map_items_accepts_analysis_shape(enrich_body):
    items = map_items(enrich_body["analysis"])
    assert items[0].id == "a1"
    assert items[0].details.risk_level == "Low"
    assert items[1].id == "vendor-2"
    assert items[1].details.risk_level == "Medium"
    assert items[1].alternatives is None


def test_map_items_skips_non_dicts_and_rejects_empty():
    assert len(map_items(["noise", {"itemName": "A", "spend": 1}])) == 1
    with pytest.raises(ValidationError):
        map_items([])
    with pytest.raises(ValidationError):
        map_items(["noise"])


def test_map_items_rejects_invalid_fields():
    with pytest.raises(ValidationError):
        map_items([{"vendor": "A", "pastSpend": 1, "confidence": 1.5}])
    with pytest.raises(ValidationError):
        map_items([{"vendor": "A", "pastSpend": "lots"}])


def test_map_items_tolerates_loose_nested_fields():
    [item] = map_items([{"vendor": "A", "pastSpend": 1, "details": "text", "alternatives": 3}])
    assert item.details.risk_level == "Medium"
    assert item.alternatives is None
    [workflow] = map_items([{"itemName": "B", "spend": 10, "alternatives": "none"}])
    assert workflow.alternatives == []
    assert workflow.confidence == 0.7


def test_map_items_wraps_unexpected_item_errors(monkeypatch):
    def broken(data, index):
        raise AttributeError("'int' object has no attribute 'get'")

    monkeypatch.setattr("valoris.services.spend_mapping.map_workflow_item", broken)
    with pytest.raises(ValidationError, match="item 1 is malformed"):
        map_items([{"itemName": "A", "spend": 1}])


def test_build_summary_sums_exactly():
    items = map_items([
        {"vendor": "A", "pastSpend": 100.1, "projectedSpend": 105.3},
        {"vendor": "B", "pastSpend": 50.45, "projectedSpend": 52.2},
        {"vendor": "C", "pastSpend": 0.2, "projectedSpend": 0.1},
    ])
    summary = build_summary(items)
    assert summary.past_spend == sum(i.past_spend for i in items)
    assert summary.projected_spend == sum(i.projected_spend for i in items)
    assert summary.potential_savings.min == pytest.approx(summary.past_spend * 0.08)
    assert summary.potential_savings.max == pytest.approx(summary.past_spend * 0.18)
    assert summary.roi == 13


def test_build_summary_empty():
    summary = build_summary([])
    assert summary.past_spend == 0
    assert summary.roi == 0
