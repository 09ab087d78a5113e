from __future__ import annotations

import pytest

from valoris.errors import ValidationError
from valoris.models.records import VendorAggregate
from valoris.services.fallback import FALLBACK_CONFIDENCE, synthesize_analysis


def _vendors() -> list[VendorAggregate]:
    return [
        VendorAggregate("Acme", 150.0, "saas", "tech", row_count=2),
        VendorAggregate("Other", 10.0, "Consulting", "Finance"),
    ]


def test_one_item_per_vendor():
    result = synthesize_analysis(_vendors(), "hash")
    assert result.fallback is True
    assert result.content_hash == "hash"
    assert [i.vendor for i in result.analysis] == ["Acme", "Other"]
    first = result.analysis[0]
    assert first.past_spend == 150.0
    assert first.projected_spend == 157.5
    assert first.confidence == FALLBACK_CONFIDENCE
    assert first.category == "Software"
    assert first.segment == "IT"
    assert len(first.alternatives) == 2
    assert first.details.risk_level == "Medium"


def test_summary_matches_items():
    result = synthesize_analysis(_vendors())
    assert result.summary.past_spend == sum(i.past_spend for i in result.analysis)
    assert result.summary.projected_spend == sum(i.projected_spend for i in result.analysis)


def test_deterministic():
    assert synthesize_analysis(_vendors()) == synthesize_analysis(_vendors())


def test_wire_shape_matches_remote_shape():
    data = synthesize_analysis(_vendors()).to_dict()
    assert set(data) == {"analysis", "summary"}
    assert {"pastSpend", "projectedSpend", "details", "alternatives"} <= set(data["analysis"][0])


def test_empty_input_is_an_error():
    with pytest.raises(ValidationError):
        synthesize_analysis([])
