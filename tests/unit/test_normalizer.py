from __future__ import annotations

import pytest

from valoris.excel.numbers import NumberLocale
from valoris.models.records import NormalizedRecord
from valoris.services.normalizer import (
    FieldSpec,
    canonical_category,
    canonical_segment,
    exact_key,
    extract_category,
    extract_segment,
    extract_spend,
    extract_vendor,
    name_contains,
    normalize_row,
    normalize_rows,
)


def test_vendor_exact_keys_skip_empty_values():
    assert extract_vendor({"Supplier": "", "vendor": "Acme"}) == "Acme"
    assert extract_vendor({"Supplier": "  Beta  "}) == "Beta"


def test_vendor_substring_match():
    assert extract_vendor({"Company Name": "Gamma"}) == "Gamma"
    assert extract_vendor({"SUPPLIER_NAME": "Delta"}) == "Delta"
    assert extract_vendor({"Item": "bolts"}) == ""


def test_spend_exact_keys_in_order():
    assert extract_spend({"Total_Current_Cost": 120, "Spend": 5}) == 120.0
    assert extract_spend({"Total_Current_Cost": 0, "Spend": 5}) == 5.0
    assert extract_spend({"Cost": "42.5"}) == 42.5


def test_spend_substring_with_loose_parse():
    assert extract_spend({"Annual Spend (EUR)": "€ 1200"}) == 1200.0
    assert extract_spend({"Amount": "0,514"}) == pytest.approx(0.514)
    assert extract_spend({"Notes": "n/a"}) == 0.0


def test_spend_with_explicit_locale():
    assert extract_spend({"Spend": "1.234,50"}, NumberLocale.EU) == pytest.approx(1234.5)
    assert extract_spend({"Spend": "1,234"}, NumberLocale.US) == 1234.0
    assert extract_spend({"Amount": "€ 1,234"}, NumberLocale.US) == 1234.0


def test_category_and_segment_defaults():
    assert extract_category({}) == "Software"
    assert extract_segment({}) == "IT"
    assert extract_category({"Type": ""}) == "Software"
    assert extract_segment({"Department": ""}) == "IT"


def test_category_and_segment_lookup():
    assert extract_category({"Category": "Cloud"}) == "Cloud"
    assert extract_category({"Spend Type": "Services"}) == "Services"
    assert extract_segment({"Segment": "Sales"}) == "Sales"
    assert extract_segment({"Cost Department": "Finance"}) == "Finance"


def test_normalize_row():
    rec = normalize_row({"Supplier": "Acme", "Spend": 100, "Category": "Software", "Segment": "IT"})
    assert rec == NormalizedRecord(vendor="Acme", spend=100.0, category="Software", segment="IT")


@pytest.mark.parametrize(
    "row",
    [
        {"Supplier": "", "Spend": 100, "Category": "Software"},
        {"Supplier": "Acme", "Spend": 0, "Category": "Software", "Segment": "IT"},
        {"Supplier": "Acme", "Spend": "0"},
        {"Supplier": "Acme", "Spend": -5},
        {"Category": "Software", "Segment": "IT"},
    ],
)
def test_drop_rule(row):
    assert normalize_row(row) is None


def test_normalize_rows_filters_decorative_rows():
    rows = [
        {"Supplier": "Spend report 2024"},
        {"Supplier": "Acme", "Spend": 10},
        {},
        {"Supplier": "Beta", "Spend": 20},
    ]
    assert [r.vendor for r in normalize_rows(rows)] == ["Acme", "Beta"]


def test_custom_field_spec():
    spec = FieldSpec(
        "owner",
        (exact_key("Owner", str), name_contains(("buyer",), lambda v: f"buyer:{v}")),
        default="nobody",
    )
    assert spec.resolve({"Owner": "Ann"}) == "Ann"
    assert spec.resolve({"Owner": "", "Lead Buyer": "Bob"}) == "buyer:Bob"
    assert spec.resolve({"Lead Buyer": None}) == "nobody"
    assert spec.resolve({}) == "nobody"


def test_canonical_labels():
    assert canonical_category("SaaS tools") == "Software"
    assert canonical_category("Cloud Hosting") == "Cloud"
    assert canonical_category("Legal") == "Legal"
    assert canonical_category("") == "Other"
    assert canonical_segment("Tech") == "IT"
    assert canonical_segment("Human Resources") == "HR"
    assert canonical_segment("") == "Operations"
