from __future__ import annotations

import math
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from ..excel.numbers import NumberLocale, loose_number, parse_number
from ..models.records import NormalizedRecord, RawRow

"""Field normalizer: arbitrary spreadsheet row -> NormalizedRecord.

Each output field is described by an ordered list of ColumnRule entries.
A rule pairs a predicate over the column *name* with an extractor over the
cell *value*; the first rule that produces a value wins.

- exact-key rules (``skip_empty=True``) look up one column by exact name and
  are passed over when that cell is empty, so the next candidate is tried
- substring rules take the first column, in row order, whose lower-cased
  name contains one of the fragments; an empty cell there yields the
  field default

Adding a new spreadsheet vendor's column convention is a matter of adding a
rule to the tables below.
"""

__all__ = [
    "ColumnRule",
    "FieldSpec",
    "VENDOR_FIELD",
    "SPEND_FIELD",
    "CATEGORY_FIELD",
    "SEGMENT_FIELD",
    "exact_key",
    "name_contains",
    "extract_vendor",
    "extract_spend",
    "extract_category",
    "extract_segment",
    "normalize_row",
    "normalize_rows",
    "canonical_category",
    "canonical_segment",
]

Extractor = Callable[[Any], Any]


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    # A literal zero in an exact-key column counts as "not provided"
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0:
        return True
    return False


def _text(value: Any) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value).strip()


def _number(value: Any) -> float:
    return parse_number(value) or 0.0


@dataclass(frozen=True)
class ColumnRule:
    predicate: Callable[[str], bool]
    extract: Extractor
    skip_empty: bool = False
    label: str = ""


def exact_key(key: str, extract: Extractor) -> ColumnRule:
    return ColumnRule(lambda name: name == key, extract, skip_empty=True, label=key)


def name_contains(fragments: Iterable[str], extract: Extractor) -> ColumnRule:
    parts = tuple(f.lower() for f in fragments)
    return ColumnRule(
        lambda name: any(p in name.lower() for p in parts),
        extract,
        skip_empty=False,
        label="|".join(parts),
    )


@dataclass(frozen=True)
class FieldSpec:
    name: str
    rules: tuple[ColumnRule, ...]
    default: Any

    def resolve(self, row: RawRow) -> Any:
        for rule in self.rules:
            if rule.skip_empty:
                matches = [k for k in row if rule.predicate(k)]
                for key in matches:
                    if not _is_empty(row[key]):
                        return rule.extract(row[key])
                continue
            for key in row:
                if rule.predicate(key):
                    value = row[key]
                    if _is_empty(value):
                        return self.default
                    return rule.extract(value)
        return self.default


def _localized_number(locale: NumberLocale) -> Extractor:
    def extract(value: Any) -> float:
        if isinstance(value, str):
            value = re.sub(r"[^\d.,-]", "", value)
        return parse_number(value, locale) or 0.0
    return extract


def _text_or(default: str) -> Extractor:
    return lambda value: _text(value) or default


VENDOR_FIELD = FieldSpec(
    "vendor",
    (
        exact_key("Supplier", _text),
        exact_key("supplier", _text),
        exact_key("vendor", _text),
        exact_key("Vendor", _text),
        name_contains(("vendor", "supplier", "company"), _text),
    ),
    default="",
)

SPEND_FIELD = FieldSpec(
    "spend",
    (
        exact_key("Total_Current_Cost", _number),
        exact_key("Total Current Cost", _number),
        exact_key("spend", _number),
        exact_key("Spend", _number),
        exact_key("cost", _number),
        exact_key("Cost", _number),
        name_contains(("spend", "cost", "amount"), loose_number),
    ),
    default=0.0,
)

CATEGORY_FIELD = FieldSpec(
    "category",
    (
        exact_key("category", _text),
        exact_key("Category", _text),
        name_contains(("category", "type"), _text_or("Software")),
    ),
    default="Software",
)

SEGMENT_FIELD = FieldSpec(
    "segment",
    (
        exact_key("segment", _text),
        exact_key("Segment", _text),
        name_contains(("segment", "department"), _text_or("IT")),
    ),
    default="IT",
)


def extract_vendor(row: RawRow) -> str:
    return VENDOR_FIELD.resolve(row)


def extract_spend(row: RawRow, locale: NumberLocale | None = None) -> float:
    """Spend amount of a row.

    With an explicit ``locale`` every candidate cell is parsed with that
    locale instead of the loose heuristic.
    """
    if locale is None or locale is NumberLocale.NONE:
        return float(SPEND_FIELD.resolve(row))
    extract = _localized_number(locale)
    localized = FieldSpec(
        SPEND_FIELD.name,
        tuple(ColumnRule(r.predicate, extract, r.skip_empty, r.label) for r in SPEND_FIELD.rules),
        SPEND_FIELD.default,
    )
    return float(localized.resolve(row))


def extract_category(row: RawRow) -> str:
    return CATEGORY_FIELD.resolve(row)


def extract_segment(row: RawRow) -> str:
    return SEGMENT_FIELD.resolve(row)


def normalize_row(row: RawRow, locale: NumberLocale | None = None) -> NormalizedRecord | None:
    """Reduce a raw row to a NormalizedRecord, or None when it is dropped.

    Rows without a vendor or without positive spend are decorative (titles,
    totals spacers, blank lines) and never reach the aggregate.
    """
    vendor = extract_vendor(row)
    spend = extract_spend(row, locale)
    if not vendor or spend <= 0:
        return None
    return NormalizedRecord(
        vendor=vendor,
        spend=spend,
        category=extract_category(row),
        segment=extract_segment(row),
    )


def normalize_rows(rows: Iterable[RawRow], locale: NumberLocale | None = None) -> list[NormalizedRecord]:
    out: list[NormalizedRecord] = []
    for row in rows:
        record = normalize_row(row, locale)
        if record is not None:
            out.append(record)
    return out


_CATEGORY_MAP: tuple[tuple[tuple[str, ...], str], ...] = (
    (("software", "saas", "application"), "Software"),
    (("cloud", "hosting", "infrastructure"), "Cloud"),
    (("service", "consulting", "support"), "Services"),
    (("hardware", "equipment", "device"), "Hardware"),
    (("marketing", "advertising"), "Marketing"),
    (("hr", "human resources"), "HR"),
)

_SEGMENT_MAP: tuple[tuple[tuple[str, ...], str], ...] = (
    (("it", "tech", "information"), "IT"),
    (("sales", "revenue"), "Sales"),
    (("marketing", "brand"), "Marketing"),
    (("hr", "human", "people"), "HR"),
    (("finance", "accounting", "financial"), "Finance"),
    (("operations", "ops"), "Operations"),
)


def _canonical(value: str, table: tuple[tuple[tuple[str, ...], str], ...], default: str) -> str:
    if not value:
        return default
    lowered = value.lower()
    for fragments, label in table:
        if any(f in lowered for f in fragments):
            return label
    return value


def canonical_category(category: str) -> str:
    """Fold free-form categories onto the dashboard's labels (unknown kept)."""
    return _canonical(category, _CATEGORY_MAP, "Other")


def canonical_segment(segment: str) -> str:
    """Fold free-form departments onto the dashboard's segments (unknown kept)."""
    return _canonical(segment, _SEGMENT_MAP, "Operations")
