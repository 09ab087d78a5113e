from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from ..excel.numbers import NumberLocale
from ..models.records import NormalizedRecord, RawRow, VendorAggregate
from .normalizer import normalize_rows

"""Vendor aggregation.

Records are grouped by ``vendor.lower()``. The first record of a vendor fixes
the displayed spelling, category and segment; later records only add spend.
Output order is the order in which vendors were first seen.
"""


def aggregate(records: Iterable[NormalizedRecord]) -> list[VendorAggregate]:
    by_key: dict[str, VendorAggregate] = {}
    for record in records:
        key = record.vendor.lower()
        existing = by_key.get(key)
        if existing is None:
            by_key[key] = VendorAggregate(
                vendor=record.vendor,
                spend=record.spend,
                category=record.category,
                segment=record.segment,
            )
        else:
            by_key[key] = replace(
                existing,
                spend=existing.spend + record.spend,
                row_count=existing.row_count + 1,
            )
    return list(by_key.values())


def group_by_vendor(rows: Iterable[RawRow], locale: NumberLocale | None = None) -> list[VendorAggregate]:
    """Normalize raw rows and aggregate them in one pass."""
    return aggregate(normalize_rows(rows, locale))
