from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any

"""Locale-aware numeric token handling for spreadsheet cells.

Spend exports come from both European ("1.234,56") and US ("1,234.56")
systems. A bare "1,234" is ambiguous: it is one thousand two hundred
thirty-four in US notation and 1.234 in European notation. Without a
declared locale nothing here guesses; ``NumberLocale.AUTO`` keeps the
historical heuristic (``^\\d+,\\d{2,3}$`` is a decimal comma) as an opt-in.
"""

__all__ = [
    "NumberLocale",
    "EUROPEAN_DECIMAL_PATTERN",
    "normalize_numeric_token",
    "parse_number",
    "parse_float_prefix",
    "loose_number",
]


class NumberLocale(Enum):
    NONE = "none"  # leave tokens as they are
    AUTO = "auto"  # opt-in heuristic, see EUROPEAN_DECIMAL_PATTERN
    EU = "eu"      # '.' groups thousands, ',' is the decimal mark
    US = "us"      # ',' groups thousands, '.' is the decimal mark


EUROPEAN_DECIMAL_PATTERN = re.compile(r"^\d+,\d{2,3}$")

_EU_GROUPED = re.compile(r"^-?\d{1,3}(\.\d{3})+(,\d+)?$")
_EU_PLAIN = re.compile(r"^-?\d+(,\d+)?$")
_US_GROUPED = re.compile(r"^-?\d{1,3}(,\d{3})+(\.\d+)?$")
_FLOAT_PREFIX = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def normalize_numeric_token(token: str, locale: NumberLocale = NumberLocale.NONE) -> str:
    """Rewrite a numeric-looking token to dot-decimal form.

    Non-numeric text is returned unchanged whatever the locale.

    >>> normalize_numeric_token("0,514", NumberLocale.AUTO)
    '0.514'
    >>> normalize_numeric_token("1.234,50", NumberLocale.EU)
    '1234.50'
    >>> normalize_numeric_token("1,234", NumberLocale.US)
    '1234'
    """
    if not token or not isinstance(token, str):
        return token
    if locale is NumberLocale.AUTO:
        if EUROPEAN_DECIMAL_PATTERN.match(token):
            return token.replace(",", ".", 1)
        return token
    if locale is NumberLocale.EU:
        if _EU_GROUPED.match(token) or _EU_PLAIN.match(token):
            return token.replace(".", "").replace(",", ".")
        return token
    if locale is NumberLocale.US:
        if _US_GROUPED.match(token):
            return token.replace(",", "")
        return token
    return token


def parse_float_prefix(text: str) -> float | None:
    """Parse the longest leading float in ``text`` ("12.5abc" -> 12.5)."""
    m = _FLOAT_PREFIX.match(text)
    if not m:
        return None
    return float(m.group(0))


def parse_number(value: Any, locale: NumberLocale = NumberLocale.NONE) -> float | None:
    """Coerce a cell value to float, or None when it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return None if math.isnan(number) else number
    text = str(value).strip()
    if not text:
        return None
    try:
        number = float(normalize_numeric_token(text, locale))
    except ValueError:
        return None
    return None if math.isnan(number) or math.isinf(number) else number


def loose_number(value: Any) -> float:
    """Best-effort number from free text such as "€ 1 200,50".

    Strips everything except digits, '.' and ',', turns the first ',' into a
    '.', then parses the leading float. Returns 0.0 when nothing parses.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return 0.0 if math.isnan(value) else float(value)
    cleaned = re.sub(r"[^\d.,]", "", str(value or ""))
    number = parse_float_prefix(cleaned.replace(",", ".", 1))
    return number or 0.0
