from __future__ import annotations

import json
import re
from collections.abc import Callable
from typing import Any

from valoris.errors import ParsingError

"""Response shape adapters for the remote analysis stages.

Each adapter is a pure function ``body -> list | None``. They are tried in
order and the first list wins. The versioned envelope comes first; the
remaining adapters cover the looser shapes older service revisions return.
"""

__all__ = [
    "ShapeAdapter",
    "versioned_envelope",
    "items_key",
    "analysis_key",
    "bare_list",
    "data_key",
    "vendors_key",
    "result_key",
    "SHAPE_ADAPTERS",
    "find_payload_array",
    "decode_body",
]

ShapeAdapter = Callable[[Any], "list[Any] | None"]

_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)


def versioned_envelope(body: Any) -> list[Any] | None:
    if isinstance(body, dict) and "schemaVersion" in body and isinstance(body.get("analysis"), list):
        return body["analysis"]
    return None


def _list_under(key: str) -> ShapeAdapter:
    def adapter(body: Any) -> list[Any] | None:
        if isinstance(body, dict) and isinstance(body.get(key), list):
            return body[key]
        return None
    adapter.__name__ = f"{key}_key"
    return adapter


items_key = _list_under("items")
analysis_key = _list_under("analysis")
data_key = _list_under("data")
vendors_key = _list_under("vendors")
result_key = _list_under("result")


def bare_list(body: Any) -> list[Any] | None:
    return body if isinstance(body, list) else None


SHAPE_ADAPTERS: tuple[ShapeAdapter, ...] = (
    versioned_envelope,
    items_key,
    analysis_key,
    bare_list,
    data_key,
    vendors_key,
    result_key,
)


def find_payload_array(body: Any, adapters: tuple[ShapeAdapter, ...] = SHAPE_ADAPTERS) -> list[Any] | None:
    """Return the first list any adapter extracts from ``body``."""
    for adapter in adapters:
        found = adapter(body)
        if found is not None:
            return found
    return None


def decode_body(text: str) -> Any:
    """Decode a stage response body, tolerating a markdown code fence.

    Raises:
        ParsingError: the body is empty or not JSON
    """
    if not text or not text.strip():
        raise ParsingError("empty response body")
    match = _FENCE.match(text)
    if match:
        text = match.group(1)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParsingError(f"response body is not valid JSON: {e.msg}") from e
