from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

_DIGITS_RE = re.compile(r"^\d+$")


def _coerce_scalar(value: str) -> Any:
    if _DIGITS_RE.match(value):
        return int(value)
    return value


def coerce_query_value(value: str) -> Any:
    """
    Coerce one query-string value.

    - all digits      -> int
    - "true"/"false"  -> bool
    - "a,b,3"         -> ["a", "b", 3]
    - anything else   -> unchanged string
    """

    if _DIGITS_RE.match(value):
        return int(value)
    if value in ("true", "false"):
        return value == "true"
    if "," in value:
        return [_coerce_scalar(part) for part in value.split(",")]
    return value


def parse_query_params(items: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Parse ``(key, value)`` pairs (e.g. ``request.query_params.multi_items()``)."""
    return {key: coerce_query_value(value) for key, value in items}


def split_include(value: Any) -> list[str]:
    """`include` arrives as a single name, a comma list, or already split."""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return [str(v) for v in value if str(v)]
    return [part for part in str(value).split(",") if part]
