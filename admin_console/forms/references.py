"""Foreign-key value helpers shared by forms, filters and columns."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


def to_id(value: Any) -> int | None:
    """Form input -> id: ``"3"`` -> 3, ``""``/None -> None."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    return int(text) if text.isdigit() else None


def department_ids(value: Any) -> list[int]:
    """
    A position's departments as an ordered set of ids.

    The store keeps either a bare id or a list; in memory it is always a list.
    """

    raw: Iterable[Any] = value if isinstance(value, (list, tuple)) else [value]
    ids: list[int] = []
    for item in raw:
        dep_id = to_id(item)
        if dep_id is not None and dep_id not in ids:
            ids.append(dep_id)
    return ids


def serialize_departments(ids: Iterable[Any]) -> int | list[int]:
    """Store format: a single department is written as a bare id."""
    normalized = department_ids(list(ids))
    if len(normalized) == 1:
        return normalized[0]
    return normalized
