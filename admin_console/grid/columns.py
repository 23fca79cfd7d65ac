from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union

from admin_console.client.crud import js_string

Render = Callable[[Any, Mapping[str, Any]], Any]
# A column's reference: id -> label map, or a mapper called with (value, row).
Ref = Union[Mapping[Any, Any], Render]

DEFAULT_DATE_FORMAT = "%d/%m/%Y %H:%M"


@dataclass(frozen=True)
class Column:
    key: str
    label: str
    type: str | None = None
    render: Render | None = None
    sortable: bool = True
    hideable: bool = True
    date_format: str = DEFAULT_DATE_FORMAT


@dataclass(frozen=True)
class FilterField:
    key: str
    label: str
    component: str = "text"
    component_props: Mapping[str, Any] = field(default_factory=dict)
    # (value, label) pairs for select-style components.
    options: Sequence[tuple[Any, str]] = ()


def format_date(value: Any, date_format: str = DEFAULT_DATE_FORMAT) -> Any:
    """Format an ISO-8601 string; anything unparseable is returned as is."""
    if not isinstance(value, str):
        return value
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime(date_format)


def _find(ref: Mapping[Any, Any], value: Any) -> tuple[bool, Any]:
    # Lookup maps may be keyed by int ids or by their string form.
    candidates = [value, js_string(value)]
    if isinstance(value, str) and value.isdigit():
        candidates.append(int(value))
    for candidate in candidates:
        try:
            if candidate in ref:
                return True, ref[candidate]
        except TypeError:
            continue
    return False, None


def _lookup(ref: Mapping[Any, Any], value: Any) -> Any:
    found, label = _find(ref, value)
    return label if found else value


def format_cell(column: Column, row: Mapping[str, Any], refs: Mapping[str, Ref] | None = None) -> Any:
    """
    Display value for one cell.

    Stages, each optional, applied left to right:
    raw value -> date formatting -> column.render -> reference substitution.
    """

    cell = row.get(column.key)
    if column.type == "date" and cell is not None:
        cell = format_date(cell, column.date_format)
    if column.render is not None:
        cell = column.render(cell, row)

    ref = (refs or {}).get(column.key)
    if ref is not None:
        if callable(ref):
            cell = ref(cell, row)
        elif cell is not None:
            cell = _lookup(ref, cell)
    return cell


def join_labels(lookup: Mapping[Any, Any]) -> Render:
    """Reference mapper for id-or-list fields: ``[1, 2]`` -> ``"IT, HR"``."""

    def mapper(value: Any, _row: Mapping[str, Any]) -> str:
        ids = value if isinstance(value, list) else [value]
        labels = (_find(lookup, i) for i in ids)
        return ", ".join(str(label) for found, label in labels if found and label)

    return mapper
