from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormField:
    key: str
    label: str
    required: bool = False
    kind: str = "text"


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set)):
        return not value
    return False


class EntityForm:
    """
    Field-bound create/edit form.

    Opened with ``row=None`` for create (the payload then carries no ``id``) or
    with an existing row for edit. `submit()` checks required fields and hands
    the payload to ``on_save``.
    """

    fields: tuple[FormField, ...] = ()

    def __init__(
        self,
        row: Mapping[str, Any] | None = None,
        on_close: Callable[[], None] | None = None,
        on_save: Callable[[dict[str, Any]], Any] | None = None,
        loading: bool = False,
    ):
        self.row = dict(row) if row else None
        self.on_close = on_close
        self.on_save = on_save
        self.loading = loading

        self.values: dict[str, Any] = self.initial_values()
        self.errors: dict[str, str] = {}

    @property
    def is_edit(self) -> bool:
        return bool(self.row and self.row.get("id"))

    def initial_values(self) -> dict[str, Any]:
        row = self.row or {}
        return {f.key: row.get(f.key, "") for f in self.fields}

    def set(self, key: str, value: Any) -> None:
        if key not in self.values:
            raise KeyError(f"{type(self).__name__} has no field {key!r}")
        self.values[key] = value
        self.errors.pop(key, None)

    def validate(self) -> dict[str, str]:
        return {
            f.key: f"{f.label} is required"
            for f in self.fields
            if f.required and _is_blank(self.values.get(f.key))
        }

    def clean(self, values: dict[str, Any]) -> dict[str, Any]:
        """Turn raw input values into the request body; override per entity."""
        return {key: value.strip() if isinstance(value, str) else value for key, value in values.items()}

    def payload(self) -> dict[str, Any]:
        body = self.clean(dict(self.values))
        if self.is_edit:
            body = {"id": self.row["id"], **body}
        return body

    def submit(self) -> bool:
        if self.loading:
            return False
        self.errors = self.validate()
        if self.errors:
            logger.debug("%s invalid: %s", type(self).__name__, sorted(self.errors))
            return False
        if self.on_save is None:
            return True
        return self.on_save(self.payload()) is not False

    def cancel(self) -> None:
        if self.on_close is not None:
            self.on_close()
