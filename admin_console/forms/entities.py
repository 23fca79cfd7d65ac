from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from .base import EntityForm, FormField
from .references import department_ids, serialize_departments, to_id


class DepartmentForm(EntityForm):
    fields = (FormField("name", "Name", required=True),)


class PositionForm(EntityForm):
    fields = (
        FormField("name", "Name", required=True),
        FormField("departments", "Departments", required=True, kind="multiselect"),
    )

    def __init__(
        self,
        row: Mapping[str, Any] | None = None,
        on_close: Callable[[], None] | None = None,
        on_save: Callable[[dict[str, Any]], Any] | None = None,
        loading: bool = False,
        departments: Sequence[Mapping[str, Any]] = (),
    ):
        self.departments = list(departments)
        super().__init__(row=row, on_close=on_close, on_save=on_save, loading=loading)

    def initial_values(self) -> dict[str, Any]:
        values = super().initial_values()
        values["departments"] = department_ids((self.row or {}).get("departments"))
        return values

    def set(self, key: str, value: Any) -> None:
        if key == "departments":
            value = department_ids(value)
        super().set(key, value)

    def toggle_department(self, department_id: Any) -> None:
        dep_id = to_id(department_id)
        if dep_id is None:
            return
        current = list(self.values["departments"])
        if dep_id in current:
            current.remove(dep_id)
        else:
            current.append(dep_id)
        self.set("departments", current)

    def clean(self, values: dict[str, Any]) -> dict[str, Any]:
        body = super().clean(values)
        body["departments"] = serialize_departments(body.get("departments") or [])
        return body


class UserForm(EntityForm):
    fields = (
        FormField("name", "Name", required=True),
        FormField("email", "E-mail", required=True, kind="email"),
        FormField("password", "Password", kind="password"),
        FormField("position_id", "Position", kind="select"),
    )

    def __init__(
        self,
        row: Mapping[str, Any] | None = None,
        on_close: Callable[[], None] | None = None,
        on_save: Callable[[dict[str, Any]], Any] | None = None,
        loading: bool = False,
        positions: Sequence[Mapping[str, Any]] = (),
        departments: Sequence[Mapping[str, Any]] = (),
    ):
        self.positions = list(positions)
        self.departments = list(departments)
        super().__init__(row=row, on_close=on_close, on_save=on_save, loading=loading)
        self.department_id = self._initial_department()

    def initial_values(self) -> dict[str, Any]:
        values = super().initial_values()
        # Passwords are never pre-filled; blank on edit keeps the stored one.
        values["password"] = ""
        return values

    def _initial_department(self) -> int | None:
        position_id = to_id(self.values.get("position_id"))
        position = next((p for p in self.positions if p.get("id") == position_id), None)
        if position is None:
            return None
        ids = department_ids(position.get("departments"))
        return ids[0] if ids else None

    def select_department(self, department_id: Any) -> None:
        """Pick the department that narrows the position list; clears a stale position."""
        self.department_id = to_id(department_id)
        if to_id(self.values.get("position_id")) not in {p.get("id") for p in self.position_options()}:
            self.values["position_id"] = ""

    def position_options(self) -> list[Mapping[str, Any]]:
        if self.department_id is None:
            return []
        return [p for p in self.positions if self.department_id in department_ids(p.get("departments"))]

    def clean(self, values: dict[str, Any]) -> dict[str, Any]:
        body = super().clean(values)
        body["email"] = str(body.get("email", "")).lower()
        body["position_id"] = to_id(body.get("position_id"))
        if not body.get("password"):
            body.pop("password", None)
        return body
