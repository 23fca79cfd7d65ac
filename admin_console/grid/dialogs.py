from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class EditDialog:
    """Create/edit dialog. ``row is None`` means create mode."""

    open: bool = False
    row: dict[str, Any] | None = None
    form: Any = None
    error: str | None = None

    @property
    def mode(self) -> str:
        return "edit" if self.row is not None else "create"

    @property
    def title(self) -> str:
        return "Edit" if self.row is not None else "Create"

    def show(self, row: dict[str, Any] | None, form: Any) -> None:
        self.open = True
        self.row = row
        self.form = form
        self.error = None

    def close(self) -> None:
        self.open = False
        self.row = None
        self.form = None
        self.error = None


@dataclass
class DeleteDialog:
    open: bool = False
    row: dict[str, Any] | None = None
    loading: bool = False
    error: str | None = None

    @property
    def message(self) -> str:
        name = (self.row or {}).get("name")
        target = f'"{name}"' if name else "this item"
        return f"Are you sure you want to delete {target}? This action cannot be undone."

    def show(self, row: dict[str, Any]) -> None:
        self.open = True
        self.row = row
        self.loading = False
        self.error = None

    def close(self) -> None:
        self.open = False
        self.row = None
        self.loading = False
        self.error = None
