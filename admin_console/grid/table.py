"""
Declarative admin data grid.

`DataGrid` holds everything the table screen needs besides the data itself:
filter bar values, sorting, column visibility, internal paging, the
create/edit dialog and the delete confirmation, all gated by the user's
permissions on `screen_key`. `render()` turns that state into a `GridView`
(see `admin_console.grid.render` for HTML).
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any, Protocol

from admin_console.client.crud import Pagination, js_string
from admin_console.client.resource import RequestFailed

from .columns import Column, FilterField, Ref, format_cell
from .dialogs import DeleteDialog, EditDialog

logger = logging.getLogger(__name__)

ROWS_PER_PAGE_OPTIONS = (10, 25, 50, 100)
EMPTY_MESSAGE = "No items found."


class PermissionChecks(Protocol):
    def has_permission(self, screen_key: str | None, permission_key: str | None) -> bool: ...

    def can_edit(self, screen_key: str | None) -> bool: ...

    def can_delete(self, screen_key: str | None) -> bool: ...

    def can_export(self, screen_key: str | None) -> bool: ...


class ActionNotAllowed(Exception):
    """A grid action was triggered without the matching permission."""


@dataclass(frozen=True)
class RowContext:
    """Passed to custom row actions so they can gate themselves."""

    has_permission: Callable[[str], bool]


@dataclass(frozen=True)
class ActionView:
    name: str
    label: str
    handler: Callable[[], Any] | None = None


@dataclass(frozen=True)
class HeaderView:
    key: str
    label: str
    sort: str | None = None


@dataclass(frozen=True)
class FilterView:
    key: str
    label: str
    component: str
    value: Any
    props: Mapping[str, Any] = field(default_factory=dict)
    options: Sequence[tuple[Any, str]] = ()


@dataclass(frozen=True)
class RowView:
    row: Mapping[str, Any]
    cells: list[Any]
    actions: list[ActionView]


@dataclass(frozen=True)
class GridView:
    filters: list[FilterView]
    headers: list[HeaderView]
    rows: list[RowView]
    empty_message: str | None
    colspan: int
    pagination: Pagination
    rows_per_page: int
    can_create: bool
    show_export: bool
    export_enabled: bool
    header_actions: Sequence[ActionView]
    edit_dialog: EditDialog
    delete_dialog: DeleteDialog


RowAction = Callable[[Mapping[str, Any], RowContext], "ActionView | Iterable[ActionView] | None"]


def _compare(a: Any, b: Any, desc: bool) -> int:
    # None sorts before any value; values of mismatched types count as ties.
    if a is None or b is None:
        result = (a is not None) - (b is not None)
    else:
        try:
            result = (a > b) - (a < b)
        except TypeError:
            result = 0
    return -result if desc else result


def _contains(row: Mapping[str, Any], key: str, value: Any) -> bool:
    cell = row.get(key)
    cell_text = js_string(cell) if cell else ""
    return str(value).lower() in cell_text.lower()


class DataGrid:
    def __init__(
        self,
        columns: Sequence[Column],
        data: Sequence[Mapping[str, Any]] = (),
        *,
        filters: Sequence[FilterField] = (),
        screen_key: str | None = None,
        permissions: PermissionChecks | None = None,
        on_save: Callable[[dict[str, Any]], Any] | None = None,
        on_delete: Callable[[Mapping[str, Any]], Any] | None = None,
        edit_form: Callable[..., Any] | None = None,
        form_loading: bool = False,
        pagination: Pagination | None = None,
        rows_per_page: int = 10,
        refs: Mapping[str, Ref] | None = None,
        row_action: RowAction | None = None,
        header_actions: Sequence[ActionView] = (),
        show_export: bool = False,
        on_export: Callable[[str], Any] | None = None,
        filter_values: Mapping[str, Any] | None = None,
        on_filters_change: Callable[[dict[str, Any]], None] | None = None,
        close_on_error: bool = True,
    ):
        self.columns = list(columns)
        self.data = list(data)
        self.filters = list(filters)
        self.screen_key = screen_key
        self.permissions = permissions
        self.on_save = on_save
        self.on_delete = on_delete
        self.edit_form = edit_form
        self.form_loading = form_loading
        self.pagination = pagination
        self.refs = dict(refs or {})
        self.row_action = row_action
        self.header_actions = list(header_actions)
        self.show_export = show_export
        self.on_export = on_export
        self.on_filters_change = on_filters_change
        self.close_on_error = close_on_error

        self.filter_values: dict[str, Any] = dict(filter_values or {})
        self.sorting: tuple[str, bool] | None = None  # (column key, descending)
        self.hidden_columns: set[str] = set()
        self.internal_page = 1
        self.rows_per_page = rows_per_page

        self.edit_dialog = EditDialog()
        self.delete_dialog = DeleteDialog()

    # ---- Permissions -----------------------------------------------------------------

    def _allowed(self, check: str) -> bool:
        if not self.screen_key:
            return True
        if self.permissions is None:
            return False
        return bool(getattr(self.permissions, check)(self.screen_key))

    @property
    def allow_edit(self) -> bool:
        return self._allowed("can_edit")

    @property
    def allow_delete(self) -> bool:
        return self._allowed("can_delete")

    @property
    def allow_export(self) -> bool:
        return self._allowed("can_export")

    def has_permission(self, permission_key: str) -> bool:
        """Check `permission_key` on this grid's screen."""
        if self.permissions is None:
            return False
        return self.permissions.has_permission(self.screen_key, permission_key)

    # ---- Filter bar ------------------------------------------------------------------

    @property
    def filters_are_external(self) -> bool:
        return self.on_filters_change is not None

    def set_filter(self, key: str, value: Any) -> None:
        self.filter_values = {**self.filter_values, key: value}
        self.internal_page = 1
        if self.on_filters_change is not None:
            self.on_filters_change(dict(self.filter_values))

    def clear_filters(self) -> None:
        self.filter_values = {}
        self.internal_page = 1
        if self.on_filters_change is not None:
            self.on_filters_change({})

    # ---- Sorting, columns, paging ----------------------------------------------------

    def toggle_sort(self, key: str) -> None:
        """First click sorts ascending; later clicks flip asc <-> desc."""
        column = next((c for c in self.columns if c.key == key), None)
        if column is None or not column.sortable:
            return
        if self.sorting and self.sorting[0] == key:
            self.sorting = (key, not self.sorting[1])
        else:
            self.sorting = (key, False)

    def toggle_column(self, key: str) -> None:
        column = next((c for c in self.columns if c.key == key), None)
        if column is None or not column.hideable:
            return
        if key in self.hidden_columns:
            self.hidden_columns.discard(key)
        else:
            self.hidden_columns.add(key)

    @property
    def visible_columns(self) -> list[Column]:
        return [c for c in self.columns if c.key not in self.hidden_columns]

    def set_rows_per_page(self, rows: int) -> None:
        if rows not in ROWS_PER_PAGE_OPTIONS:
            raise ValueError(f"rows per page must be one of {ROWS_PER_PAGE_OPTIONS}")
        self.rows_per_page = rows
        self.internal_page = 1

    def _set_internal_page(self, page: int) -> None:
        self.internal_page = max(1, int(page))

    @property
    def filtered_rows(self) -> list[Mapping[str, Any]]:
        if self.filters_are_external:
            return list(self.data)
        return [
            row
            for row in self.data
            if all(_contains(row, key, value) for key, value in self.filter_values.items() if value)
        ]

    @property
    def sorted_rows(self) -> list[Mapping[str, Any]]:
        rows = self.filtered_rows
        if not self.sorting:
            return rows
        key, desc = self.sorting
        return sorted(rows, key=cmp_to_key(lambda a, b: _compare(a.get(key), b.get(key), desc)))

    @property
    def effective_pagination(self) -> Pagination:
        if self.pagination is not None:
            return self.pagination
        total = math.ceil(len(self.sorted_rows) / self.rows_per_page) or 1
        return Pagination(page=self.internal_page, total_pages=total, on_page_change=self._set_internal_page)

    @property
    def display_rows(self) -> list[Mapping[str, Any]]:
        rows = self.sorted_rows
        if self.pagination is not None:
            return rows
        start = (self.internal_page - 1) * self.rows_per_page
        return rows[start : start + self.rows_per_page]

    def next_page(self) -> None:
        pagination = self.effective_pagination
        if pagination.page < pagination.total_pages:
            pagination.on_page_change(pagination.page + 1)

    def previous_page(self) -> None:
        pagination = self.effective_pagination
        if pagination.page > 1:
            pagination.on_page_change(pagination.page - 1)

    # ---- Create / edit ---------------------------------------------------------------

    def open_create(self) -> None:
        self._open_form(None)

    def open_edit(self, row: Mapping[str, Any]) -> None:
        self._open_form(dict(row))

    def _open_form(self, row: dict[str, Any] | None) -> None:
        if self.edit_form is None:
            raise ActionNotAllowed("This grid has no edit form")
        if not self.allow_edit:
            raise ActionNotAllowed(f"Editing is not allowed on {self.screen_key!r}")
        form = self.edit_form(
            row=row,
            on_close=self.close_edit,
            on_save=self._save_from_form,
            loading=self.form_loading,
        )
        self.edit_dialog.show(row, form)

    def close_edit(self) -> None:
        self.edit_dialog.close()

    def _save_from_form(self, payload: dict[str, Any]) -> bool:
        """Close the dialog only once the save went through."""
        if self.on_save is None:
            self.close_edit()
            return True
        try:
            self.on_save(payload)
        except RequestFailed as exc:
            logger.info("Save failed on %s: %s", self.screen_key, exc)
            self.edit_dialog.error = exc.message
            return False
        self.close_edit()
        return True

    # ---- Delete ----------------------------------------------------------------------

    def request_delete(self, row: Mapping[str, Any]) -> None:
        if not self.allow_delete:
            raise ActionNotAllowed(f"Deleting is not allowed on {self.screen_key!r}")
        self.delete_dialog.show(dict(row))

    def cancel_delete(self) -> None:
        if not self.delete_dialog.loading:
            self.delete_dialog.close()

    def confirm_delete(self) -> bool:
        """
        Run `on_delete` for the row being confirmed.

        Inert while a delete is in flight. On failure the dialog closes when
        `close_on_error` is set, otherwise it stays open with the error.
        """

        dialog = self.delete_dialog
        if not dialog.open or dialog.loading or dialog.row is None:
            return False

        dialog.loading = True
        dialog.error = None
        try:
            result = self.on_delete(dialog.row) if self.on_delete is not None else None
        except RequestFailed as exc:
            logger.info("Delete failed on %s: %s", self.screen_key, exc)
            if self.close_on_error:
                dialog.close()
            else:
                dialog.error = exc.message
            return False
        finally:
            dialog.loading = False

        if result is False:
            # The callback reported a failure it already surfaced.
            if self.close_on_error:
                dialog.close()
            else:
                dialog.error = "The item could not be deleted."
            return False

        dialog.close()
        return True

    # ---- Export ----------------------------------------------------------------------

    @property
    def export_enabled(self) -> bool:
        return self.show_export and self.allow_export and self.on_export is not None

    def export(self, fmt: str) -> Any:
        """Hand the export to the caller; nothing happens when it is disabled."""
        if not self.export_enabled:
            return None
        return self.on_export(fmt)

    # ---- Rendering -------------------------------------------------------------------

    def _row_actions(self, row: Mapping[str, Any]) -> list[ActionView]:
        actions: list[ActionView] = []
        if self.row_action is not None:
            custom = self.row_action(row, RowContext(has_permission=self.has_permission))
            if isinstance(custom, ActionView):
                actions.append(custom)
            elif custom:
                actions.extend(custom)
        if self.allow_edit and self.edit_form is not None:
            actions.append(ActionView("edit", "Edit", lambda row=row: self.open_edit(row)))
        if self.allow_delete:
            actions.append(ActionView("delete", "Delete", lambda row=row: self.request_delete(row)))
        return actions

    def render(self) -> GridView:
        columns = self.visible_columns
        sort_key, sort_desc = self.sorting or (None, False)

        headers = [
            HeaderView(c.key, c.label, ("desc" if sort_desc else "asc") if c.key == sort_key else None)
            for c in columns
        ]
        filters = [
            FilterView(
                key=f.key,
                label=f.label,
                component=f.component,
                value=self.filter_values.get(f.key, ""),
                props=f.component_props,
                options=f.options,
            )
            for f in self.filters
        ]
        rows = [
            RowView(row=row, cells=[format_cell(c, row, self.refs) for c in columns], actions=self._row_actions(row))
            for row in self.display_rows
        ]

        return GridView(
            filters=filters,
            headers=headers,
            rows=rows,
            empty_message=None if rows else EMPTY_MESSAGE,
            colspan=len(columns) + 1,
            pagination=self.effective_pagination,
            rows_per_page=self.rows_per_page,
            can_create=self.edit_form is not None and self.allow_edit,
            show_export=self.show_export,
            export_enabled=self.export_enabled,
            header_actions=self.header_actions,
            edit_dialog=self.edit_dialog,
            delete_dialog=self.delete_dialog,
        )
