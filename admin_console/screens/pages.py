"""
Console pages assembled from `config/screens.yaml`.

`build_page` wires one screen: a `CrudState` for the data, a `DataGrid` for
the table, the screen's form and the shared `PermissionResolver`.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import requests

from admin_console.client.crud import CrudConfig, CrudState, FilterFn, RelationSpec, default_filter
from admin_console.client.notifications import Notifier
from admin_console.client.permissions import PermissionResolver
from admin_console.client.resource import ResourceClient
from admin_console.client.session import ConsoleSession, mirror_cookie
from admin_console.forms.access import AccessEditor
from admin_console.forms.base import EntityForm
from admin_console.forms.entities import DepartmentForm, PositionForm, UserForm
from admin_console.forms.references import department_ids, to_id
from admin_console.grid.columns import Column, FilterField, Ref, format_cell, join_labels
from admin_console.grid.render import render_grid_html
from admin_console.grid.table import ActionView, DataGrid, GridView, RowAction, RowContext
from admin_console.settings import Settings, get_settings

from .config import ScreenConfig, load_screens_config

logger = logging.getLogger(__name__)


# ---- Registries ----------------------------------------------------------------------


def _department_form(crud: CrudState, **kwargs: Any) -> EntityForm:
    return DepartmentForm(**kwargs)


def _position_form(crud: CrudState, **kwargs: Any) -> EntityForm:
    return PositionForm(departments=crud.related_data.get("departments", []), **kwargs)


def _user_form(crud: CrudState, **kwargs: Any) -> EntityForm:
    return UserForm(
        positions=crud.related_data.get("positions", []),
        departments=crud.related_data.get("departments", []),
        **kwargs,
    )


FORMS: dict[str, Callable[..., EntityForm]] = {
    "department": _department_form,
    "position": _position_form,
    "user": _user_form,
}


def filter_positions(item: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
    """Department filter matches bare-id and list storage alike."""
    department = to_id(filters.get("departments"))
    if department is not None and department not in department_ids(item.get("departments")):
        return False
    rest = {key: value for key, value in filters.items() if key != "departments"}
    return default_filter(item, rest)


FILTERS: dict[str, FilterFn] = {
    "positions": filter_positions,
}


def _access_action(page: ConsolePage) -> RowAction:
    def action(row: Mapping[str, Any], ctx: RowContext) -> ActionView | None:
        if not (ctx.has_permission("grant") or ctx.has_permission("edit")):
            return None
        return ActionView("access", "Access", lambda row=row: page.open_access_editor(row))

    return action


ROW_ACTIONS: dict[str, Callable[[ConsolePage], RowAction]] = {
    "access": _access_action,
}


# ---- Export --------------------------------------------------------------------------


def export_csv(
    rows: Sequence[Mapping[str, Any]],
    columns: Sequence[Column],
    refs: Mapping[str, Ref] | None = None,
) -> str:
    """Rows as CSV text, with the same cell formatting the grid displays."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([c.label for c in columns])
    for row in rows:
        cells = (format_cell(c, row, refs) for c in columns)
        writer.writerow(["" if cell is None else cell for cell in cells])
    return buffer.getvalue()


# ---- Pages ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NavItem:
    key: str
    title: str


def navigation(screens: Mapping[str, ScreenConfig], permissions: PermissionResolver) -> list[NavItem]:
    return [NavItem(key, screen.title) for key, screen in screens.items() if permissions.can_view(key)]


class ConsolePage:
    def __init__(self, key: str, screen: ScreenConfig, crud: CrudState, permissions: PermissionResolver | None):
        self.key = key
        self.screen = screen
        self.crud = crud
        self.permissions = permissions
        self.columns = [
            Column(c.key, c.label, type=c.type, sortable=c.sortable, hideable=c.hideable) for c in screen.columns
        ]
        self.access_editor: AccessEditor | None = None
        self.grid: DataGrid | None = None

    def load(self) -> None:
        if self.permissions is not None:
            self.permissions.load()
        self.crud.load()

    @property
    def can_view(self) -> bool:
        return self.permissions is not None and self.permissions.can_view(self.key)

    def refs(self) -> dict[str, Ref]:
        maps = self.crud.lookup_maps
        refs: dict[str, Ref] = {}
        for column in self.screen.columns:
            if column.ref is None or column.ref not in maps:
                continue
            refs[column.key] = join_labels(maps[column.ref]) if column.join else maps[column.ref]
        return refs

    def filter_fields(self) -> list[FilterField]:
        fields = []
        for f in self.screen.filters:
            options: list[tuple[Any, str]] = []
            if f.options_from:
                options = [(item.get("id"), item.get("name")) for item in self.crud.related_data.get(f.options_from, [])]
            fields.append(FilterField(f.key, f.label, component=f.component, component_props=f.props, options=options))
        return fields

    def view(self) -> GridView:
        """Sync the grid with the current CRUD state and render it."""
        grid = self.grid
        grid.data = self.crud.paged_data
        grid.pagination = self.crud.pagination
        grid.refs = self.refs()
        grid.filters = self.filter_fields()
        grid.filter_values = dict(self.crud.filters)
        grid.form_loading = self.crud.loading
        return grid.render()

    def html(self) -> str:
        return render_grid_html(self.view(), title=self.screen.title)

    def export(self, fmt: str) -> str:
        if fmt not in self.screen.export_formats:
            raise ValueError(f"Unsupported export format {fmt!r} for {self.key}")
        logger.info("Exporting %s as %s", self.key, fmt)
        return export_csv(self.crud.filtered_data, self.columns, self.refs())

    def open_access_editor(self, row: Mapping[str, Any]) -> AccessEditor:
        client = ResourceClient(
            self.crud.api.endpoint,
            self.crud.api.http,
            notifier=self.crud.api.notifier,
            messages={"update_success": "Permissions updated successfully", "update_error": "Error updating permissions"},
            timeout=self.crud.api.timeout,
        )
        editor = AccessEditor(
            position=row,
            screens=self.crud.related_data.get("screens", []),
            permissions=self.crud.related_data.get("permissions", []),
            positions=client,
            on_saved=lambda items: self.crud.replace_item(row["id"], {"permissions": items}),
        )
        editor.show()
        self.access_editor = editor
        return editor


def build_page(
    key: str,
    screen: ScreenConfig,
    http: Any | None = None,
    *,
    permissions: PermissionResolver | None = None,
    base_url: str = "",
    notifier: Notifier | None = None,
    timeout: float | None = None,
    default_page_size: int = 10,
) -> ConsolePage:
    base = base_url.rstrip("/")
    page_size = screen.page_size or default_page_size
    config = CrudConfig(
        endpoint=f"{base}{screen.endpoint}",
        page_size=page_size,
        messages=screen.messages,
        relations=[RelationSpec(r.key, f"{base}{r.endpoint}", r.label_key) for r in screen.relations],
        filter_fn=FILTERS[screen.filter_fn] if screen.filter_fn else None,
    )
    crud = CrudState(config, http, notifier=notifier, timeout=timeout)
    page = ConsolePage(key, screen, crud, permissions)

    edit_form = None
    if screen.form:
        form_factory = FORMS[screen.form]

        def edit_form(**kwargs: Any) -> EntityForm:
            return form_factory(crud, **kwargs)

    page.grid = DataGrid(
        page.columns,
        screen_key=key,
        permissions=permissions,
        on_save=crud.handle_save,
        on_delete=crud.handle_delete,
        edit_form=edit_form,
        rows_per_page=page_size,
        row_action=ROW_ACTIONS[screen.row_action](page) if screen.row_action else None,
        show_export=bool(screen.export_formats),
        on_export=page.export,
        filter_values=crud.filters,
        on_filters_change=crud.set_filters,
        close_on_error=screen.close_on_delete_error,
    )
    return page


def build_pages(
    screens: Mapping[str, ScreenConfig],
    http: Any | None = None,
    *,
    permissions: PermissionResolver | None = None,
    base_url: str = "",
    notifier: Notifier | None = None,
    timeout: float | None = None,
    default_page_size: int = 10,
) -> dict[str, ConsolePage]:
    return {
        key: build_page(
            key,
            screen,
            http,
            permissions=permissions,
            base_url=base_url,
            notifier=notifier,
            timeout=timeout,
            default_page_size=default_page_size,
        )
        for key, screen in screens.items()
    }


# ---- Console -------------------------------------------------------------------------


@dataclass
class Console:
    session: ConsoleSession
    permissions: PermissionResolver
    screens: dict[str, ScreenConfig]
    pages: dict[str, ConsolePage]

    def navigation(self) -> list[NavItem]:
        return navigation(self.screens, self.permissions)


def open_console(
    session: ConsoleSession,
    http: Any | None = None,
    *,
    settings: Settings | None = None,
    notifier: Notifier | None = None,
) -> Console:
    """
    Everything a logged-in user sees: permissions, navigation and one page per screen.

    All pages share one HTTP session, which also carries the mirrored `user` cookie.
    """

    settings = settings or get_settings()
    http = http if http is not None else requests.Session()
    base_url = settings.api_base_url.rstrip("/")

    screens = load_screens_config(settings.resolved_screens_config_path())
    mirror_cookie(session, http)

    positions = ResourceClient(
        f"{base_url}/api/positions",
        http,
        show_notifications=False,
        timeout=settings.request_timeout,
    )
    permissions = PermissionResolver(session, positions)
    permissions.load()

    pages = build_pages(
        screens,
        http,
        permissions=permissions,
        base_url=base_url,
        notifier=notifier,
        timeout=settings.request_timeout,
        default_page_size=settings.default_page_size,
    )
    logger.info("Console opened for user id=%s with %d screens", (session.user or {}).get("id"), len(pages))
    return Console(session=session, permissions=permissions, screens=screens, pages=pages)
