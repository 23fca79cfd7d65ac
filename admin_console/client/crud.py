"""
CRUD state for one entity screen.

Composes a `ResourceClient` with client-side filtering, pagination and
related-table lookups. A page declares its endpoint, page size and relations;
the grid reads `paged_data`, `pagination` and `lookup_maps` from here and
sends saves/deletes back through `handle_save` / `handle_delete`.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from .notifications import Notifier
from .resource import RequestFailed, ResourceClient

logger = logging.getLogger(__name__)

Item = dict[str, Any]
FilterFn = Callable[[Mapping[str, Any], Mapping[str, Any]], bool]


@dataclass(frozen=True)
class RelationSpec:
    """A related collection loaded next to the main one (e.g. positions for users)."""

    key: str
    endpoint: str
    label_key: str = "name"


@dataclass(frozen=True)
class CrudConfig:
    endpoint: str
    page_size: int = 10
    messages: Mapping[str, str] = field(default_factory=dict)
    relations: Sequence[RelationSpec] = ()
    filter_fn: FilterFn | None = None
    transform_data: Callable[[list[Item]], list[Item]] | None = None


@dataclass(frozen=True)
class Pagination:
    page: int
    total_pages: int
    on_page_change: Callable[[int], None]


def js_string(value: Any) -> str:
    """Stringify the way the browser console compared values."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _as_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(str(value))
    except ValueError:
        return None
    return int(number) if number.is_integer() else number


def default_filter(item: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
    """
    Match `item` against every non-empty filter value.

    - string fields: case-insensitive substring
    - numeric fields: exact stringified match
    - list fields: value present in the list (as given or as a number)
    - anything else: exact stringified match
    """

    for key, value in filters.items():
        if not value:
            continue

        item_value = item.get(key)
        if isinstance(item_value, str) and isinstance(value, str):
            matched = value.lower() in item_value.lower()
        elif isinstance(item_value, (int, float)) and not isinstance(item_value, bool):
            matched = js_string(item_value) == js_string(value)
        elif isinstance(item_value, list):
            matched = value in item_value or _as_number(value) in item_value
        else:
            matched = js_string(item_value) == js_string(value)

        if not matched:
            return False
    return True


def create_filter(key: str, label: str, component: str = "text", props: Mapping[str, Any] | None = None) -> dict[str, Any]:
    return {"key": key, "label": label, "component": component, "component_props": dict(props or {})}


def create_column(
    key: str,
    label: str,
    type: str | None = None,
    render: Callable[[Any, Mapping[str, Any]], Any] | None = None,
) -> dict[str, Any]:
    return {"key": key, "label": label, "type": type, "render": render}


class CrudState:
    def __init__(
        self,
        config: CrudConfig,
        http: Any | None = None,
        *,
        notifier: Notifier | None = None,
        timeout: float | None = None,
    ):
        self.config = config
        self.api = ResourceClient(
            config.endpoint,
            http,
            notifier=notifier,
            messages=config.messages,
            timeout=timeout,
        )
        self._relation_clients = {
            rel.key: ResourceClient(rel.endpoint, self.api.http, show_notifications=False, timeout=timeout)
            for rel in config.relations
        }

        self.data: list[Item] = []
        self.related_data: dict[str, list[Item]] = {}
        self.filters: dict[str, Any] = {}
        self.page = 1

        self.loading = False
        self.initial_loading = True
        self._has_loaded = False

    # ---- Loading ---------------------------------------------------------------------

    def load(self) -> None:
        """Initial load: main collection and every relation, concurrently, once."""
        if self._has_loaded:
            return
        self._has_loaded = True

        self.initial_loading = True
        try:
            with ThreadPoolExecutor(max_workers=1 + len(self.config.relations)) as pool:
                main = pool.submit(self._load_data)
                relations = pool.submit(self._load_relations)
                main.result()
                relations.result()
        finally:
            self.initial_loading = False

    def _load_data(self) -> list[Item]:
        try:
            result = self.api.get_all()
        except RequestFailed as exc:
            logger.error("Error loading %s: %s", self.config.endpoint, exc.message)
            return []
        if self.config.transform_data is not None:
            result = self.config.transform_data(result)
        self.data = list(result)
        return self.data

    def _load_relation(self, rel: RelationSpec) -> list[Item]:
        try:
            return self._relation_clients[rel.key].get_all()
        except RequestFailed as exc:
            logger.error("Error loading %s: %s", rel.key, exc.message)
            return []

    def _load_relations(self) -> dict[str, list[Item]]:
        if not self.config.relations:
            self.related_data = {}
            return self.related_data
        with ThreadPoolExecutor(max_workers=len(self.config.relations)) as pool:
            results = pool.map(self._load_relation, self.config.relations)
            loaded = {rel.key: items for rel, items in zip(self.config.relations, results)}
        self.related_data = loaded
        return loaded

    def refresh(self) -> list[Item]:
        """Reload the main collection only; relations keep their last value."""
        return self._load_data()

    # ---- Derived views ---------------------------------------------------------------

    @property
    def filtered_data(self) -> list[Item]:
        fn = self.config.filter_fn or default_filter
        return [item for item in self.data if fn(item, self.filters)]

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(len(self.filtered_data) / self.config.page_size))

    @property
    def paged_data(self) -> list[Item]:
        start = (self.page - 1) * self.config.page_size
        return self.filtered_data[start : start + self.config.page_size]

    @property
    def pagination(self) -> Pagination:
        return Pagination(page=self.page, total_pages=self.total_pages, on_page_change=self.set_page)

    @property
    def lookup_maps(self) -> dict[str, dict[Any, Any]]:
        maps: dict[str, dict[Any, Any]] = {}
        for rel in self.config.relations:
            items = self.related_data.get(rel.key) or []
            maps[rel.key] = {item.get("id"): item.get(rel.label_key) for item in items}
        return maps

    @property
    def error(self) -> str | None:
        return self.api.error

    # ---- Filters and paging ----------------------------------------------------------

    def set_filters(self, filters: Mapping[str, Any]) -> None:
        self.filters = dict(filters)
        self.page = 1

    def clear_filters(self) -> None:
        self.set_filters({})

    def set_page(self, page: int) -> None:
        self.page = max(1, int(page))

    # ---- Mutations -------------------------------------------------------------------

    def handle_save(self, item: Mapping[str, Any]) -> Item:
        """Create or update through the API; failures propagate to the caller."""
        self.loading = True
        try:
            result = self.api.save(item)
        finally:
            self.loading = False

        if item.get("id"):
            self.data = [result if x.get("id") == result.get("id") else x for x in self.data]
        else:
            self.data = [*self.data, result]
        return result

    def handle_delete(self, item: Mapping[str, Any], *, swallow_errors: bool = True) -> bool:
        """
        Delete through the API and drop the record locally.

        The client has already notified the user when the call fails, so by
        default the failure is reported as ``False`` instead of raised; pass
        ``swallow_errors=False`` to get the `RequestFailed` back.
        """

        self.loading = True
        try:
            self.api.remove(item["id"])
        except RequestFailed:
            if not swallow_errors:
                raise
            return False
        finally:
            self.loading = False

        self.data = [x for x in self.data if x.get("id") != item["id"]]
        return True

    def replace_item(self, item_id: Any, changes: Mapping[str, Any]) -> None:
        """Fold changes saved elsewhere (e.g. the access editor) into local data."""
        self.data = [{**x, **changes} if x.get("id") == item_id else x for x in self.data]
