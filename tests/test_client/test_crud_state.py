"""Tests for CrudState: loading, filtering, paging and mutations."""
from __future__ import annotations

import pytest

from admin_console.client.crud import CrudConfig, CrudState, RelationSpec, create_column, create_filter, default_filter
from admin_console.client.notifications import RecordingNotifier
from admin_console.client.resource import RequestFailed

USERS = "http://console.test/api/users"
POSITIONS = "http://console.test/api/positions"


def _crud(fake_http, **config) -> tuple[CrudState, RecordingNotifier]:
    notifier = RecordingNotifier()
    crud = CrudState(CrudConfig(endpoint=USERS, **config), fake_http, notifier=notifier)
    return crud, notifier


def _users(count: int) -> list[dict]:
    return [{"id": i, "name": f"user {i}", "position_id": 1 + i % 2} for i in range(1, count + 1)]


def test_load_fetches_data_and_relations(fake_http):
    fake_http.add("GET", USERS, payload=_users(2))
    fake_http.add("GET", POSITIONS, payload=[{"id": 1, "name": "Dev"}, {"id": 2, "name": "Ops"}])
    crud, _ = _crud(fake_http, relations=[RelationSpec("positions", POSITIONS)])

    crud.load()

    assert len(crud.data) == 2
    assert crud.related_data["positions"][0]["name"] == "Dev"
    assert crud.lookup_maps == {"positions": {1: "Dev", 2: "Ops"}}
    assert crud.initial_loading is False


def test_load_runs_once(fake_http):
    fake_http.add("GET", USERS, payload=[])
    crud, _ = _crud(fake_http)

    crud.load()
    crud.load()

    assert len(fake_http.calls_to("GET", USERS)) == 1


def test_refresh_reloads_main_data_only(fake_http):
    fake_http.add("GET", USERS, payload=_users(1))
    fake_http.add("GET", POSITIONS, payload=[])
    crud, _ = _crud(fake_http, relations=[RelationSpec("positions", POSITIONS)])
    crud.load()

    fake_http.add("GET", USERS, payload=_users(3))
    crud.refresh()

    assert len(crud.data) == 3
    assert len(fake_http.calls_to("GET", POSITIONS)) == 1


def test_failed_load_leaves_empty_data_and_notifies(fake_http):
    fake_http.add("GET", USERS, status_code=500, payload={"error": "boom"})
    crud, notifier = _crud(fake_http)

    crud.load()

    assert crud.data == []
    assert crud.error == "boom"
    assert notifier.messages("error") == ["Error loading data"]


def test_failed_refresh_keeps_previous_data(fake_http):
    fake_http.add("GET", USERS, payload=_users(2))
    crud, _ = _crud(fake_http)
    crud.load()

    fake_http.add("GET", USERS, status_code=500)
    crud.refresh()

    assert len(crud.data) == 2


def test_failed_relation_is_empty_and_silent(fake_http):
    fake_http.add("GET", USERS, payload=[])
    fake_http.add("GET", POSITIONS, status_code=500)
    crud, notifier = _crud(fake_http, relations=[RelationSpec("positions", POSITIONS)])

    crud.load()

    assert crud.related_data == {"positions": []}
    assert crud.lookup_maps == {"positions": {}}
    assert notifier.notifications == []


def test_transform_data_is_applied(fake_http):
    fake_http.add("GET", USERS, payload=_users(3))
    crud, _ = _crud(fake_http, transform_data=lambda rows: [r for r in rows if r["id"] != 2])

    crud.load()

    assert [r["id"] for r in crud.data] == [1, 3]


def test_filter_matches_substring_and_resets_page(fake_http):
    crud, _ = _crud(fake_http)
    crud.data = [{"id": 1, "name": "Developer"}, {"id": 2, "name": "Manager"}]
    crud.set_page(2)

    crud.set_filters({"name": "dev"})

    assert [r["name"] for r in crud.filtered_data] == ["Developer"]
    assert crud.page == 1


def test_clear_filters(fake_http):
    crud, _ = _crud(fake_http)
    crud.data = _users(3)
    crud.set_filters({"name": "user 2"})

    crud.clear_filters()

    assert len(crud.filtered_data) == 3


def test_paging(fake_http):
    crud, _ = _crud(fake_http, page_size=10)
    crud.data = _users(23)

    assert crud.total_pages == 3
    assert len(crud.paged_data) == 10
    crud.pagination.on_page_change(3)
    assert [r["id"] for r in crud.paged_data] == [21, 22, 23]
    assert crud.pagination.page == 3


def test_total_pages_is_at_least_one(fake_http):
    crud, _ = _crud(fake_http)

    assert crud.total_pages == 1
    assert crud.paged_data == []


def test_set_page_clamps_to_first_page(fake_http):
    crud, _ = _crud(fake_http)

    crud.set_page(0)

    assert crud.page == 1


def test_custom_filter_fn(fake_http):
    crud, _ = _crud(fake_http, filter_fn=lambda item, filters: item["id"] > filters.get("min_id", 0))
    crud.data = _users(4)

    crud.set_filters({"min_id": 2})

    assert [r["id"] for r in crud.filtered_data] == [3, 4]


def test_handle_save_appends_then_replaces(fake_http):
    fake_http.add("POST", USERS, status_code=201, payload={"id": 3, "name": "new"})
    fake_http.add("PUT", USERS, payload={"id": 1, "name": "renamed"})
    crud, notifier = _crud(fake_http)
    crud.data = [{"id": 1, "name": "old"}]

    crud.handle_save({"name": "new"})
    crud.handle_save({"id": 1, "name": "renamed"})

    assert crud.data == [{"id": 1, "name": "renamed"}, {"id": 3, "name": "new"}]
    assert crud.loading is False
    assert notifier.messages("success") == ["Record created successfully", "Record updated successfully"]


def test_handle_save_failure_propagates(fake_http):
    fake_http.add("POST", USERS, status_code=400, payload={"error": "Invalid field 'name'"})
    crud, _ = _crud(fake_http)

    with pytest.raises(RequestFailed):
        crud.handle_save({"name": 1})

    assert crud.data == []
    assert crud.loading is False


def test_handle_delete(fake_http):
    fake_http.add("DELETE", USERS, status_code=204)
    crud, _ = _crud(fake_http)
    crud.data = _users(2)

    assert crud.handle_delete({"id": 1}) is True
    assert [r["id"] for r in crud.data] == [2]


def test_handle_delete_failure(fake_http):
    fake_http.add("DELETE", USERS, status_code=400, payload={"error": "Cannot delete"})
    crud, notifier = _crud(fake_http)
    crud.data = _users(2)

    assert crud.handle_delete({"id": 1}) is False
    assert len(crud.data) == 2
    assert notifier.messages("error") == ["Cannot delete"]

    with pytest.raises(RequestFailed):
        crud.handle_delete({"id": 1}, swallow_errors=False)


def test_replace_item(fake_http):
    crud, _ = _crud(fake_http)
    crud.data = [{"id": 1, "permissions": []}, {"id": 2, "permissions": []}]

    crud.replace_item(2, {"permissions": [{"screen_key": "users", "permission_key": "view"}]})

    assert crud.data[0]["permissions"] == []
    assert crud.data[1]["permissions"][0]["permission_key"] == "view"


def test_default_filter():
    item = {"name": "Developer", "position_id": 2, "departments": [1, 3], "active": True}

    assert default_filter(item, {"name": "DEV"}) is True
    assert default_filter(item, {"position_id": "2"}) is True
    assert default_filter(item, {"position_id": 3}) is False
    assert default_filter(item, {"departments": "3"}) is True
    assert default_filter(item, {"departments": 2}) is False
    assert default_filter(item, {"active": "true"}) is True
    assert default_filter(item, {"name": "", "position_id": None}) is True


def test_column_and_filter_declarations():
    assert create_column("created_at", "Created", type="date") == {
        "key": "created_at",
        "label": "Created",
        "type": "date",
        "render": None,
    }
    assert create_filter("position_id", "Position", "select", {"placeholder": "Any"}) == {
        "key": "position_id",
        "label": "Position",
        "component": "select",
        "component_props": {"placeholder": "Any"},
    }
