"""
Tests for ResourceClient.

Uses the `fake_http` fixture (canned `requests.Response` objects per route),
so no server is involved.
"""
from __future__ import annotations

import pytest
import requests

from admin_console.client.notifications import RecordingNotifier
from admin_console.client.resource import RequestFailed, ResourceClient

URL = "http://console.test/api/departments"


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def api(fake_http, notifier):
    return ResourceClient(URL, fake_http, notifier=notifier)


def test_get_all_encodes_params(api, fake_http, notifier):
    fake_http.add("GET", URL, payload=[{"id": 1, "name": "IT"}])

    result = api.get_all({"include": ["positions", "users"], "active": True})

    assert result == [{"id": 1, "name": "IT"}]
    assert fake_http.calls_to("GET", URL) == [{"params": {"include": "positions,users", "active": "true"}}]
    assert notifier.notifications == []
    assert api.loading is False


def test_get_by_id_sends_id_param(api, fake_http):
    fake_http.add("GET", URL, payload={"id": 4, "name": "IT"})

    assert api.get_by_id(4)["id"] == 4
    assert fake_http.calls_to("GET", URL)[0]["params"] == {"id": 4}


def test_create_notifies_success(api, fake_http, notifier):
    fake_http.add("POST", URL, status_code=201, payload={"id": 1, "name": "IT"})

    created = api.create({"name": "IT"})

    assert created["id"] == 1
    assert fake_http.calls_to("POST", URL)[0]["json"] == {"name": "IT"}
    assert notifier.messages("success") == ["Record created successfully"]


def test_save_routes_on_id(api, fake_http):
    fake_http.add("POST", URL, status_code=201, payload={"id": 1})
    fake_http.add("PUT", URL, payload={"id": 1})

    api.save({"name": "new"})
    api.save({"id": 1, "name": "changed"})

    assert [m for m, _u, _k in fake_http.calls] == ["POST", "PUT"]


def test_remove_handles_empty_204(api, fake_http, notifier):
    fake_http.add("DELETE", URL, status_code=204)

    assert api.remove(3) is None
    assert fake_http.calls_to("DELETE", URL)[0]["params"] == {"id": 3}
    assert notifier.messages("success") == ["Record deleted successfully"]


def test_mutation_failure_carries_server_message(api, fake_http, notifier):
    fake_http.add("DELETE", URL, status_code=400, payload={"error": "Cannot delete a department that still has positions"})

    with pytest.raises(RequestFailed) as exc_info:
        api.remove(1)

    assert exc_info.value.message == "Cannot delete a department that still has positions"
    assert exc_info.value.status_code == 400
    assert api.error == "Cannot delete a department that still has positions"
    assert notifier.messages("error") == ["Cannot delete a department that still has positions"]
    assert notifier.messages("success") == []


def test_read_failure_notifies_generic_message(api, fake_http, notifier):
    fake_http.add("GET", URL, status_code=500, payload={"error": "disk on fire"})

    with pytest.raises(RequestFailed):
        api.get_all()

    assert api.error == "disk on fire"
    assert notifier.messages("error") == ["Error loading data"]


def test_failure_without_error_field_uses_default(api, fake_http):
    fake_http.add("PUT", URL, status_code=404, payload={"detail": "nope"})

    with pytest.raises(RequestFailed) as exc_info:
        api.update({"id": 1})

    assert exc_info.value.message == "Error updating record"


def test_non_json_failure_uses_body_text(api, fake_http):
    fake_http.add("POST", URL, status_code=502, text="Bad gateway")

    with pytest.raises(RequestFailed) as exc_info:
        api.create({"name": "x"})

    assert exc_info.value.message == "Bad gateway"


def test_network_error_becomes_request_failed(api, fake_http):
    fake_http.fail("POST", URL, requests.ConnectionError("refused"))

    with pytest.raises(RequestFailed) as exc_info:
        api.create({"name": "x"})

    assert exc_info.value.message == "Error creating record"
    assert exc_info.value.status_code is None
    assert api.loading is False


def test_custom_messages_and_silent_mode(fake_http, notifier):
    fake_http.add("POST", URL, status_code=201, payload={"id": 1})
    loud = ResourceClient(URL, fake_http, notifier=notifier, messages={"create_success": "Department created"})
    quiet = ResourceClient(URL, fake_http, notifier=notifier, show_notifications=False)

    loud.create({"name": "a"})
    quiet.create({"name": "b"})

    assert notifier.messages() == ["Department created"]


def test_timeout_is_forwarded(fake_http):
    fake_http.add("GET", URL, payload=[])

    ResourceClient(URL, fake_http, timeout=2.5).get_all()

    assert fake_http.calls_to("GET", URL)[0]["timeout"] == 2.5


def test_against_live_app(client):
    api = ResourceClient("/api/departments", client, notifier=RecordingNotifier())

    created = api.create({"name": "IT"})
    api.update({"id": created["id"], "name": "Tech"})

    assert api.get_by_id(created["id"])["name"] == "Tech"
    api.remove(created["id"])
    assert api.get_all() == []
