"""
Pytest fixtures for the test suite.

Store and API tests run against a JSON database under ``tmp_path``, so tests
do not affect each other or the repo-local ``database/`` directory.
"""
from __future__ import annotations

import json
from typing import Any

import pytest
import requests
from fastapi.testclient import TestClient

from admin_console.db.init_db import init_db
from admin_console.db.table_store import TableStore
from admin_console.main import create_app
from admin_console.settings import Settings


def make_response(status_code: int = 200, payload: Any = None, text: str | None = None) -> requests.Response:
    """Build a real `requests.Response` with a JSON (or raw text) body."""
    response = requests.Response()
    response.status_code = status_code
    if text is None:
        text = "" if payload is None else json.dumps(payload)
    response._content = text.encode("utf-8")
    response.encoding = "utf-8"
    return response


class FakeHttp:
    """
    Stand-in for `requests.Session`: canned responses per (method, url).

    A route value may be a response, an exception to raise, or a callable
    taking the request kwargs and returning a response.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Any] = {}
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.cookies = requests.cookies.RequestsCookieJar()

    def add(self, method: str, url: str, status_code: int = 200, payload: Any = None, text: str | None = None) -> None:
        self.routes[(method, url)] = make_response(status_code, payload, text)

    def fail(self, method: str, url: str, exc: Exception) -> None:
        self.routes[(method, url)] = exc

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append((method, url, kwargs))
        route = self.routes[(method, url)]
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(**kwargs)
        return route

    def calls_to(self, method: str, url: str) -> list[dict[str, Any]]:
        return [kwargs for m, u, kwargs in self.calls if (m, u) == (method, url)]


@pytest.fixture
def fake_http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def store(tmp_path) -> TableStore:
    """Empty tables plus the screens/permissions reference data."""
    store = TableStore(tmp_path / "database")
    init_db(store, seed_demo_data=False)
    return store


@pytest.fixture
def seeded_store(tmp_path) -> TableStore:
    store = TableStore(tmp_path / "database")
    init_db(store, seed_demo_data=True)
    return store


def _client_for(settings: Settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def client(tmp_path):
    """TestClient over an app with empty entity tables."""
    settings = Settings(database_dir=str(tmp_path / "database"), seed_demo_data=False)
    yield from _client_for(settings)


@pytest.fixture
def seeded_client(tmp_path):
    """TestClient over an app seeded with the demo organisation."""
    settings = Settings(database_dir=str(tmp_path / "database"), seed_demo_data=True)
    yield from _client_for(settings)
