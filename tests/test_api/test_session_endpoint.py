"""Tests for GET /api/session (reads the mirrored `user` cookie)."""
from __future__ import annotations

from admin_console.client.session import ConsoleSession


def test_session_requires_cookie(client):
    response = client.get("/api/session")

    assert response.status_code == 401
    assert response.json() == {"error": "Authentication required"}


def test_session_returns_cookie_user(client):
    session = ConsoleSession({"id": 1, "email": "admin@example.com", "position_id": 1})

    response = client.get("/api/session", headers={"Cookie": f"user={session.cookie_value()}"})

    assert response.status_code == 200
    assert response.json()["email"] == "admin@example.com"


def test_unreadable_cookie_is_unauthenticated(client):
    response = client.get("/api/session", headers={"Cookie": "user=not-json"})

    assert response.status_code == 401
