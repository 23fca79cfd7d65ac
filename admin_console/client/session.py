"""
Logged-in user session.

The session is an explicit object: created by `login`, handed to whatever
needs the current user (permissions, header, navigation) and ended by
`logout`. `cookie_value()` gives the value mirrored into the plain ``user``
cookie that the server reads for redirect checks.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, unquote

from .resource import RequestFailed, ResourceClient

logger = logging.getLogger(__name__)

SESSION_COOKIE = "user"


class ConsoleSession:
    def __init__(self, user: dict[str, Any] | None = None):
        self._user = dict(user) if user else None

    @property
    def user(self) -> dict[str, Any] | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def position_id(self) -> int | None:
        return self._user.get("position_id") if self._user else None

    def cookie_value(self) -> str | None:
        if self._user is None:
            return None
        return quote(json.dumps(self._user, separators=(",", ":")))

    @classmethod
    def from_cookie(cls, raw: str | None) -> ConsoleSession:
        if not raw:
            return cls()
        try:
            user = json.loads(unquote(raw))
        except ValueError:
            logger.warning("Ignoring unreadable session cookie")
            return cls()
        return cls(user if isinstance(user, dict) else None)

    def end(self) -> None:
        self._user = None


@dataclass(frozen=True)
class LoginResult:
    success: bool
    session: ConsoleSession | None = None
    error: str | None = None


def login(users: ResourceClient, email: str, password: str) -> LoginResult:
    """
    Match e-mail (case-insensitive) and password against the users table.

    Prototype only: passwords are compared in plain text on the client.
    """

    try:
        candidates = users.get_all({"include": "position"})
    except RequestFailed as exc:
        logger.error("Login lookup failed: %s", exc.message)
        return LoginResult(success=False, error="Error during login")

    email_normalized = email.strip().lower()
    password_normalized = password.strip()
    for user in candidates:
        if str(user.get("email", "")).lower() == email_normalized and user.get("password") == password_normalized:
            logger.info("Login succeeded for user id=%s", user.get("id"))
            return LoginResult(success=True, session=ConsoleSession(user))

    logger.info("Login rejected for %s", email_normalized)
    return LoginResult(success=False, error="Invalid e-mail or password")


def mirror_cookie(session: ConsoleSession, http: Any) -> None:
    """Copy the session into the `user` cookie of `http` for server-side checks."""
    value = session.cookie_value()
    if value is not None:
        http.cookies.set(SESSION_COOKIE, value)


def logout(session: ConsoleSession, http: Any | None = None) -> None:
    """End the session and drop the mirrored cookie from `http` if given."""
    session.end()
    cookies = getattr(http, "cookies", None)
    if cookies is not None and SESSION_COOKIE in cookies:
        del cookies[SESSION_COOKIE]
