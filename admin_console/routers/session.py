from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import unquote

from fastapi import APIRouter, Request

from admin_console.api.errors import ApiError

logger = logging.getLogger(__name__)

SESSION_COOKIE = "user"

router = APIRouter(prefix="/api", tags=["session"])


class NotAuthenticated(ApiError):
    status_code = 401


def read_session_cookie(request: Request) -> dict[str, Any] | None:
    """
    Decode the user mirrored into the plain `user` cookie.

    The cookie is not signed: it only backs redirect decisions, never
    authorization.
    """

    raw = request.cookies.get(SESSION_COOKIE)
    if not raw:
        return None
    try:
        user = json.loads(unquote(raw))
    except ValueError:
        logger.warning("Unreadable session cookie path=%s", request.url.path)
        return None
    return user if isinstance(user, dict) else None


@router.get("/session")
def current_session(request: Request) -> dict[str, Any]:
    user = read_session_cookie(request)
    if user is None:
        raise NotAuthenticated("Authentication required")
    return user
