from __future__ import annotations

import secrets
import string
from typing import Any

from admin_console.api.resource import ResourceDefinition, build_resource_router
from admin_console.db.table_store import Relation
from admin_console.schemas.entities import UserPayload

_PASSWORD_ALPHABET = string.ascii_lowercase + string.digits


def generate_password(length: int = 8) -> str:
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


def _default_password(body: dict[str, Any]) -> dict[str, Any]:
    # Prototype: passwords are stored and returned in plain text.
    if not body.get("password"):
        body = {**body, "password": generate_password()}
    return body


USERS = ResourceDefinition(
    table="users",
    label="User",
    relations={
        "position": Relation(table="positions", kind="one", foreign_key="position_id"),
    },
    payload_model=UserPayload,
    before_create=_default_password,
)

router = build_resource_router(USERS)
