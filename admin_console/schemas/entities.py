from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr, ValidationError, field_validator

from admin_console.api.errors import ValidationFailed


class PermissionGrant(BaseModel):
    """One cell of a position's access-control matrix."""

    model_config = ConfigDict(extra="forbid")

    screen_key: StrictStr
    permission_key: StrictStr


class PositionPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: StrictStr | None = None
    # Stored as a bare id or an ordered list of ids.
    departments: StrictInt | list[StrictInt] | None = None
    permissions: list[PermissionGrant] | None = None

    @field_validator("departments", "permissions")
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        # Only runs for explicitly supplied values.
        if value is None:
            raise ValueError("must not be null")
        return value


class UserPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: StrictStr | None = None
    email: StrictStr | None = None
    password: StrictStr | None = None
    position_id: StrictInt | None = None


class DepartmentPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: StrictStr | None = None


_FIELD_MESSAGES = {
    "departments": "Invalid department list",
    "permissions": "Invalid permission list",
    "position_id": "Invalid position reference",
}


def validate_payload(model: type[BaseModel], body: dict[str, Any]) -> dict[str, Any]:
    """
    Check `body` against `model` and return it unchanged.

    The store keeps whatever the client sent; the models only reject the few
    fields with a known shape.
    """

    try:
        model.model_validate(body)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = str(first["loc"][0]) if first.get("loc") else ""
        raise ValidationFailed(_FIELD_MESSAGES.get(field, f"Invalid field {field!r}")) from exc
    return body
