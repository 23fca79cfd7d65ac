from __future__ import annotations

from admin_console.api.resource import DeleteGuard, ResourceDefinition, build_resource_router
from admin_console.db.table_store import Relation
from admin_console.schemas.entities import PositionPayload

POSITIONS = ResourceDefinition(
    table="positions",
    label="Position",
    relations={
        "department": Relation(table="departments", kind="many", foreign_key="departments"),
        "users": Relation(table="users", kind="reverse", reference_key="position_id"),
    },
    payload_model=PositionPayload,
    delete_guards=(
        DeleteGuard(
            table="users",
            field="position_id",
            message="Cannot delete a position that still has users",
        ),
    ),
)

router = build_resource_router(POSITIONS)
