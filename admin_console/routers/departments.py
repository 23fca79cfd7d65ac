from __future__ import annotations

from admin_console.api.resource import DeleteGuard, ResourceDefinition, build_resource_router
from admin_console.db.table_store import Relation
from admin_console.schemas.entities import DepartmentPayload

DEPARTMENTS = ResourceDefinition(
    table="departments",
    label="Department",
    relations={
        "positions": Relation(table="positions", kind="reverse", reference_key="departments"),
    },
    payload_model=DepartmentPayload,
    delete_guards=(
        DeleteGuard(
            table="positions",
            field="departments",
            message="Cannot delete a department that still has positions",
        ),
    ),
)

router = build_resource_router(DEPARTMENTS)
