"""
Generic REST resource over one table.

Every entity endpoint (users, positions, departments) has the same surface:

    GET    /api/{table}?id=&include=&<filters>
    POST   /api/{table}
    PUT    /api/{table}           body: {id, ...partial fields}
    DELETE /api/{table}?id=

Per-entity differences (relations, payload checks, delete guards, create
defaults) are declared on a `ResourceDefinition` instead of being written
three times.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from fastapi import APIRouter, Body, Depends, Request, Response, status
from pydantic import BaseModel

from admin_console.api.errors import NotFound, ReferenceConflict, ValidationFailed
from admin_console.api.query import parse_query_params, split_include
from admin_console.db.dependencies import get_store
from admin_console.db.table_store import Relation, TableStore
from admin_console.schemas.entities import validate_payload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeleteGuard:
    """Refuse a delete while `table.field` still references the record."""

    table: str
    field: str
    message: str


@dataclass(frozen=True)
class ResourceDefinition:
    table: str
    label: str
    relations: Mapping[str, Relation] = field(default_factory=dict)
    payload_model: type[BaseModel] | None = None
    delete_guards: tuple[DeleteGuard, ...] = ()
    before_create: Callable[[dict[str, Any]], dict[str, Any]] | None = None

    @property
    def not_found_message(self) -> str:
        return f"{self.label} not found"


def _require_id(value: Any) -> int:
    if value is None or value == "" or value == 0:
        raise ValidationFailed("ID is required")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationFailed("Invalid ID")
    return value


def build_resource_router(resource: ResourceDefinition) -> APIRouter:
    router = APIRouter(prefix=f"/api/{resource.table}", tags=[resource.table])

    def _validate(body: dict[str, Any]) -> dict[str, Any]:
        if resource.payload_model is None:
            return body
        return validate_payload(resource.payload_model, body)

    @router.get("")
    def read_records(request: Request, store: TableStore = Depends(get_store)) -> Any:
        params = parse_query_params(request.query_params.multi_items())
        include = split_include(params.pop("include", None))

        if "id" in params:
            record = store.get_by_id(
                resource.table,
                _require_id(params.pop("id")),
                include=include,
                relations=resource.relations,
            )
            if record is None:
                raise NotFound(resource.not_found_message)
            return record

        return store.get_all(
            resource.table,
            where=params or None,
            include=include,
            relations=resource.relations,
        )

    @router.post("", status_code=status.HTTP_201_CREATED)
    def create_record(
        body: dict[str, Any] = Body(...),
        store: TableStore = Depends(get_store),
    ) -> dict[str, Any]:
        body = _validate(body)
        if resource.before_create is not None:
            body = resource.before_create(body)
        record = store.create(resource.table, body)
        logger.info("Created %s id=%s", resource.table, record["id"])
        return record

    @router.put("")
    def update_record(
        body: dict[str, Any] = Body(...),
        store: TableStore = Depends(get_store),
    ) -> dict[str, Any]:
        changes = dict(body)
        record_id = _require_id(changes.pop("id", None))
        changes = _validate(changes)

        record = store.update(resource.table, record_id, changes)
        if record is None:
            raise NotFound(resource.not_found_message)
        return record

    @router.delete("", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
    def delete_record(request: Request, store: TableStore = Depends(get_store)) -> Response:
        params = parse_query_params(request.query_params.multi_items())
        record_id = _require_id(params.get("id"))

        for guard in resource.delete_guards:
            if store.is_referenced(guard.table, guard.field, record_id):
                logger.info(
                    "Refusing delete of %s id=%s: referenced by %s.%s",
                    resource.table,
                    record_id,
                    guard.table,
                    guard.field,
                )
                raise ReferenceConflict(guard.message)

        if not store.remove(resource.table, record_id):
            raise NotFound(resource.not_found_message)
        logger.info("Deleted %s id=%s", resource.table, record_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
