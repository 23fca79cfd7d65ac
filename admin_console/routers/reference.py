from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from admin_console.db.dependencies import get_store
from admin_console.db.table_store import TableStore

router = APIRouter(prefix="/api", tags=["reference"])


@router.get("/screens")
def list_screens(store: TableStore = Depends(get_store)) -> list[dict[str, Any]]:
    return store.read("screens")


@router.get("/permissions")
def list_permissions(store: TableStore = Depends(get_store)) -> list[dict[str, Any]]:
    return store.read("permissions")
