from __future__ import annotations

from fastapi import Request

from admin_console.db.table_store import TableStore


def get_store(request: Request) -> TableStore:
    """
    Main store dependency.

    The store is created once during app startup and shared by every request;
    each operation re-reads its JSON file, so there is nothing to open or close.
    """

    store = getattr(request.app.state, "store", None)
    if store is None:
        raise RuntimeError("Table store not initialized. Did app startup run?")
    return store
