from __future__ import annotations

import logging

from admin_console.db.table_store import TableStore

logger = logging.getLogger(__name__)

TABLES = ("users", "positions", "departments", "screens", "permissions")

SCREENS = (
    {"key": "users", "name": "Users"},
    {"key": "positions", "name": "Positions"},
    {"key": "departments", "name": "Departments"},
)

PERMISSIONS = (
    {"key": "view", "name": "View"},
    {"key": "edit", "name": "Edit"},
    {"key": "delete", "name": "Delete"},
    {"key": "export", "name": "Export"},
    {"key": "grant", "name": "Grant access"},
)


def init_db(store: TableStore, *, seed_demo_data: bool = True) -> None:
    """
    Ensure every table file exists, then seed reference data (+ demo data).

    Reference tables (screens, permissions) are always seeded when empty; the
    demo organisation is only written when `seed_demo_data` is on and there
    are no departments yet.
    """

    for table in TABLES:
        store.ensure_table(table)

    if not store.read("screens"):
        store.create_many("screens", SCREENS)
        logger.info("Seeded %d screens", len(SCREENS))
    if not store.read("permissions"):
        store.create_many("permissions", PERMISSIONS)
        logger.info("Seeded %d permissions", len(PERMISSIONS))

    if seed_demo_data and not store.read("departments"):
        _seed(store)


def _seed(store: TableStore) -> None:
    it, hr, _fin = store.create_many(
        "departments",
        [{"name": "Information Technology"}, {"name": "Human Resources"}, {"name": "Finance"}],
    )

    grants = [
        {"screen_key": screen["key"], "permission_key": perm["key"]}
        for screen in SCREENS
        for perm in PERMISSIONS
    ]
    admin, analyst = store.create_many(
        "positions",
        [
            {"name": "Administrator", "departments": [it["id"], hr["id"]], "permissions": grants},
            {
                "name": "HR Analyst",
                "departments": hr["id"],
                "permissions": [
                    {"screen_key": "users", "permission_key": "view"},
                    {"screen_key": "users", "permission_key": "edit"},
                ],
            },
        ],
    )

    store.create_many(
        "users",
        [
            {"name": "Alice Admin", "email": "admin@example.com", "password": "admin", "position_id": admin["id"]},
            {"name": "Harry Analyst", "email": "harry@example.com", "password": "harry", "position_id": analyst["id"]},
        ],
    )
    logger.info("Seeded demo departments, positions and users")
