"""Screen/permission checks for the logged-in user."""

from __future__ import annotations

import logging
from typing import Any

from .resource import RequestFailed, ResourceClient
from .session import ConsoleSession

logger = logging.getLogger(__name__)


class PermissionResolver:
    """
    Resolve the session user's position permissions once, then answer checks.

    Closed world: a user without a position, or a position without a matching
    ``{screen_key, permission_key}`` grant, is denied.
    """

    def __init__(self, session: ConsoleSession, positions: ResourceClient):
        self.session = session
        self.positions = positions

        self.permissions: list[dict[str, Any]] = []
        self.loading = True
        self.ready = False

    def load(self) -> None:
        if self.ready:
            return
        try:
            position_id = self.session.position_id
            if not position_id:
                self.permissions = []
                return

            positions = self.positions.get_all()
            position = next((p for p in positions if p.get("id") == position_id), None)
            self.permissions = list((position or {}).get("permissions") or [])
        except RequestFailed as exc:
            logger.error("Error loading permissions: %s", exc.message)
            self.permissions = []
        finally:
            self.loading = False
            self.ready = True

    def has_permission(self, screen_key: str | None, permission_key: str | None) -> bool:
        if not screen_key or not permission_key:
            return False
        return any(
            p.get("screen_key") == screen_key and p.get("permission_key") == permission_key
            for p in self.permissions
        )

    def can_view(self, screen_key: str | None) -> bool:
        return self.has_permission(screen_key, "view")

    def can_edit(self, screen_key: str | None) -> bool:
        return self.has_permission(screen_key, "edit")

    def can_delete(self, screen_key: str | None) -> bool:
        return self.has_permission(screen_key, "delete")

    def can_export(self, screen_key: str | None) -> bool:
        return self.has_permission(screen_key, "export")

    def get_permissions_for(self, screen_key: str) -> list[str]:
        return [p["permission_key"] for p in self.permissions if p.get("screen_key") == screen_key]
