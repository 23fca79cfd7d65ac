"""Screen x permission access matrix for one position."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from admin_console.client.resource import RequestFailed, ResourceClient

logger = logging.getLogger(__name__)


class AccessEditor:
    def __init__(
        self,
        position: Mapping[str, Any],
        screens: Sequence[Mapping[str, Any]],
        permissions: Sequence[Mapping[str, Any]],
        positions: ResourceClient,
        on_saved: Callable[[list[dict[str, str]]], None] | None = None,
    ):
        self.position_id = position["id"]
        self.screens = list(screens)
        self.permissions = list(permissions)
        self.positions = positions
        self.on_saved = on_saved

        self.open = False
        self.search = ""
        self.checked: dict[str, dict[str, bool]] = {
            screen["key"]: {perm["key"]: False for perm in self.permissions} for screen in self.screens
        }
        for grant in position.get("permissions") or []:
            # Grants for screens that no longer exist are dropped on the next save.
            screen_perms = self.checked.get(grant.get("screen_key"))
            if screen_perms is not None and grant.get("permission_key") in screen_perms:
                screen_perms[grant["permission_key"]] = True

    def show(self) -> None:
        self.open = True

    def close(self) -> None:
        self.open = False

    @property
    def filtered_screens(self) -> list[Mapping[str, Any]]:
        needle = self.search.strip().lower()
        if not needle:
            return self.screens
        return [
            s for s in self.screens
            if needle in str(s.get("name", "")).lower() or needle in str(s.get("key", "")).lower()
        ]

    def toggle(self, screen_key: str, permission_key: str) -> None:
        screen_perms = self.checked[screen_key]
        screen_perms[permission_key] = not screen_perms.get(permission_key, False)

    def checked_count(self, screen_key: str) -> int:
        return sum(1 for value in self.checked.get(screen_key, {}).values() if value)

    def payload(self) -> list[dict[str, str]]:
        return [
            {"screen_key": screen_key, "permission_key": perm_key}
            for screen_key, perms in self.checked.items()
            for perm_key, is_checked in perms.items()
            if is_checked
        ]

    def save(self) -> bool:
        items = self.payload()
        try:
            self.positions.update({"id": self.position_id, "permissions": items})
        except RequestFailed as exc:
            logger.info("Access update failed for position id=%s: %s", self.position_id, exc.message)
            return False
        if self.on_saved is not None:
            self.on_saved(items)
        self.close()
        return True
