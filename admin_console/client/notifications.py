"""Transient user notifications ("toasts")."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Protocol

logger = logging.getLogger(__name__)

Level = Literal["success", "error"]


@dataclass(frozen=True)
class Notification:
    level: Level
    message: str


class Notifier(Protocol):
    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingNotifier:
    """Default notifier: success at INFO, errors at WARNING."""

    def success(self, message: str) -> None:
        logger.info("notify success: %s", message)

    def error(self, message: str) -> None:
        logger.warning("notify error: %s", message)


class RecordingNotifier(LoggingNotifier):
    """Keeps every notification, newest last, for a UI to drain."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def success(self, message: str) -> None:
        super().success(message)
        self.notifications.append(Notification("success", message))

    def error(self, message: str) -> None:
        super().error(message)
        self.notifications.append(Notification("error", message))

    def messages(self, level: Level | None = None) -> list[str]:
        return [n.message for n in self.notifications if level is None or n.level == level]

    def clear(self) -> None:
        self.notifications.clear()
