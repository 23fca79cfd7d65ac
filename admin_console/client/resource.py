"""
HTTP client for one resource endpoint.

Mirrors the console's request layer: one HTTP call per method, JSON bodies for
mutations, failures normalized to `RequestFailed` with the server's
``{"error": ...}`` message when there is one, and a notification for every
outcome. No retries, no caching.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import requests

from .notifications import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)

DEFAULT_MESSAGES: dict[str, str] = {
    "create_success": "Record created successfully",
    "update_success": "Record updated successfully",
    "delete_success": "Record deleted successfully",
    "create_error": "Error creating record",
    "update_error": "Error updating record",
    "delete_error": "Error deleting record",
    "fetch_error": "Error loading data",
}


class RequestFailed(Exception):
    """A resource call failed; `message` is safe to show to the user."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def _encode_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    encoded: dict[str, Any] = {}
    for key, value in (params or {}).items():
        if isinstance(value, (list, tuple)):
            value = ",".join(str(v) for v in value)
        elif isinstance(value, bool):
            value = "true" if value else "false"
        encoded[key] = value
    return encoded


def failure_message(response: Any, default: str) -> str:
    """
    Best message for a non-success response.

    ``{"error": "..."}`` body -> that message; other JSON -> `default`;
    non-JSON body -> the raw text; empty body -> `default`.
    """

    text = response.text or ""
    try:
        data = json.loads(text)
    except ValueError:
        return text or default
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return default


class ResourceClient:
    """
    Create/read/update/delete against one endpoint (e.g. ``http://host/api/users``).

    `http` is anything with a ``requests.Session``-style ``request()`` method;
    FastAPI's ``TestClient`` qualifies.
    """

    def __init__(
        self,
        endpoint: str,
        http: Any | None = None,
        *,
        notifier: Notifier | None = None,
        messages: Mapping[str, str] | None = None,
        show_notifications: bool = True,
        timeout: float | None = None,
    ):
        self.endpoint = endpoint
        self.http = http if http is not None else requests.Session()
        self.notifier = notifier or LoggingNotifier()
        self.messages = {**DEFAULT_MESSAGES, **(messages or {})}
        self.show_notifications = show_notifications
        self.timeout = timeout

        self.loading = False
        self.error: str | None = None

    # ---- Transport -------------------------------------------------------------------

    def _call(self, method: str, fallback_key: str, **kwargs: Any) -> Any:
        """Perform one HTTP call; return the response or raise RequestFailed."""
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout

        try:
            response = self.http.request(method, self.endpoint, **kwargs)
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, self.endpoint, type(exc).__name__)
            raise RequestFailed(self.messages[fallback_key]) from exc

        if not _is_success(response.status_code):
            message = failure_message(response, self.messages[fallback_key])
            logger.info("%s %s -> %s: %s", method, self.endpoint, response.status_code, message)
            raise RequestFailed(message, response.status_code)
        return response

    def _run(self, method: str, *, error_key: str, success_key: str | None = None, **kwargs: Any) -> Any:
        self.loading = True
        self.error = None
        try:
            response = self._call(method, error_key, **kwargs)
            result = None
            if response.status_code != 204 and response.text:
                try:
                    result = response.json()
                except ValueError as exc:
                    raise RequestFailed(self.messages[error_key], response.status_code) from exc
        except RequestFailed as exc:
            self.error = exc.message
            if self.show_notifications:
                # Reads show the generic message; mutations show the server's reason.
                self.notifier.error(self.messages["fetch_error"] if error_key == "fetch_error" else exc.message)
            raise
        finally:
            self.loading = False

        if success_key and self.show_notifications:
            self.notifier.success(self.messages[success_key])
        return result

    # ---- Operations ------------------------------------------------------------------

    def get_all(self, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        return self._run("GET", error_key="fetch_error", params=_encode_params(params))

    def get_by_id(self, record_id: int, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return self._run("GET", error_key="fetch_error", params=_encode_params({"id": record_id, **(params or {})}))

    def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return self._run("POST", error_key="create_error", success_key="create_success", json=dict(data))

    def update(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return self._run("PUT", error_key="update_error", success_key="update_success", json=dict(data))

    def remove(self, record_id: int) -> None:
        self._run("DELETE", error_key="delete_error", success_key="delete_success", params={"id": record_id})

    def save(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Update when `data` carries an id, create otherwise."""
        return self.update(data) if data.get("id") else self.create(data)
