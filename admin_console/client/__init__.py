"""
Console client: the state layer behind the admin screens.

This package has no dependency on the server packages (admin_console.db,
admin_console.routers, ...). It talks to the REST surface over HTTP only.
"""

from .crud import CrudConfig, CrudState, Pagination, RelationSpec, create_column, create_filter, default_filter
from .notifications import LoggingNotifier, Notification, Notifier, RecordingNotifier
from .permissions import PermissionResolver
from .resource import RequestFailed, ResourceClient
from .session import ConsoleSession, LoginResult, login, logout, mirror_cookie

__all__ = [
    "ConsoleSession",
    "CrudConfig",
    "CrudState",
    "LoggingNotifier",
    "LoginResult",
    "Notification",
    "Notifier",
    "Pagination",
    "PermissionResolver",
    "RecordingNotifier",
    "RelationSpec",
    "RequestFailed",
    "ResourceClient",
    "create_column",
    "create_filter",
    "default_filter",
    "login",
    "logout",
    "mirror_cookie",
]
