from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Minimal logging configuration for the console.

    Notes:
    - Uvicorn configures the handlers; this only sets the level for our package.
    - Set `CONSOLE_LOG_LEVEL=DEBUG` (or INFO/WARNING/ERROR) to control verbosity.
    """

    normalized = level.upper()
    logging.getLogger("admin_console").setLevel(normalized)
    # Child loggers (admin_console.client.*, admin_console.db.*) inherit this level.
    logging.getLogger("admin_console").propagate = True
