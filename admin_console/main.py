from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from admin_console.api.errors import register_error_handlers
from admin_console.db.init_db import init_db
from admin_console.db.table_store import TableStore
from admin_console.logging_config import configure_app_logging
from admin_console.routers import departments, positions, reference, session, users
from admin_console.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        store = TableStore(settings.resolved_database_dir())
        init_db(store, seed_demo_data=settings.seed_demo_data)
        app.state.store = store
        logger.info("Table store ready at %s", store.root)

        yield
        # Shutdown: nothing is held open between requests.

    app = FastAPI(title="Admin Console", lifespan=lifespan)
    app.state.settings = settings
    register_error_handlers(app)

    app.include_router(users.router)
    app.include_router(positions.router)
    app.include_router(departments.router)
    app.include_router(reference.router)
    app.include_router(session.router)

    return app


app = create_app()
