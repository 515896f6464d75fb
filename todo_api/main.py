import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from todo_api.config import Settings
from todo_api.database import Database
from todo_api.errors import register_error_handlers
from todo_api.logging_setup import register_request_logging, setup_logging
from todo_api.routers import auth, health, tasks
from todo_api.utils.auth import TokenService

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, db: Optional[Database] = None) -> FastAPI:
    """Build the API for one set of settings.

    Settings are read from the environment when not given. The database is
    created from ``settings.database_url`` unless one is passed in.
    """
    settings = settings or Settings.from_env()
    db = db or Database(settings.database_url)
    db.create_all()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("API ready, database %s", db.engine.url.render_as_string(hide_password=True))
        yield
        db.dispose()

    app = FastAPI(title="Todo API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db
    app.state.tokens = TokenService.from_settings(settings)
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_request_logging(app)
    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(tasks.router)
    return app


def main():
    import uvicorn

    settings = Settings.from_env()
    setup_logging(settings.log_level)
    app = create_app(settings)
    logger.info("API on http://%s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
