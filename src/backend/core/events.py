"""
Application lifecycle event handlers.

Manages startup and shutdown of the database engine and the rate-limit store.
"""

from typing import Callable

import structlog
from fastapi import FastAPI

from core.config import settings
from db.session import close_db, init_db

logger = structlog.get_logger(__name__)


def create_start_app_handler(app: FastAPI) -> Callable:
    """Create startup event handler."""

    async def start_app() -> None:
        logger.info("app_starting", app=settings.APP_NAME, env=settings.APP_ENV)

        await init_db()

        logger.info(
            "app_started",
            rate_limit_backend=settings.RATE_LIMIT_BACKEND,
            rate_limit_enabled=settings.RATE_LIMIT_ENABLED,
        )

    return start_app


def create_stop_app_handler(app: FastAPI) -> Callable:
    """Create shutdown event handler."""

    async def stop_app() -> None:
        logger.info("app_stopping")

        await app.state.rate_limiter.store.close()
        await close_db()

        logger.info("app_stopped")

    return stop_app
