from __future__ import annotations

import logging
import os
from typing import Callable

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from mission_forms.config import load_config
from mission_forms.db.base import get_engine
from mission_forms.db.migrations_runner import apply_migrations
from mission_forms.http.problem import (
    handle_domain_error,
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from mission_forms.http.request_id import RequestIdMiddleware
from mission_forms.logging_setup import configure_logging
from mission_forms.logic.errors import MissionFormsError
from mission_forms.routes import api_router

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


def _postgres_driver_missing(dsn: str) -> bool:
    if not dsn.startswith("postgresql"):
        return False
    try:
        import psycopg2  # type: ignore  # noqa: F401
    except ImportError as e:  # pragma: no cover - optional dependency for local runs
        logger.warning("psycopg2 not available; skipping database work for %s: %s", dsn.split("@")[-1], e)
        return True
    return False


def _health_check() -> Callable[[], dict]:
    def check() -> dict:
        dsn = load_config().database.dsn
        if _postgres_driver_missing(dsn):
            return {"status": "degraded", "db": False}
        try:
            with get_engine().connect() as conn:
                conn.execute(text("SELECT 1"))
            return {"status": "ok", "db": True}
        except SQLAlchemyError:
            logger.error("health.db_check_failed", exc_info=True)
            return {"status": "degraded", "db": False}

    return check


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Mission Forms")
    app.add_exception_handler(MissionFormsError, handle_domain_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_middleware(RequestIdMiddleware)

    @app.on_event("startup")
    def _apply_migrations() -> None:
        if os.getenv("AUTO_APPLY_MIGRATIONS", "").strip().lower() not in _TRUTHY:
            logger.info("AUTO_APPLY_MIGRATIONS disabled; skipping migrations at startup")
            return
        if _postgres_driver_missing(load_config().database.dsn):
            return
        try:
            applied = apply_migrations(get_engine())
        except Exception:
            logger.error("Failed to apply migrations at startup", exc_info=True)
            raise
        logger.info("migrations.applied count=%s", len(applied))

    app.include_router(api_router, prefix="/api/v1")

    health_check = _health_check()

    @app.get("/health")
    def health():  # pragma: no cover - trivial
        return health_check()

    return app


# Intentionally do not instantiate the app at import time to prevent side effects.
__all__ = ["create_app"]
