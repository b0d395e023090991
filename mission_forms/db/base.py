"""SQLAlchemy engine and transaction helpers.

The service targets PostgreSQL in production but supports SQLite for local
development and CI. No declarative models are defined here; repositories
issue ``text()`` SQL against connections handed out by this module.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import StaticPool

from mission_forms.config import load_config

logger = logging.getLogger(__name__)


def _db_url() -> str:
    return load_config().database.dsn


# Module-level cached Engine to ensure a single shared connection/engine
_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


def get_engine(url: str | None = None) -> Engine:
    """Return a singleton SQLAlchemy Engine for the given URL.

    Reuses a module-level Engine so repositories share the same connection.
    For SQLite in-memory URLs, use a StaticPool to keep a single connection
    alive across sessions and threads during tests.
    """
    global _ENGINE, _ENGINE_URL
    resolved_url = url or _db_url()

    if _ENGINE is None or _ENGINE_URL != resolved_url:
        kwargs: dict = {"future": True, "pool_pre_ping": True}
        if resolved_url.startswith("sqlite") and ":memory:" in resolved_url:
            kwargs.update({
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            })
        _ENGINE = create_engine(resolved_url, **kwargs)
        _ENGINE_URL = resolved_url

    return _ENGINE


@contextmanager
def transaction() -> Iterator[Connection]:
    """Yield a connection inside a single transaction.

    Commits when the block exits normally; rolls back and re-raises otherwise
    so a graph mutation (copy, rank fix, delete) lands atomically or not at all.
    """
    eng = get_engine()
    with eng.connect() as conn:
        trans = conn.begin()
        try:
            yield conn
            trans.commit()
        except Exception:
            trans.rollback()
            logger.error("DB transaction error; rolled back", exc_info=True)
            raise
