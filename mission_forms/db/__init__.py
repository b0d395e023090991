"""Database bootstrap utilities for the Mission Forms service.

Exposes engine/transaction construction and the migrations runner that
applies SQL files from the local migrations/ directory. The DB layer does not
leak ORM models into route handlers.
"""

from mission_forms.db.base import get_engine, transaction
from mission_forms.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "transaction",
    "apply_migrations",
]
