"""Option set, optioning and option writes.

Encapsulates the SQL used by option-set services, keeping the HTTP layer free
of direct SQL. Every function takes the caller's connection so several writes
share one transaction; failures are logged with context and re-raised.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from mission_forms.logic.repository_graph import dump_names, mission_clause
from mission_forms.models.domain import Option, OptionSet, Optioning

logger = logging.getLogger(__name__)


def option_set_names(conn: Connection, mission_id: Optional[str]) -> List[Tuple[str, str]]:
    """Return ``(option_set_id, name)`` pairs in one mission scope."""
    where, params = mission_clause(mission_id)
    rows = conn.execute(
        sql_text(f"SELECT option_set_id, name FROM option_sets WHERE {where} ORDER BY name ASC"),
        params,
    ).fetchall()
    return [(str(r[0]), str(r[1])) for r in rows]


def option_exists(conn: Connection, option_id: str) -> bool:
    row = conn.execute(
        sql_text("SELECT 1 FROM options WHERE option_id = :id"), {"id": str(option_id)}
    ).fetchone()
    return row is not None


def insert_option(conn: Connection, option: Option) -> None:
    conn.execute(
        sql_text(
            """
            INSERT INTO options (option_id, mission_id, is_standard, standard_id, names_json)
            VALUES (:id, :mission_id, :is_standard, :standard_id, :names)
            """
        ),
        {
            "id": option.id,
            "mission_id": option.mission_id,
            "is_standard": bool(option.is_standard),
            "standard_id": option.standard_id,
            "names": dump_names(option.names),
        },
    )


def update_option_names(conn: Connection, option: Option) -> None:
    conn.execute(
        sql_text("UPDATE options SET names_json = :names WHERE option_id = :id"),
        {"names": dump_names(option.names), "id": option.id},
    )


def insert_option_set_row(conn: Connection, option_set: OptionSet) -> None:
    conn.execute(
        sql_text(
            """
            INSERT INTO option_sets (option_set_id, name, mission_id, is_standard, standard_id)
            VALUES (:id, :name, :mission_id, :is_standard, :standard_id)
            """
        ),
        {
            "id": option_set.id,
            "name": option_set.name,
            "mission_id": option_set.mission_id,
            "is_standard": bool(option_set.is_standard),
            "standard_id": option_set.standard_id,
        },
    )


def insert_optioning(conn: Connection, optioning: Optioning) -> None:
    conn.execute(
        sql_text(
            """
            INSERT INTO optionings (optioning_id, option_set_id, option_id, rank, mission_id, is_standard, standard_id)
            VALUES (:id, :set_id, :option_id, :rank, :mission_id, :is_standard, :standard_id)
            """
        ),
        {
            "id": optioning.id,
            "set_id": optioning.option_set_id,
            "option_id": optioning.option.id,
            "rank": optioning.rank,
            "mission_id": optioning.mission_id,
            "is_standard": bool(optioning.is_standard),
            "standard_id": optioning.standard_id,
        },
    )


def insert_option_set(conn: Connection, option_set: OptionSet) -> None:
    """Insert a newly built option set with its optionings and any new options."""
    try:
        insert_option_set_row(conn, option_set)
        for oing in option_set.optionings:
            if not option_exists(conn, oing.option.id):
                insert_option(conn, oing.option)
            insert_optioning(conn, oing)
    except Exception:
        logger.error("insert_option_set failed option_set_id=%s", option_set.id, exc_info=True)
        raise


def update_optionings(conn: Connection, optionings: Iterable[Optioning]) -> None:
    """Persist rank and option link of existing optionings.

    Ranks have no unique constraint, so rows are written directly in one pass.
    """
    for oing in optionings:
        conn.execute(
            sql_text("UPDATE optionings SET rank = :rank, option_id = :option_id WHERE optioning_id = :id"),
            {"rank": oing.rank, "option_id": oing.option.id, "id": oing.id},
        )


def delete_optionings(conn: Connection, optioning_ids: Iterable[str]) -> int:
    ids = [str(i) for i in optioning_ids]
    for oid in ids:
        conn.execute(sql_text("DELETE FROM optionings WHERE optioning_id = :id"), {"id": oid})
    return len(ids)


def delete_option_set(conn: Connection, option_set_id: str) -> None:
    """Delete an option set and its optionings. Options are shared and survive."""
    try:
        conn.execute(sql_text("DELETE FROM optionings WHERE option_set_id = :id"), {"id": str(option_set_id)})
        conn.execute(sql_text("DELETE FROM option_sets WHERE option_set_id = :id"), {"id": str(option_set_id)})
    except Exception:
        logger.error("delete_option_set failed option_set_id=%s", option_set_id, exc_info=True)
        raise


def mission_option_count(conn: Connection, mission_id: Optional[str]) -> int:
    where, params = mission_clause(mission_id)
    row = conn.execute(sql_text(f"SELECT COUNT(*) FROM options WHERE {where}"), params).fetchone()
    return int(row[0]) if row and row[0] is not None else 0


__all__ = [
    "option_set_names",
    "option_exists",
    "insert_option",
    "update_option_names",
    "insert_option_set_row",
    "insert_optioning",
    "insert_option_set",
    "update_optionings",
    "delete_optionings",
    "delete_option_set",
    "mission_option_count",
]
