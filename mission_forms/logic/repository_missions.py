"""Mission (tenant) lookups and inserts."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from mission_forms.models.domain import Mission


def get_mission(conn: Connection, mission_id: str) -> Optional[Mission]:
    row = conn.execute(
        sql_text("SELECT mission_id, name FROM missions WHERE mission_id = :id"), {"id": str(mission_id)}
    ).fetchone()
    if row is None:
        return None
    return Mission(id=str(row[0]), name=str(row[1]))


def insert_mission(conn: Connection, mission: Mission) -> None:
    conn.execute(
        sql_text("INSERT INTO missions (mission_id, name) VALUES (:id, :name)"),
        {"id": mission.id, "name": mission.name},
    )


__all__ = ["get_mission", "insert_mission"]
