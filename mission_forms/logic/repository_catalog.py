"""SQL side of replication: the target scope and persisting the copies."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from mission_forms.logic.replication import ReplicationContext
from mission_forms.logic.repository_forms import insert_condition, insert_form_row, insert_questioning
from mission_forms.logic.repository_graph import GraphLoader
from mission_forms.logic.repository_option_sets import insert_option, insert_option_set_row, insert_optioning
from mission_forms.logic.repository_questions import insert_question
from mission_forms.models.domain import Condition, Form, Option, OptionSet, Optioning, Question, Questioning

logger = logging.getLogger(__name__)

# kind -> (table, id column, name column)
_TABLES = {
    Option.KIND: ("options", "option_id", None),
    OptionSet.KIND: ("option_sets", "option_set_id", "name"),
    Question.KIND: ("questions", "question_id", "code"),
    Form.KIND: ("forms", "form_id", "name"),
}


class SqlReplicationScope:
    """Replication scope backed by the database.

    ``find_copy`` loads through the caller's ``GraphLoader`` so a linked copy
    shares identity with anything else loaded in the same request.
    """

    def __init__(self, conn: Connection, loader: Optional[GraphLoader] = None) -> None:
        self.conn = conn
        self.loader = loader or GraphLoader(conn)

    def names_in_scope(self, kind: str, mission_id: Optional[str]) -> Iterable[str]:
        table, _, name_col = _TABLES[kind]
        if name_col is None:
            return []
        if mission_id is None:
            rows = self.conn.execute(sql_text(f"SELECT {name_col} FROM {table} WHERE mission_id IS NULL")).fetchall()
        else:
            rows = self.conn.execute(
                sql_text(f"SELECT {name_col} FROM {table} WHERE mission_id = :m"), {"m": str(mission_id)}
            ).fetchall()
        return [str(r[0]) for r in rows]

    def find_copy(self, kind: str, standard_id: str, mission_id: str):
        table, id_col, _ = _TABLES[kind]
        row = self.conn.execute(
            sql_text(
                f"SELECT {id_col} FROM {table} WHERE standard_id = :sid AND mission_id = :m ORDER BY {id_col} LIMIT 1"
            ),
            {"sid": str(standard_id), "m": str(mission_id)},
        ).fetchone()
        if row is None:
            return None
        copy_id = str(row[0])
        if kind == Option.KIND:
            return self.loader.option(copy_id)
        if kind == OptionSet.KIND:
            return self.loader.option_set(copy_id)
        if kind == Question.KIND:
            return self.loader.question(copy_id)
        return self.loader.form(copy_id)


_INSERTERS = {
    Option.KIND: insert_option,
    OptionSet.KIND: insert_option_set_row,
    Optioning.KIND: insert_optioning,
    Question.KIND: insert_question,
    Form.KIND: insert_form_row,
    Questioning.KIND: insert_questioning,
    Condition.KIND: insert_condition,
}


def persist_replication(conn: Connection, ctx: ReplicationContext) -> int:
    """Insert every entity created in ``ctx``, parents before children."""
    count = 0
    for entity in ctx.in_persist_order():
        kind = getattr(entity, "KIND", None)
        inserter = _INSERTERS.get(kind)
        if inserter is None:
            logger.error("persist_replication unknown kind=%s", kind)
            raise TypeError(f"cannot persist {type(entity).__name__}")
        inserter(conn, entity)
        count += 1
    logger.info("replication.persisted rows=%s", count)
    return count


__all__ = ["SqlReplicationScope", "persist_replication"]
