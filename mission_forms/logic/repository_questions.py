"""Question writes and code lookups."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from mission_forms.logic.repository_graph import dump_names, mission_clause
from mission_forms.models.domain import Question

logger = logging.getLogger(__name__)


def question_codes(conn: Connection, mission_id: Optional[str]) -> List[str]:
    where, params = mission_clause(mission_id)
    rows = conn.execute(sql_text(f"SELECT code FROM questions WHERE {where}"), params).fetchall()
    return [str(r[0]) for r in rows]


def insert_question(conn: Connection, question: Question) -> None:
    """Insert a question row. Its option set must already exist."""
    try:
        conn.execute(
            sql_text(
                """
                INSERT INTO questions (question_id, code, qtype_name, names_json, option_set_id,
                                       mission_id, is_standard, standard_id)
                VALUES (:id, :code, :qtype, :names, :option_set_id, :mission_id, :is_standard, :standard_id)
                """
            ),
            {
                "id": question.id,
                "code": question.code,
                "qtype": question.qtype_name,
                "names": dump_names(question.names),
                "option_set_id": question.option_set.id if question.option_set is not None else None,
                "mission_id": question.mission_id,
                "is_standard": bool(question.is_standard),
                "standard_id": question.standard_id,
            },
        )
    except Exception:
        logger.error("insert_question failed question_id=%s code=%s", question.id, question.code, exc_info=True)
        raise


__all__ = ["question_codes", "insert_question"]
