"""SQL-backed usage counts for the deletion guards.

Answer counts for every questioning on a form are fetched with one
``GROUP BY`` the first time they are needed and served as ``Precomputed``
afterwards; other counts are returned as ``NeedsQuery`` and run on demand.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from mission_forms.logic.usage import NeedsQuery, Precomputed, UsageCount

logger = logging.getLogger(__name__)


def _scalar(conn: Connection, sql: str, params: dict) -> int:
    row = conn.execute(sql_text(sql), params).fetchone()
    return int(row[0]) if row and row[0] is not None else 0


class SqlUsageQuery:
    def __init__(self, conn: Connection, form_id: Optional[str] = None) -> None:
        self.conn = conn
        self.form_id = form_id
        self._qing_counts: Optional[Dict[str, int]] = None

    def _load_form_counts(self) -> Dict[str, int]:
        if self._qing_counts is None:
            rows = self.conn.execute(
                sql_text(
                    """
                    SELECT qg.questioning_id, COUNT(a.answer_id) AS answer_count
                    FROM questionings qg
                    LEFT OUTER JOIN answers a ON a.questioning_id = qg.questioning_id
                    WHERE qg.form_id = :form_id
                    GROUP BY qg.questioning_id
                    """
                ),
                {"form_id": self.form_id},
            ).fetchall()
            self._qing_counts = {str(r[0]): int(r[1] or 0) for r in rows}
            logger.info("usage.form_counts_loaded form_id=%s questionings=%s", self.form_id, len(rows))
        return self._qing_counts

    def questioning_answer_count(self, questioning_id: str) -> UsageCount:
        if self.form_id is not None:
            counts = self._load_form_counts()
            if str(questioning_id) in counts:
                return Precomputed(counts[str(questioning_id)])
        return NeedsQuery(
            lambda: _scalar(
                self.conn,
                "SELECT COUNT(*) FROM answers WHERE questioning_id = :id",
                {"id": str(questioning_id)},
            )
        )

    def option_answer_count(self, option_id: str) -> UsageCount:
        return NeedsQuery(
            lambda: _scalar(
                self.conn,
                "SELECT COUNT(*) FROM answers WHERE option_id = :id",
                {"id": str(option_id)},
            )
        )

    def optioning_answer_count(self, option_set_id: str, option_id: str) -> UsageCount:
        return NeedsQuery(
            lambda: _scalar(
                self.conn,
                """
                SELECT COUNT(a.answer_id)
                FROM answers a
                JOIN questionings qg ON qg.questioning_id = a.questioning_id
                JOIN questions q ON q.question_id = qg.question_id
                WHERE q.option_set_id = :set_id AND a.option_id = :option_id
                """,
                {"set_id": str(option_set_id), "option_id": str(option_id)},
            )
        )

    def option_set_question_count(self, option_set_id: str) -> UsageCount:
        return NeedsQuery(
            lambda: _scalar(
                self.conn,
                "SELECT COUNT(*) FROM questions WHERE option_set_id = :id",
                {"id": str(option_set_id)},
            )
        )


__all__ = ["SqlUsageQuery"]
