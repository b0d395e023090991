"""Form, questioning, condition and version writes.

Encapsulates the SQL used by form services. Every function takes the caller's
connection so a structural edit and its rank fix-up commit together.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from mission_forms.logic.repository_graph import mission_clause
from mission_forms.logic.usage import Precomputed
from mission_forms.models.domain import Condition, Form, FormVersion, Questioning

logger = logging.getLogger(__name__)


def form_names(conn: Connection, mission_id: Optional[str]) -> List[Tuple[str, str]]:
    """Return ``(form_id, name)`` pairs in one mission scope."""
    where, params = mission_clause(mission_id)
    rows = conn.execute(
        sql_text(f"SELECT form_id, name FROM forms WHERE {where} ORDER BY name ASC"), params
    ).fetchall()
    return [(str(r[0]), str(r[1])) for r in rows]


def insert_form_row(conn: Connection, form: Form) -> None:
    conn.execute(
        sql_text(
            """
            INSERT INTO forms (form_id, name, mission_id, is_standard, standard_id, published,
                               downloads, upgrade_needed, current_version_id)
            VALUES (:id, :name, :mission_id, :is_standard, :standard_id, :published,
                    :downloads, :upgrade_needed, :version_id)
            """
        ),
        {
            "id": form.id,
            "name": form.name,
            "mission_id": form.mission_id,
            "is_standard": bool(form.is_standard),
            "standard_id": form.standard_id,
            "published": bool(form.published),
            "downloads": int(form.downloads or 0),
            "upgrade_needed": bool(form.upgrade_needed),
            "version_id": form.current_version.id if form.current_version is not None else None,
        },
    )


def insert_questioning(conn: Connection, qing: Questioning) -> None:
    conn.execute(
        sql_text(
            """
            INSERT INTO questionings (questioning_id, form_id, question_id, rank, hidden, required,
                                      mission_id, is_standard, standard_id)
            VALUES (:id, :form_id, :question_id, :rank, :hidden, :required,
                    :mission_id, :is_standard, :standard_id)
            """
        ),
        {
            "id": qing.id,
            "form_id": qing.form_id,
            "question_id": qing.question.id,
            "rank": qing.rank,
            "hidden": bool(qing.hidden),
            "required": bool(qing.required),
            "mission_id": qing.mission_id,
            "is_standard": bool(qing.is_standard),
            "standard_id": qing.standard_id,
        },
    )


def insert_condition(conn: Connection, cond: Condition) -> None:
    conn.execute(
        sql_text(
            """
            INSERT INTO conditions (condition_id, questioning_id, ref_qing_id, op, value, option_id,
                                    mission_id, is_standard, standard_id)
            VALUES (:id, :qing_id, :ref_id, :op, :value, :option_id,
                    :mission_id, :is_standard, :standard_id)
            """
        ),
        {
            "id": cond.id,
            "qing_id": cond.questioning_id,
            "ref_id": cond.ref_qing.id,
            "op": cond.op,
            "value": cond.value,
            "option_id": cond.option.id if cond.option is not None else None,
            "mission_id": cond.mission_id,
            "is_standard": bool(cond.is_standard),
            "standard_id": cond.standard_id,
        },
    )


def insert_form(conn: Connection, form: Form) -> None:
    """Insert a newly built form with its questionings and conditions.

    The questions referenced by the questionings must already exist.
    """
    try:
        insert_form_row(conn, form)
        for qing in form.questionings:
            insert_questioning(conn, qing)
        for qing in form.questionings:
            if qing.condition is not None:
                insert_condition(conn, qing.condition)
    except Exception:
        logger.error("insert_form failed form_id=%s", form.id, exc_info=True)
        raise


def insert_form_version(conn: Connection, version: FormVersion) -> None:
    conn.execute(
        sql_text(
            """
            INSERT INTO form_versions (form_version_id, form_id, sequence, code, is_current)
            VALUES (:id, :form_id, :sequence, :code, :is_current)
            """
        ),
        {
            "id": version.id,
            "form_id": version.form_id,
            "sequence": int(version.sequence),
            "code": version.code,
            "is_current": bool(version.is_current),
        },
    )


def save_form_state(conn: Connection, form: Form, previous_version: Optional[FormVersion] = None) -> None:
    """Persist publication state; insert the current version if it is new.

    ``previous_version`` is the version that was current when the form was
    loaded; if it has been replaced it is marked as no longer current.
    """
    try:
        version = form.current_version
        if version is not None and (previous_version is None or previous_version.id != version.id):
            insert_form_version(conn, version)
            if previous_version is not None:
                conn.execute(
                    sql_text("UPDATE form_versions SET is_current = :f WHERE form_version_id = :id"),
                    {"f": False, "id": previous_version.id},
                )
        conn.execute(
            sql_text(
                """
                UPDATE forms SET published = :published, downloads = :downloads,
                       upgrade_needed = :upgrade_needed, current_version_id = :version_id
                WHERE form_id = :id
                """
            ),
            {
                "published": bool(form.published),
                "downloads": int(form.downloads or 0),
                "upgrade_needed": bool(form.upgrade_needed),
                "version_id": version.id if version is not None else None,
                "id": form.id,
            },
        )
    except Exception:
        logger.error("save_form_state failed form_id=%s", form.id, exc_info=True)
        raise


def update_questioning_ranks(conn: Connection, qings: Iterable[Questioning]) -> None:
    for qing in qings:
        conn.execute(
            sql_text("UPDATE questionings SET rank = :rank WHERE questioning_id = :id"),
            {"rank": qing.rank, "id": qing.id},
        )


def delete_questionings(conn: Connection, questioning_ids: Iterable[str]) -> int:
    """Delete questionings and the conditions they own."""
    ids = [str(i) for i in questioning_ids]
    for qid in ids:
        conn.execute(sql_text("DELETE FROM conditions WHERE questioning_id = :id"), {"id": qid})
        conn.execute(sql_text("DELETE FROM questionings WHERE questioning_id = :id"), {"id": qid})
    return len(ids)


def copy_counts(conn: Connection, form_ids: Iterable[str]) -> Dict[str, Tuple[Precomputed, Precomputed]]:
    """Return ``form_id -> (copy_count, published_copy_count)`` in one query.

    Counts are only meaningful for standard forms; mission forms report zero.
    """
    ids = [str(i) for i in form_ids]
    if not ids:
        return {}
    params = {f"id{i}": fid for i, fid in enumerate(ids)}
    placeholders = ", ".join(f":id{i}" for i in range(len(ids)))
    rows = conn.execute(
        sql_text(
            f"""
            SELECT f.form_id,
                   COUNT(DISTINCT c.form_id) AS copy_count,
                   SUM(CASE WHEN c.published THEN 1 ELSE 0 END) AS published_copy_count
            FROM forms f
            LEFT OUTER JOIN forms c ON c.standard_id = f.form_id
            WHERE f.form_id IN ({placeholders})
            GROUP BY f.form_id
            """
        ),
        params,
    ).fetchall()
    return {
        str(r[0]): (Precomputed(int(r[1] or 0)), Precomputed(int(r[2] or 0)))
        for r in rows
    }


__all__ = [
    "form_names",
    "insert_form_row",
    "insert_questioning",
    "insert_condition",
    "insert_form",
    "insert_form_version",
    "save_form_state",
    "update_questioning_ranks",
    "delete_questionings",
    "copy_counts",
]
