"""Read-side loader that materialises entity graphs from SQL rows.

A ``GraphLoader`` is bound to one connection and keeps an identity map per
kind, so an option shared by two option sets (or an option set used by two
questions) is loaded as one object. That identity is what the replication
context and the usage guards key on.
"""

from __future__ import annotations

import json
import logging
from typing import Dict, Iterable, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from mission_forms.models.domain import (
    Condition,
    Form,
    FormVersion,
    Option,
    OptionSet,
    Optioning,
    Question,
    Questioning,
)

logger = logging.getLogger(__name__)


def _bool(value) -> bool:
    return bool(value) if value is not None else False


def _names(raw) -> dict:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        logger.error("names_json_unreadable value=%r", raw)
        raise
    return {str(k): str(v) for k, v in data.items()} if isinstance(data, dict) else {}


def dump_names(names: dict) -> str:
    return json.dumps(names or {}, ensure_ascii=False, sort_keys=True)


def mission_clause(mission_id: Optional[str], column: str = "mission_id") -> tuple[str, dict]:
    """Return a WHERE fragment matching one mission scope (``None`` = standard)."""
    if mission_id is None:
        return f"{column} IS NULL", {}
    return f"{column} = :mission_id", {"mission_id": str(mission_id)}


class GraphLoader:
    def __init__(self, conn: Connection) -> None:
        self.conn = conn
        self._options: Dict[str, Option] = {}
        self._option_sets: Dict[str, OptionSet] = {}
        self._questions: Dict[str, Question] = {}

    # -- options --------------------------------------------------------

    def _option_from_row(self, r) -> Option:
        oid = str(r["option_id"])
        if oid not in self._options:
            self._options[oid] = Option(
                id=oid,
                names=_names(r["names_json"]),
                mission_id=r["mission_id"],
                is_standard=_bool(r["is_standard"]),
                standard_id=r["standard_id"],
            )
        return self._options[oid]

    def options(self, option_ids: Iterable[str]) -> Dict[str, Option]:
        wanted = [str(i) for i in option_ids if i is not None]
        missing = [i for i in wanted if i not in self._options]
        for oid in missing:
            row = self.conn.execute(
                sql_text(
                    "SELECT option_id, names_json, mission_id, is_standard, standard_id FROM options WHERE option_id = :id"
                ),
                {"id": oid},
            ).mappings().fetchone()
            if row is not None:
                self._option_from_row(row)
        return {i: self._options[i] for i in wanted if i in self._options}

    def option(self, option_id: str) -> Optional[Option]:
        return self.options([option_id]).get(str(option_id))

    # -- option sets ----------------------------------------------------

    def option_set(self, option_set_id: Optional[str]) -> Optional[OptionSet]:
        if option_set_id is None:
            return None
        key = str(option_set_id)
        if key in self._option_sets:
            return self._option_sets[key]
        row = self.conn.execute(
            sql_text(
                "SELECT option_set_id, name, mission_id, is_standard, standard_id FROM option_sets WHERE option_set_id = :id"
            ),
            {"id": key},
        ).mappings().fetchone()
        if row is None:
            return None
        os_ = OptionSet(
            id=key,
            name=str(row["name"]),
            mission_id=row["mission_id"],
            is_standard=_bool(row["is_standard"]),
            standard_id=row["standard_id"],
        )
        self._option_sets[key] = os_
        rows = self.conn.execute(
            sql_text(
                """
                SELECT oi.optioning_id, oi.rank, oi.mission_id AS oi_mission_id,
                       oi.is_standard AS oi_is_standard, oi.standard_id AS oi_standard_id,
                       o.option_id, o.names_json, o.mission_id, o.is_standard, o.standard_id
                FROM optionings oi
                JOIN options o ON o.option_id = oi.option_id
                WHERE oi.option_set_id = :id
                ORDER BY oi.rank ASC, oi.optioning_id ASC
                """
            ),
            {"id": key},
        ).mappings().all()
        for r in rows:
            os_.optionings.append(
                Optioning(
                    id=str(r["optioning_id"]),
                    option_set_id=key,
                    option=self._option_from_row(r),
                    rank=int(r["rank"]) if r["rank"] is not None else None,
                    mission_id=r["oi_mission_id"],
                    is_standard=_bool(r["oi_is_standard"]),
                    standard_id=r["oi_standard_id"],
                )
            )
        return os_

    # -- questions ------------------------------------------------------

    def question(self, question_id: str) -> Optional[Question]:
        key = str(question_id)
        if key in self._questions:
            return self._questions[key]
        row = self.conn.execute(
            sql_text(
                """
                SELECT question_id, code, qtype_name, names_json, option_set_id,
                       mission_id, is_standard, standard_id
                FROM questions WHERE question_id = :id
                """
            ),
            {"id": key},
        ).mappings().fetchone()
        if row is None:
            return None
        q = Question(
            id=key,
            code=str(row["code"]),
            qtype_name=str(row["qtype_name"]),
            names=_names(row["names_json"]),
            option_set=self.option_set(row["option_set_id"]),
            mission_id=row["mission_id"],
            is_standard=_bool(row["is_standard"]),
            standard_id=row["standard_id"],
        )
        self._questions[key] = q
        return q

    # -- forms ----------------------------------------------------------

    def form(self, form_id: str) -> Optional[Form]:
        row = self.conn.execute(
            sql_text(
                """
                SELECT form_id, name, mission_id, is_standard, standard_id, published,
                       downloads, upgrade_needed, current_version_id
                FROM forms WHERE form_id = :id
                """
            ),
            {"id": str(form_id)},
        ).mappings().fetchone()
        if row is None:
            return None
        form = Form(
            id=str(row["form_id"]),
            name=str(row["name"]),
            mission_id=row["mission_id"],
            is_standard=_bool(row["is_standard"]),
            standard_id=row["standard_id"],
            published=_bool(row["published"]),
            downloads=int(row["downloads"] or 0),
            upgrade_needed=_bool(row["upgrade_needed"]),
        )
        if row["current_version_id"] is not None:
            vrow = self.conn.execute(
                sql_text(
                    "SELECT form_version_id, sequence, code, is_current FROM form_versions WHERE form_version_id = :id"
                ),
                {"id": row["current_version_id"]},
            ).mappings().fetchone()
            if vrow is not None:
                form.current_version = FormVersion(
                    id=str(vrow["form_version_id"]),
                    form_id=form.id,
                    sequence=int(vrow["sequence"]),
                    code=str(vrow["code"]),
                    is_current=_bool(vrow["is_current"]),
                )
        qrows = self.conn.execute(
            sql_text(
                """
                SELECT questioning_id, question_id, rank, hidden, required,
                       mission_id, is_standard, standard_id
                FROM questionings WHERE form_id = :id
                ORDER BY rank ASC, questioning_id ASC
                """
            ),
            {"id": form.id},
        ).mappings().all()
        by_id: Dict[str, Questioning] = {}
        for r in qrows:
            question = self.question(r["question_id"])
            if question is None:
                logger.error("questioning_without_question questioning_id=%s", r["questioning_id"])
                raise LookupError(f"question {r['question_id']} missing for questioning {r['questioning_id']}")
            qing = Questioning(
                id=str(r["questioning_id"]),
                form_id=form.id,
                question=question,
                rank=int(r["rank"]) if r["rank"] is not None else None,
                hidden=_bool(r["hidden"]),
                required=_bool(r["required"]),
                mission_id=r["mission_id"],
                is_standard=_bool(r["is_standard"]),
                standard_id=r["standard_id"],
            )
            by_id[qing.id] = qing
            form.questionings.append(qing)
        if by_id:
            crows = self.conn.execute(
                sql_text(
                    """
                    SELECT c.condition_id, c.questioning_id, c.ref_qing_id, c.op, c.value, c.option_id,
                           c.mission_id, c.is_standard, c.standard_id
                    FROM conditions c
                    JOIN questionings qg ON qg.questioning_id = c.questioning_id
                    WHERE qg.form_id = :id
                    """
                ),
                {"id": form.id},
            ).mappings().all()
            for c in crows:
                owner = by_id.get(str(c["questioning_id"]))
                ref = by_id.get(str(c["ref_qing_id"]))
                if owner is None or ref is None:
                    continue
                owner.condition = Condition(
                    id=str(c["condition_id"]),
                    questioning_id=owner.id,
                    ref_qing=ref,
                    op=str(c["op"]),
                    value=c["value"],
                    option=self.option(c["option_id"]) if c["option_id"] is not None else None,
                    mission_id=c["mission_id"],
                    is_standard=_bool(c["is_standard"]),
                    standard_id=c["standard_id"],
                )
        return form


__all__ = ["GraphLoader", "dump_names", "mission_clause"]
