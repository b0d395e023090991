"""Creation of missions and questions."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from mission_forms.db.base import transaction
from mission_forms.logic.builders import build_question
from mission_forms.logic.errors import ValidationError
from mission_forms.logic.repository_graph import GraphLoader
from mission_forms.logic.repository_missions import insert_mission
from mission_forms.logic.repository_questions import insert_question, question_codes
from mission_forms.models.domain import Mission, Question, new_id

logger = logging.getLogger(__name__)


def create_mission(name: str) -> Mission:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name_blank", "mission name is required")
    mission = Mission(id=new_id(), name=name)
    with transaction() as conn:
        insert_mission(conn, mission)
    logger.info("mission.created mission_id=%s", mission.id)
    return mission


def create_question(
    code: str,
    qtype_name: str,
    names: Mapping[str, Optional[str]],
    option_set_id: Optional[str] = None,
    mission_id: Optional[str] = None,
    is_standard: bool = False,
) -> Question:
    with transaction() as conn:
        option_set = None
        if option_set_id is not None:
            option_set = GraphLoader(conn).option_set(option_set_id)
            if option_set is None:
                raise ValidationError("option_set_not_found", f"option set {option_set_id} does not exist")
        question = build_question(code, qtype_name, names, option_set, mission_id=mission_id, is_standard=is_standard)
        if question.code in question_codes(conn, mission_id):
            raise ValidationError("must_be_unique", f"question code {question.code!r} is already used in this mission")
        insert_question(conn, question)
    logger.info("question.created question_id=%s code=%s mission_id=%s", question.id, question.code, mission_id)
    return question


__all__ = ["create_mission", "create_question"]
