"""Mission and question creation endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from mission_forms.logic.catalog_write import create_mission, create_question
from mission_forms.models.api_types import MissionCreate, MissionOut, QuestionCreate, QuestionOut

router = APIRouter()


@router.post("/missions", status_code=201, response_model=MissionOut, operation_id="createMission")
def post_mission(body: MissionCreate) -> MissionOut:
    mission = create_mission(body.name)
    return MissionOut(mission_id=mission.id, name=mission.name)


@router.post("/questions", status_code=201, response_model=QuestionOut, operation_id="createQuestion")
def post_question(body: QuestionCreate) -> QuestionOut:
    q = create_question(
        body.code,
        body.qtype_name,
        body.names,
        option_set_id=body.option_set_id,
        mission_id=body.mission_id,
        is_standard=body.is_standard,
    )
    return QuestionOut(
        question_id=q.id,
        code=q.code,
        qtype_name=q.qtype_name,
        option_set_id=q.option_set.id if q.option_set is not None else None,
        mission_id=q.mission_id,
        is_standard=q.is_standard,
        standard_id=q.standard_id,
    )
