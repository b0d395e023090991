"""Replication endpoints for forms, option sets and questions."""

from __future__ import annotations

from typing import List, Union

from fastapi import APIRouter

from mission_forms.logic.replication_write import replicate_batch, replicate_one
from mission_forms.models.api_types import (
    BatchReplicateRequest,
    FormOut,
    OptionSetOut,
    QuestionOut,
    ReplicateRequest,
)
from mission_forms.models.domain import Form, OptionSet, Question

router = APIRouter()


def _out(entity) -> Union[FormOut, OptionSetOut, QuestionOut]:
    if isinstance(entity, Form):
        return FormOut.from_domain(entity)
    if isinstance(entity, OptionSet):
        return OptionSetOut.from_domain(entity)
    if not isinstance(entity, Question):
        raise TypeError(f"cannot render {type(entity).__name__}")
    return QuestionOut(
        question_id=entity.id,
        code=entity.code,
        qtype_name=entity.qtype_name,
        option_set_id=entity.option_set.id if entity.option_set is not None else None,
        mission_id=entity.mission_id,
        is_standard=entity.is_standard,
        standard_id=entity.standard_id,
    )


@router.post(
    "/option-sets/{option_set_id}/replicate",
    status_code=201,
    response_model=OptionSetOut,
    operation_id="replicateOptionSet",
)
def replicate_option_set(option_set_id: str, body: ReplicateRequest) -> OptionSetOut:
    return _out(replicate_one(OptionSet.KIND, option_set_id, body.mission_id))


@router.post("/forms/{form_id}/replicate", status_code=201, response_model=FormOut, operation_id="replicateForm")
def replicate_form(form_id: str, body: ReplicateRequest) -> FormOut:
    return _out(replicate_one(Form.KIND, form_id, body.mission_id))


@router.post("/replications", status_code=201, operation_id="replicateBatch")
def replicate_many(body: BatchReplicateRequest) -> dict:
    copies = replicate_batch([(i.kind, i.id) for i in body.items], body.mission_id)
    items: List[dict] = [_out(c).model_dump() for c in copies]
    return {"mission_id": body.mission_id, "items": items}
