"""Option set endpoints: create, read, nested optioning updates, delete."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response

from mission_forms.logic import option_sets_write
from mission_forms.logic.option_set_editing import OptioningChange
from mission_forms.models.api_types import OptionSetCreate, OptionSetOut, OptioningsUpdate

router = APIRouter(prefix="/option-sets")
logger = logging.getLogger(__name__)


@router.post("", status_code=201, response_model=OptionSetOut, operation_id="createOptionSet")
def post_option_set(body: OptionSetCreate) -> OptionSetOut:
    os_ = option_sets_write.create_option_set(
        body.name,
        [o.model_dump() for o in body.options],
        mission_id=body.mission_id,
        is_standard=body.is_standard,
    )
    return OptionSetOut.from_domain(os_)


@router.get("/{option_set_id}", response_model=OptionSetOut, operation_id="getOptionSet")
def get_option_set(option_set_id: str) -> OptionSetOut:
    return OptionSetOut.from_domain(option_sets_write.get_option_set(option_set_id))


@router.patch("/{option_set_id}/optionings", response_model=OptionSetOut, operation_id="updateOptionings")
def patch_optionings(option_set_id: str, body: OptioningsUpdate) -> OptionSetOut:
    changes = [
        OptioningChange(
            id=c.id,
            rank=c.rank,
            option_id=c.option_id,
            option_names=c.option_names,
            destroy=c.destroy,
        )
        for c in body.optionings
    ]
    os_ = option_sets_write.update_option_set_optionings(option_set_id, changes)
    return OptionSetOut.from_domain(os_)


@router.delete(
    "/{option_set_id}/optionings/{optioning_id}",
    response_model=OptionSetOut,
    operation_id="deleteOptioning",
)
def delete_optioning(option_set_id: str, optioning_id: str) -> OptionSetOut:
    os_ = option_sets_write.destroy_optioning(option_set_id, optioning_id)
    return OptionSetOut.from_domain(os_)


@router.delete("/{option_set_id}", status_code=204, operation_id="deleteOptionSet")
def delete_option_set(option_set_id: str) -> Response:
    option_sets_write.delete_option_set(option_set_id)
    return Response(status_code=204)
