"""Form endpoints: create, read, reorder, remove questionings, publication."""

from __future__ import annotations

from fastapi import APIRouter

from mission_forms.logic import forms_write
from mission_forms.logic.usage import resolve_count
from mission_forms.models.api_types import FormCreate, FormOut, QuestioningsRemoval, RanksUpdate

router = APIRouter(prefix="/forms")


@router.post("", status_code=201, response_model=FormOut, operation_id="createForm")
def post_form(body: FormCreate) -> FormOut:
    form = forms_write.create_form(
        body.name,
        body.question_ids,
        mission_id=body.mission_id,
        is_standard=body.is_standard,
    )
    return FormOut.from_domain(form)


@router.get("/{form_id}", response_model=FormOut, operation_id="getForm")
def get_form(form_id: str) -> FormOut:
    form, published_copies = forms_write.get_form(form_id)
    count = resolve_count(published_copies) if form.is_standard else 0
    return FormOut.from_domain(form, published_copy_count=count)


@router.patch("/{form_id}/ranks", response_model=FormOut, operation_id="updateFormRanks")
def patch_ranks(form_id: str, body: RanksUpdate) -> FormOut:
    return FormOut.from_domain(forms_write.reorder_questionings(form_id, body.ranks))


@router.delete("/{form_id}/questionings", response_model=FormOut, operation_id="deleteQuestionings")
def delete_questionings(form_id: str, body: QuestioningsRemoval) -> FormOut:
    return FormOut.from_domain(forms_write.remove_questionings(form_id, body.questioning_ids))


@router.post("/{form_id}/publish", response_model=FormOut, operation_id="publishForm")
def publish(form_id: str) -> FormOut:
    return FormOut.from_domain(forms_write.publish_form(form_id))


@router.post("/{form_id}/unpublish", response_model=FormOut, operation_id="unpublishForm")
def unpublish(form_id: str) -> FormOut:
    return FormOut.from_domain(forms_write.unpublish_form(form_id))


@router.post("/{form_id}/downloads", response_model=FormOut, operation_id="recordFormDownload")
def download(form_id: str) -> FormOut:
    return FormOut.from_domain(forms_write.record_download(form_id))


@router.post("/{form_id}/upgrade-flag", response_model=FormOut, operation_id="flagFormForUpgrade")
def flag_for_upgrade(form_id: str) -> FormOut:
    return FormOut.from_domain(forms_write.flag_form_for_upgrade(form_id))
