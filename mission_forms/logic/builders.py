"""Construction-time normalisation and validation for new entities.

Every entity created through the API (and the test factories) goes through
one of these builders, which trim names, initialise counters and reject
invalid input before anything is persisted.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence, Tuple, Union

from mission_forms.config import get_config
from mission_forms.logic.errors import ValidationError
from mission_forms.logic.rank_sequences import fix_ranks
from mission_forms.models.domain import (
    Condition,
    Form,
    Option,
    OptionSet,
    Optioning,
    Question,
    Questioning,
    new_id,
)
from mission_forms.models.question_type import QUESTION_TYPES

CONDITION_OPS = ("eq", "neq", "lt", "lte", "gt", "gte", "inc", "ninc")

# (option, explicit rank or None)
RankedOption = Tuple[Option, Optional[int]]


def normalize_names(names: Mapping[str, Optional[str]]) -> dict:
    return {str(k).strip().lower(): (v or "").strip() for k, v in (names or {}).items()}


def validate_option_names(names: Mapping[str, str]) -> None:
    if not any(v for v in names.values()):
        raise ValidationError("names_cant_be_all_blank", "at least one translation of the option name is required")


def build_option(
    names: Mapping[str, Optional[str]],
    mission_id: Optional[str] = None,
    is_standard: bool = False,
) -> Option:
    cleaned = normalize_names(names)
    validate_option_names(cleaned)
    return Option(id=new_id(), names=cleaned, mission_id=mission_id, is_standard=is_standard)


def build_option_set(
    name: str,
    options: Sequence[Union[Option, RankedOption]],
    mission_id: Optional[str] = None,
    is_standard: bool = False,
) -> OptionSet:
    """Build an option set with one optioning per option.

    ``options`` holds plain options (ranked in the given order) or
    ``(option, rank)`` pairs whose explicit ranks are honoured and then
    made contiguous.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("name_blank", "option set name is required")
    if not options:
        raise ValidationError("at_least_one_option", "an option set must have at least one option")
    set_id = new_id()
    optionings = []
    for entry in options:
        option, rank = entry if isinstance(entry, tuple) else (entry, None)
        # new options inherit the set's scope
        if option.mission_id is None and not option.is_standard:
            option.mission_id = mission_id
            option.is_standard = is_standard
        optionings.append(
            Optioning(
                id=new_id(),
                option_set_id=set_id,
                option=option,
                rank=rank,
                mission_id=mission_id,
                is_standard=is_standard,
            )
        )
    fix_ranks(optionings)
    return OptionSet(id=set_id, name=name, mission_id=mission_id, is_standard=is_standard, optionings=optionings)


def build_question(
    code: str,
    qtype_name: str,
    names: Mapping[str, Optional[str]],
    option_set: Optional[OptionSet] = None,
    mission_id: Optional[str] = None,
    is_standard: bool = False,
) -> Question:
    code = (code or "").strip()
    if not code or " " in code:
        raise ValidationError("code_invalid", "question code must be a single word")
    if qtype_name not in QUESTION_TYPES:
        raise ValidationError("qtype_invalid", f"unknown question type {qtype_name!r}")
    if QUESTION_TYPES[qtype_name].has_options and option_set is None:
        raise ValidationError("option_set_required", f"{qtype_name} questions need an option set")
    return Question(
        id=new_id(),
        code=code,
        qtype_name=qtype_name,
        names=normalize_names(names),
        option_set=option_set if QUESTION_TYPES[qtype_name].has_options else None,
        mission_id=mission_id,
        is_standard=is_standard,
    )


def build_form(
    name: str,
    questions: Iterable[Question] = (),
    mission_id: Optional[str] = None,
    is_standard: bool = False,
    required: bool = False,
) -> Form:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name_blank", "form name is required")
    max_len = get_config().forms.name_max_length
    if len(name) > max_len:
        raise ValidationError("name_too_long", f"form name is limited to {max_len} characters")
    form = Form(id=new_id(), name=name, mission_id=mission_id, is_standard=is_standard, downloads=0)
    for idx, question in enumerate(questions):
        form.questionings.append(
            Questioning(
                id=new_id(),
                form_id=form.id,
                question=question,
                rank=idx + 1,
                required=required,
                mission_id=mission_id,
                is_standard=is_standard,
            )
        )
    return form


def build_condition(
    questioning: Questioning,
    ref_qing: Questioning,
    op: str,
    value: Optional[str] = None,
    option: Optional[Option] = None,
) -> Condition:
    if op not in CONDITION_OPS:
        raise ValidationError("condition_op_invalid", f"unknown condition operator {op!r}")
    if ref_qing is questioning:
        raise ValidationError("condition_self_reference", "a condition cannot reference its own question")
    condition = Condition(
        id=new_id(),
        questioning_id=questioning.id,
        ref_qing=ref_qing,
        op=op,
        value=value,
        option=option,
        mission_id=questioning.mission_id,
        is_standard=questioning.is_standard,
    )
    questioning.condition = condition
    return condition


__all__ = [
    "CONDITION_OPS",
    "normalize_names",
    "validate_option_names",
    "build_option",
    "build_option_set",
    "build_question",
    "build_form",
    "build_condition",
]
