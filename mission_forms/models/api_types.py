"""Pydantic request and response bodies for the HTTP API."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from mission_forms.models.domain import Form, OptionSet


class MissionCreate(BaseModel):
    name: str


class MissionOut(BaseModel):
    mission_id: str
    name: str


class OptionEntry(BaseModel):
    option_id: Optional[str] = None
    names: Optional[Dict[str, Optional[str]]] = None
    rank: Optional[int] = None


class OptionSetCreate(BaseModel):
    name: str
    mission_id: Optional[str] = None
    is_standard: bool = False
    options: List[OptionEntry] = Field(default_factory=list)


class OptioningChangeIn(BaseModel):
    id: Optional[str] = None
    rank: Optional[int] = None
    option_id: Optional[str] = None
    option_names: Optional[Dict[str, Optional[str]]] = None
    destroy: bool = Field(default=False, alias="_destroy")

    model_config = {"populate_by_name": True}


class OptioningsUpdate(BaseModel):
    optionings: List[OptioningChangeIn]


class QuestionCreate(BaseModel):
    code: str
    qtype_name: str
    names: Dict[str, Optional[str]] = Field(default_factory=dict)
    option_set_id: Optional[str] = None
    mission_id: Optional[str] = None
    is_standard: bool = False


class QuestionOut(BaseModel):
    question_id: str
    code: str
    qtype_name: str
    option_set_id: Optional[str] = None
    mission_id: Optional[str] = None
    is_standard: bool = False
    standard_id: Optional[str] = None


class FormCreate(BaseModel):
    name: str
    mission_id: Optional[str] = None
    is_standard: bool = False
    question_ids: List[str] = Field(default_factory=list)


class ReplicateRequest(BaseModel):
    mission_id: Optional[str] = None


class ReplicationItem(BaseModel):
    kind: Literal["form", "option_set", "question"]
    id: str


class BatchReplicateRequest(BaseModel):
    mission_id: Optional[str] = None
    items: List[ReplicationItem]


class RanksUpdate(BaseModel):
    ranks: Dict[str, int]


class QuestioningsRemoval(BaseModel):
    questioning_ids: List[str]


class OptioningOut(BaseModel):
    optioning_id: str
    option_id: str
    rank: Optional[int]
    names: Dict[str, str]
    standard_id: Optional[str] = None
    option_standard_id: Optional[str] = None


class OptionSetOut(BaseModel):
    option_set_id: str
    name: str
    mission_id: Optional[str] = None
    is_standard: bool = False
    standard_id: Optional[str] = None
    optionings: List[OptioningOut]

    @classmethod
    def from_domain(cls, os_: OptionSet) -> "OptionSetOut":
        return cls(
            option_set_id=os_.id,
            name=os_.name,
            mission_id=os_.mission_id,
            is_standard=os_.is_standard,
            standard_id=os_.standard_id,
            optionings=[
                OptioningOut(
                    optioning_id=o.id,
                    option_id=o.option.id,
                    rank=o.rank,
                    names=dict(o.option.names),
                    standard_id=o.standard_id,
                    option_standard_id=o.option.standard_id,
                )
                for o in sorted(os_.optionings, key=lambda o: (o.rank is None, o.rank or 0))
            ],
        )


class QuestioningOut(BaseModel):
    questioning_id: str
    question_id: str
    code: str
    rank: Optional[int]
    hidden: bool
    required: bool
    option_set_id: Optional[str] = None
    condition_ref_qing_id: Optional[str] = None
    standard_id: Optional[str] = None


class FormOut(BaseModel):
    form_id: str
    name: str
    mission_id: Optional[str] = None
    is_standard: bool = False
    standard_id: Optional[str] = None
    published: bool
    downloads: int
    upgrade_needed: bool
    version: str
    published_copy_count: int = 0
    questionings: List[QuestioningOut]

    @classmethod
    def from_domain(cls, form: Form, published_copy_count: int = 0) -> "FormOut":
        version = str(form.current_version.sequence) if form.current_version is not None else ""
        return cls(
            form_id=form.id,
            name=form.name,
            mission_id=form.mission_id,
            is_standard=form.is_standard,
            standard_id=form.standard_id,
            published=form.published,
            downloads=form.downloads,
            upgrade_needed=form.upgrade_needed,
            version=version,
            published_copy_count=published_copy_count,
            questionings=[
                QuestioningOut(
                    questioning_id=q.id,
                    question_id=q.question.id,
                    code=q.question.code,
                    rank=q.rank,
                    hidden=q.hidden,
                    required=q.required,
                    option_set_id=q.question.option_set.id if q.question.option_set is not None else None,
                    condition_ref_qing_id=q.condition.ref_qing.id if q.condition is not None else None,
                    standard_id=q.standard_id,
                )
                for q in sorted(form.questionings, key=lambda q: (q.rank is None, q.rank or 0))
            ],
        )


__all__ = [
    "MissionCreate",
    "MissionOut",
    "OptionEntry",
    "OptionSetCreate",
    "OptioningChangeIn",
    "OptioningsUpdate",
    "QuestionCreate",
    "QuestionOut",
    "FormCreate",
    "ReplicateRequest",
    "ReplicationItem",
    "BatchReplicateRequest",
    "RanksUpdate",
    "QuestioningsRemoval",
    "OptioningOut",
    "OptionSetOut",
    "QuestioningOut",
    "FormOut",
]
