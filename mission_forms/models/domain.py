"""In-memory entity graph for forms and option sets.

These are plain dataclasses loaded by the repositories and mutated by the
logic modules. They know nothing about SQL or HTTP. Identity is the string
``id``; an entity with ``mission_id = None`` and ``is_standard = True`` is a
standard template, and ``standard_id`` points from a copy back to the
template it was replicated from.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Optional

from mission_forms.models.question_type import QuestionType, get_question_type


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Mission:
    id: str
    name: str


@dataclass(eq=False)
class Option:
    """A selectable value with one name per locale.

    Options are shared between option sets through optionings and are never
    owned by any single set.
    """

    KIND: ClassVar[str] = "option"

    id: str
    names: Dict[str, str] = field(default_factory=dict)
    mission_id: Optional[str] = None
    is_standard: bool = False
    standard_id: Optional[str] = None

    def name(self, locale: str = "en") -> str:
        if self.names.get(locale):
            return self.names[locale]
        # first non-blank translation
        for value in self.names.values():
            if value:
                return value
        return ""


@dataclass(eq=False)
class Optioning:
    KIND: ClassVar[str] = "optioning"

    id: str
    option_set_id: str
    option: Option
    rank: Optional[int] = None
    mission_id: Optional[str] = None
    is_standard: bool = False
    standard_id: Optional[str] = None


@dataclass(eq=False)
class OptionSet:
    KIND: ClassVar[str] = "option_set"

    id: str
    name: str
    mission_id: Optional[str] = None
    is_standard: bool = False
    standard_id: Optional[str] = None
    optionings: List[Optioning] = field(default_factory=list)

    @property
    def options(self) -> List[Option]:
        return [o.option for o in sorted(self.optionings, key=_rank_key)]


@dataclass(eq=False)
class Question:
    KIND: ClassVar[str] = "question"

    id: str
    code: str
    qtype_name: str
    names: Dict[str, str] = field(default_factory=dict)
    option_set: Optional[OptionSet] = None
    mission_id: Optional[str] = None
    is_standard: bool = False
    standard_id: Optional[str] = None

    @property
    def qtype(self) -> QuestionType:
        return get_question_type(self.qtype_name)


@dataclass(eq=False)
class Condition:
    """Display condition: show the owning questioning when ``ref_qing`` matches."""

    KIND: ClassVar[str] = "condition"

    id: str
    questioning_id: str
    ref_qing: "Questioning"
    op: str
    value: Optional[str] = None
    option: Optional[Option] = None
    mission_id: Optional[str] = None
    is_standard: bool = False
    standard_id: Optional[str] = None


@dataclass(eq=False)
class Questioning:
    KIND: ClassVar[str] = "questioning"

    id: str
    form_id: str
    question: Question
    rank: Optional[int] = None
    hidden: bool = False
    required: bool = False
    condition: Optional[Condition] = None
    mission_id: Optional[str] = None
    is_standard: bool = False
    standard_id: Optional[str] = None


@dataclass(eq=False)
class FormVersion:
    id: str
    form_id: str
    sequence: int
    code: str
    is_current: bool = True

    @property
    def sequence_and_code(self) -> str:
        return f"{self.sequence} ({self.code})"


@dataclass(eq=False)
class Form:
    KIND: ClassVar[str] = "form"

    id: str
    name: str
    mission_id: Optional[str] = None
    is_standard: bool = False
    standard_id: Optional[str] = None
    published: bool = False
    downloads: int = 0
    upgrade_needed: bool = False
    current_version: Optional[FormVersion] = None
    questionings: List[Questioning] = field(default_factory=list)


def _rank_key(item) -> tuple:
    # None sorts after every concrete rank
    return (item.rank is None, item.rank or 0)


__all__ = [
    "new_id",
    "Mission",
    "Option",
    "Optioning",
    "OptionSet",
    "Question",
    "Condition",
    "Questioning",
    "FormVersion",
    "Form",
]
