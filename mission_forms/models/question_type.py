"""Question type catalogue.

Provides a simple constants container instead of an Enum to keep imports
lightweight in architectural tests.
"""

from __future__ import annotations

from typing import Dict, NamedTuple


class QuestionType(NamedTuple):
    name: str
    has_options: bool
    smsable: bool


class QuestionTypes:
    TEXT = "text"
    LONG_TEXT = "long_text"
    INTEGER = "integer"
    DECIMAL = "decimal"
    LOCATION = "location"
    SELECT_ONE = "select_one"
    SELECT_MULTIPLE = "select_multiple"
    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"


QUESTION_TYPES: Dict[str, QuestionType] = {
    QuestionTypes.TEXT: QuestionType(QuestionTypes.TEXT, False, False),
    QuestionTypes.LONG_TEXT: QuestionType(QuestionTypes.LONG_TEXT, False, False),
    QuestionTypes.INTEGER: QuestionType(QuestionTypes.INTEGER, False, True),
    QuestionTypes.DECIMAL: QuestionType(QuestionTypes.DECIMAL, False, True),
    QuestionTypes.LOCATION: QuestionType(QuestionTypes.LOCATION, False, False),
    QuestionTypes.SELECT_ONE: QuestionType(QuestionTypes.SELECT_ONE, True, True),
    QuestionTypes.SELECT_MULTIPLE: QuestionType(QuestionTypes.SELECT_MULTIPLE, True, True),
    QuestionTypes.DATETIME: QuestionType(QuestionTypes.DATETIME, False, False),
    QuestionTypes.DATE: QuestionType(QuestionTypes.DATE, False, False),
    QuestionTypes.TIME: QuestionType(QuestionTypes.TIME, False, False),
}


def get_question_type(name: str) -> QuestionType:
    try:
        return QUESTION_TYPES[name]
    except KeyError:
        raise KeyError(f"unknown question type: {name}") from None


__all__ = ["QuestionType", "QuestionTypes", "QUESTION_TYPES", "get_question_type"]
