from __future__ import annotations

"""Functional test bootstrap.

Points the service at a file-backed SQLite database under ``tmp/`` before any
``mission_forms`` module reads configuration, applies the migrations once per
session and empties every table before each test. Also provides in-memory
graph factories and a stub usage query for the pure-logic tests.
"""

import os
import pathlib
from typing import Dict, Iterable, Optional, Sequence

import pytest

_ROOT = pathlib.Path(__file__).resolve().parents[2]
_DB_FILE = _ROOT / "tmp" / "functional_tests.db"
_DB_FILE.parent.mkdir(parents=True, exist_ok=True)
if _DB_FILE.exists():
    _DB_FILE.unlink()

# Use a file-backed SQLite DB to ensure persistence across connections
os.environ["TEST_DATABASE_URL"] = f"sqlite:///{_DB_FILE}"
os.environ["DATABASE_URL"] = os.environ["TEST_DATABASE_URL"]
# Disable app startup auto-migrations; they are applied explicitly below
os.environ["AUTO_APPLY_MIGRATIONS"] = "0"

from sqlalchemy import text as sql_text  # noqa: E402

from mission_forms.config import reset_config  # noqa: E402
from mission_forms.db.base import get_engine, transaction  # noqa: E402
from mission_forms.db.migrations_runner import apply_migrations  # noqa: E402
from mission_forms.logic.builders import build_form, build_option, build_option_set, build_question  # noqa: E402
from mission_forms.logic.usage import NeedsQuery, Precomputed, UsageCount  # noqa: E402
from mission_forms.models.domain import Form, Option, OptionSet, Question  # noqa: E402

# children before parents
_TABLES = (
    "answers",
    "responses",
    "conditions",
    "questionings",
    "form_versions",
    "forms",
    "questions",
    "optionings",
    "option_sets",
    "options",
    "missions",
)


@pytest.fixture(scope="session", autouse=True)
def functional_sqlite_bootstrap() -> None:
    """Session-level bootstrap: apply migrations once for the shared DB."""
    apply_migrations(get_engine(os.environ["TEST_DATABASE_URL"]))
    yield


@pytest.fixture(autouse=True)
def clean_tables() -> None:
    reset_config()
    with transaction() as conn:
        for table in _TABLES:
            conn.execute(sql_text(f"DELETE FROM {table}"))
    yield
    reset_config()


class StubUsage:
    """UsageQuery double keyed by entity id.

    ``precomputed=True`` answers with ``Precomputed`` results, otherwise with
    ``NeedsQuery`` thunks; ``calls`` records every thunk that was run.
    """

    def __init__(self, counts: Optional[Dict[str, int]] = None, precomputed: bool = True) -> None:
        self.counts = dict(counts or {})
        self.precomputed = precomputed
        self.calls: list = []

    def _result(self, key: str) -> UsageCount:
        if self.precomputed:
            return Precomputed(self.counts.get(key, 0))

        def run() -> int:
            self.calls.append(key)
            return self.counts.get(key, 0)

        return NeedsQuery(run)

    def questioning_answer_count(self, questioning_id: str) -> UsageCount:
        return self._result(questioning_id)

    def option_answer_count(self, option_id: str) -> UsageCount:
        return self._result(option_id)

    def optioning_answer_count(self, option_set_id: str, option_id: str) -> UsageCount:
        return self._result(f"{option_set_id}:{option_id}")

    def option_set_question_count(self, option_set_id: str) -> UsageCount:
        return self._result(option_set_id)


class GraphFactory:
    """Builds in-memory entity graphs through the production builders."""

    def option(self, name: str, mission_id: Optional[str] = None, is_standard: bool = False) -> Option:
        return build_option({"en": name}, mission_id=mission_id, is_standard=is_standard)

    def option_set(
        self,
        name: str,
        options: Iterable = ("Yes", "No"),
        mission_id: Optional[str] = None,
        is_standard: bool = False,
    ) -> OptionSet:
        built = [
            o if isinstance(o, Option) else self.option(o, mission_id=mission_id, is_standard=is_standard)
            for o in options
        ]
        return build_option_set(name, built, mission_id=mission_id, is_standard=is_standard)

    def question(
        self,
        code: str,
        qtype_name: str = "select_one",
        option_set: Optional[OptionSet] = None,
        mission_id: Optional[str] = None,
        is_standard: bool = False,
    ) -> Question:
        if option_set is None and qtype_name in ("select_one", "select_multiple"):
            option_set = self.option_set(f"{code} options", mission_id=mission_id, is_standard=is_standard)
        return build_question(
            code, qtype_name, {"en": code.title()}, option_set, mission_id=mission_id, is_standard=is_standard
        )

    def form(
        self,
        name: str,
        questions: Sequence[Question] = (),
        mission_id: Optional[str] = None,
        is_standard: bool = False,
    ) -> Form:
        return build_form(name, questions, mission_id=mission_id, is_standard=is_standard)


@pytest.fixture
def factory() -> GraphFactory:
    return GraphFactory()


@pytest.fixture
def stub_usage():
    return StubUsage
