"""Behavioural tests for usage-based deletion guards."""

from __future__ import annotations

import pytest

from mission_forms.logic.deletion_guard import (
    check_option_set_associations,
    guard_delete,
    guard_not_empty,
    usage_count,
)
from mission_forms.logic.errors import DeletionError
from mission_forms.logic.usage import NeedsQuery, Precomputed, resolve_count


def test_resolve_count_handles_both_variants() -> None:
    assert resolve_count(Precomputed(3)) == 3
    assert resolve_count(NeedsQuery(lambda: 5)) == 5
    with pytest.raises(TypeError):
        resolve_count(7)  # type: ignore[arg-type]


@pytest.mark.parametrize("precomputed", [True, False])
def test_option_in_use_cannot_be_deleted(factory, stub_usage, precomputed) -> None:
    option = factory.option("Yes")
    usage = stub_usage({option.id: 2}, precomputed=precomputed)
    with pytest.raises(DeletionError) as excinfo:
        guard_delete(option, usage)
    assert excinfo.value.reason == DeletionError.IN_USE


def test_unused_option_passes_guard(factory, stub_usage) -> None:
    option = factory.option("Yes")
    guard_delete(option, stub_usage({}))


def test_questioning_guard_uses_answer_count(factory, stub_usage) -> None:
    form = factory.form("F", [factory.question("A", "integer")])
    qing = form.questionings[0]
    usage = stub_usage({qing.id: 1}, precomputed=False)
    assert usage_count(qing, usage) == 1
    assert usage.calls == [qing.id]
    with pytest.raises(DeletionError):
        guard_delete(qing, usage)


def test_optioning_guard_counts_answers_through_its_set(factory, stub_usage) -> None:
    os_ = factory.option_set("Yes/No")
    oing = os_.optionings[0]
    usage = stub_usage({f"{os_.id}:{oing.option.id}": 1})
    with pytest.raises(DeletionError):
        guard_delete(oing, usage)
    guard_delete(os_.optionings[1], usage)


def test_guard_not_empty_requires_a_survivor(factory) -> None:
    os_ = factory.option_set("Yes/No")
    guard_not_empty(os_, [os_.optionings[0].id])
    with pytest.raises(DeletionError) as excinfo:
        guard_not_empty(os_, [o.id for o in os_.optionings])
    assert excinfo.value.reason == DeletionError.EMPTY_NOT_ALLOWED


def test_option_set_used_by_question_cannot_be_deleted(factory, stub_usage) -> None:
    os_ = factory.option_set("Yes/No")
    check_option_set_associations(os_, stub_usage({}))
    with pytest.raises(DeletionError):
        check_option_set_associations(os_, stub_usage({os_.id: 1}))
