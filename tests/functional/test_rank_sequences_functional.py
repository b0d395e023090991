"""Behavioural tests for contiguous 1-based ranks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pytest

from mission_forms.logic.rank_sequences import (
    apply_ranks,
    fix_ranks,
    max_rank,
    rank_snapshot,
    ranked,
    ranks_changed,
)


@dataclass(eq=False)
class Item:
    id: str
    rank: Optional[int] = None


def _ids(items):
    return [i.id for i in items]


def _ranks(items):
    return [i.rank for i in items]


def test_fix_ranks_moves_raised_rank_to_end() -> None:
    s, v, x = Item("S", 1), Item("V", 2), Item("X", 3)
    items = [s, v, x]
    v.rank = 9
    fix_ranks(items)
    assert (s.rank, x.rank, v.rank) == (1, 2, 3)
    assert _ids(items) == ["S", "X", "V"]


@pytest.mark.parametrize(
    "initial",
    [
        [None, None, None],
        [5, 5, 5],
        [0, -3, 100],
        [2, None, 2, 7],
        [],
    ],
)
def test_fix_ranks_always_yields_one_to_n(initial) -> None:
    items = [Item(str(i), r) for i, r in enumerate(initial)]
    fix_ranks(items)
    assert _ranks(items) == list(range(1, len(initial) + 1))


def test_fix_ranks_keeps_input_order_for_ties_and_missing_ranks() -> None:
    items = [Item("a", None), Item("b", 2), Item("c", 2), Item("d", None), Item("e", 1)]
    fix_ranks(items)
    assert _ids(items) == ["e", "b", "c", "a", "d"]
    assert _ranks(items) == [1, 2, 3, 4, 5]


def test_fix_ranks_returns_same_list_object() -> None:
    items = [Item("a", 3), Item("b", 1)]
    assert fix_ranks(items) is items


def test_apply_ranks_coerces_strings_and_leaves_unmentioned_items() -> None:
    a, b, c = Item("a", 1), Item("b", 2), Item("c", 3)
    items = [a, b, c]
    apply_ranks(items, {"a": "4"})
    assert _ids(items) == ["b", "c", "a"]
    assert _ranks(items) == [1, 2, 3]


def test_rank_snapshot_and_change_detection() -> None:
    items = [Item("a", 1), Item("b", 2)]
    snap = rank_snapshot(items)
    assert snap == {"a": 1, "b": 2}
    assert ranks_changed(items, snap) is False
    items[0].rank = 3
    assert ranks_changed(items, snap) is True
    assert ranks_changed(items + [Item("c", 4)], rank_snapshot(items)) is True


def test_ranked_and_max_rank_do_not_mutate() -> None:
    items = [Item("a", 3), Item("b", None), Item("c", 1)]
    assert _ids(ranked(items)) == ["c", "a", "b"]
    assert _ids(items) == ["a", "b", "c"]
    assert max_rank(items) == 3
    assert max_rank([]) == 0
