"""Usage-count results returned by the query layer.

A count is either already known (``Precomputed``, e.g. from a batched
``GROUP BY`` or an aggregate column loaded with the entity) or must be fetched
(``NeedsQuery``). Callers resolve it once with ``resolve_count``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, Union


@dataclass(frozen=True)
class Precomputed:
    count: int


@dataclass(frozen=True)
class NeedsQuery:
    run: Callable[[], int]


UsageCount = Union[Precomputed, NeedsQuery]


def resolve_count(result: UsageCount) -> int:
    if isinstance(result, Precomputed):
        return int(result.count or 0)
    if isinstance(result, NeedsQuery):
        return int(result.run() or 0)
    raise TypeError(f"unsupported usage result: {type(result).__name__}")


class UsageQuery(Protocol):
    """Read-only answer/usage signals consulted before destructive edits."""

    def questioning_answer_count(self, questioning_id: str) -> UsageCount: ...

    def option_answer_count(self, option_id: str) -> UsageCount: ...

    def optioning_answer_count(self, option_set_id: str, option_id: str) -> UsageCount: ...

    def option_set_question_count(self, option_set_id: str) -> UsageCount: ...


__all__ = ["Precomputed", "NeedsQuery", "UsageCount", "resolve_count", "UsageQuery"]
