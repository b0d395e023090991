"""Contiguous 1-based rank helpers for questionings and optionings.

These helpers are the single source of truth for final rank values. They
operate on already-loaded entities and never touch the database; callers
persist the results (see ``repository_forms.update_questioning_ranks`` and
``repository_option_sets.update_optionings``).
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, MutableSequence, Optional, Protocol, TypeVar, Union

logger = logging.getLogger(__name__)


class Ranked(Protocol):
    id: str
    rank: Optional[int]


R = TypeVar("R", bound=Ranked)


def _sort_key(item: Ranked) -> tuple:
    return (item.rank is None, item.rank if item.rank is not None else 0)


def fix_ranks(items: MutableSequence[R]) -> MutableSequence[R]:
    """Normalise ``items`` so their ranks are exactly 1..N.

    Items are stable-sorted by current rank (``None`` last), so ties and
    missing ranks keep their input order. The list is reordered and each
    item's ``rank`` is rewritten in place; the same list is returned.
    """
    ordered = sorted(items, key=_sort_key)
    for idx, item in enumerate(ordered):
        item.rank = idx + 1
    items[:] = ordered
    return items


def max_rank(items: Iterable[Ranked]) -> int:
    return max((item.rank or 0 for item in items), default=0)


def apply_ranks(items: MutableSequence[R], new_ranks: Mapping[str, Union[int, str]]) -> MutableSequence[R]:
    """Set ranks from an ``{id: rank}`` mapping and make them contiguous.

    Items missing from the mapping keep their current rank. Ranks arrive from
    request payloads, so string values are coerced to int.
    """
    for item in items:
        raw = new_ranks.get(str(item.id))
        if raw is None:
            continue
        item.rank = int(raw)
    fix_ranks(items)
    logger.info("ranks_applied count=%s ids=%s", len(items), [i.id for i in items])
    return items


def rank_snapshot(items: Iterable[Ranked]) -> Dict[str, Optional[int]]:
    return {str(item.id): item.rank for item in items}


def ranks_changed(items: Iterable[Ranked], persisted: Mapping[str, Optional[int]]) -> bool:
    """Return True if any rank differs from ``persisted`` or an item is new."""
    for item in items:
        if str(item.id) not in persisted:
            return True
        if persisted[str(item.id)] != item.rank:
            return True
    return False


def ranked(items: Iterable[R]) -> List[R]:
    """Return a rank-ordered copy without mutating anything."""
    return sorted(items, key=_sort_key)


__all__ = [
    "Ranked",
    "fix_ranks",
    "max_rank",
    "apply_ranks",
    "rank_snapshot",
    "ranks_changed",
    "ranked",
]
