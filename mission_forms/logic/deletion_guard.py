"""Guards consulted before removing questionings, options and optionings.

The guard only decides; it never removes anything. When a guard passes, the
caller removes the entity and re-runs ``fix_ranks`` over the survivors.
"""

from __future__ import annotations

import logging
from typing import Iterable, Union

from mission_forms.logic.errors import DeletionError
from mission_forms.logic.usage import UsageQuery, resolve_count
from mission_forms.models.domain import Option, OptionSet, Optioning, Questioning

logger = logging.getLogger(__name__)

Guarded = Union[Questioning, Option, Optioning]


def usage_count(entity: Guarded, usage: UsageQuery) -> int:
    if isinstance(entity, Questioning):
        return resolve_count(usage.questioning_answer_count(entity.id))
    if isinstance(entity, Optioning):
        return resolve_count(usage.optioning_answer_count(entity.option_set_id, entity.option.id))
    if isinstance(entity, Option):
        return resolve_count(usage.option_answer_count(entity.id))
    raise TypeError(f"no deletion guard for {type(entity).__name__}")


def guard_delete(entity: Guarded, usage: UsageQuery) -> None:
    """Raise DeletionError(in_use) if any answer references ``entity``."""
    count = usage_count(entity, usage)
    if count > 0:
        logger.info(
            "deletion_guard.blocked kind=%s id=%s answers=%s",
            entity.KIND,
            entity.id,
            count,
        )
        raise DeletionError(
            DeletionError.IN_USE,
            f"{entity.KIND} {entity.id} has {count} answer(s) and cannot be removed",
        )


def guard_not_empty(option_set: OptionSet, removed_ids: Iterable[str]) -> None:
    """Raise DeletionError(empty_not_allowed) if no optioning would survive."""
    removed = {str(i) for i in removed_ids}
    survivors = [o for o in option_set.optionings if str(o.id) not in removed]
    if not survivors:
        raise DeletionError(
            DeletionError.EMPTY_NOT_ALLOWED,
            "an option set must keep at least one option",
        )


def check_option_set_associations(option_set: OptionSet, usage: UsageQuery) -> None:
    """Raise DeletionError(in_use) if any question still uses ``option_set``."""
    count = resolve_count(usage.option_set_question_count(option_set.id))
    if count > 0:
        raise DeletionError(
            DeletionError.IN_USE,
            f"option set {option_set.id} is used by {count} question(s)",
        )


__all__ = ["guard_delete", "guard_not_empty", "check_option_set_associations", "usage_count"]
