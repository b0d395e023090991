"""Structural edits to a loaded form: reordering and removing questionings."""

from __future__ import annotations

import logging
from typing import Iterable, List, Mapping, Union

from mission_forms.logic.deletion_guard import guard_delete
from mission_forms.logic.errors import ValidationError
from mission_forms.logic.rank_sequences import apply_ranks, fix_ranks
from mission_forms.logic.usage import UsageQuery
from mission_forms.models.domain import Form, Questioning

logger = logging.getLogger(__name__)


def verify_condition_ordering(questioning: Questioning) -> None:
    """A condition may only reference a questioning that comes earlier in the form."""
    cond = questioning.condition
    if cond is None:
        return
    if (cond.ref_qing.rank or 0) >= (questioning.rank or 0):
        raise ValidationError(
            "condition_ordering",
            f"question at rank {questioning.rank} has a condition on a question that does not precede it",
        )


def update_ranks(form: Form, new_ranks: Mapping[str, Union[int, str]]) -> Form:
    """Apply ``{questioning_id: rank}`` changes, make ranks contiguous, check conditions.

    Nothing is persisted; on ValidationError the caller must discard the form.
    """
    apply_ranks(form.questionings, new_ranks)
    for qing in form.questionings:
        verify_condition_ordering(qing)
    return form


def destroy_questionings(form: Form, qings: Iterable[Questioning], usage: UsageQuery) -> List[Questioning]:
    """Remove ``qings`` from ``form`` after checking none has answers.

    All questionings are checked before any is removed. Returns the removed
    questionings so the caller can delete their rows.
    """
    targets = list(qings)
    target_ids = {q.id for q in targets}
    unknown = target_ids - {q.id for q in form.questionings}
    if unknown:
        raise ValidationError("questioning_not_on_form", f"questionings not on form: {sorted(unknown)}")
    for qing in targets:
        guard_delete(qing, usage)
    # a surviving condition must not point at a removed questioning
    for qing in form.questionings:
        if qing.id in target_ids or qing.condition is None:
            continue
        if qing.condition.ref_qing.id in target_ids:
            raise ValidationError(
                "condition_depends_on_removed",
                f"question at rank {qing.rank} has a condition on a removed question",
            )
    form.questionings = [q for q in form.questionings if q.id not in target_ids]
    fix_ranks(form.questionings)
    logger.info("form.questionings_destroyed form_id=%s removed=%s", form.id, sorted(target_ids))
    return targets


__all__ = ["verify_condition_ordering", "update_ranks", "destroy_questionings"]
