"""Form service operations: creation, reordering, removals and publication."""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional, Sequence, Tuple, Union

from mission_forms.db.base import get_engine, transaction
from mission_forms.logic import form_publishing
from mission_forms.logic.builders import build_form
from mission_forms.logic.errors import NotFoundError, ValidationError
from mission_forms.logic.form_editing import destroy_questionings, update_ranks
from mission_forms.logic.rank_sequences import rank_snapshot, ranks_changed
from mission_forms.logic.repository_forms import (
    copy_counts,
    delete_questionings,
    form_names,
    insert_form,
    save_form_state,
    update_questioning_ranks,
)
from mission_forms.logic.repository_graph import GraphLoader
from mission_forms.logic.repository_usage import SqlUsageQuery
from mission_forms.logic.uniqueness import name_unique_in_scope
from mission_forms.logic.usage import Precomputed
from mission_forms.models.domain import Form

logger = logging.getLogger(__name__)


def _require_form(loader: GraphLoader, form_id: str) -> Form:
    form = loader.form(form_id)
    if form is None:
        raise NotFoundError("form_not_found", f"form {form_id} not found")
    return form


def get_form(form_id: str) -> Tuple[Form, Precomputed]:
    """Return the form and its published-copy count (zero for mission forms)."""
    with get_engine().connect() as conn:
        form = _require_form(GraphLoader(conn), form_id)
        counts = copy_counts(conn, [form.id])
    _, published = counts.get(form.id, (Precomputed(0), Precomputed(0)))
    return form, published


def create_form(
    name: str,
    question_ids: Sequence[str] = (),
    mission_id: Optional[str] = None,
    is_standard: bool = False,
) -> Form:
    with transaction() as conn:
        loader = GraphLoader(conn)
        questions = []
        for qid in question_ids:
            q = loader.question(qid)
            if q is None:
                raise ValidationError("question_not_found", f"question {qid} does not exist")
            questions.append(q)
        form = build_form(name, questions, mission_id=mission_id, is_standard=is_standard)
        name_unique_in_scope(form.name, form_names(conn, mission_id))
        insert_form(conn, form)
    logger.info("form.created form_id=%s mission_id=%s questions=%s", form.id, mission_id, len(questions))
    return form


def reorder_questionings(form_id: str, new_ranks: Mapping[str, Union[int, str]]) -> Form:
    with transaction() as conn:
        form = _require_form(GraphLoader(conn), form_id)
        persisted = rank_snapshot(form.questionings)
        update_ranks(form, new_ranks)
        if ranks_changed(form.questionings, persisted):
            update_questioning_ranks(conn, form.questionings)
    return form


def remove_questionings(form_id: str, questioning_ids: Sequence[str]) -> Form:
    with transaction() as conn:
        form = _require_form(GraphLoader(conn), form_id)
        by_id = {q.id: q for q in form.questionings}
        wanted = list(dict.fromkeys(questioning_ids))
        targets = [by_id[i] for i in wanted if i in by_id]
        if len(targets) != len(wanted):
            raise ValidationError("questioning_not_on_form", "some questionings are not on this form")
        removed = destroy_questionings(form, targets, SqlUsageQuery(conn, form_id=form.id))
        delete_questionings(conn, [q.id for q in removed])
        update_questioning_ranks(conn, form.questionings)
    return form


def _change_state(form_id: str, change: Callable[[Form], Form], event: str) -> Form:
    with transaction() as conn:
        form = _require_form(GraphLoader(conn), form_id)
        previous = form.current_version
        change(form)
        save_form_state(conn, form, previous_version=previous)
    logger.info("%s form_id=%s published=%s downloads=%s", event, form.id, form.published, form.downloads)
    return form


def publish_form(form_id: str) -> Form:
    return _change_state(form_id, form_publishing.publish, "form.published")


def unpublish_form(form_id: str) -> Form:
    return _change_state(form_id, form_publishing.unpublish, "form.unpublished")


def record_download(form_id: str) -> Form:
    return _change_state(form_id, form_publishing.add_download, "form.downloaded")


def flag_form_for_upgrade(form_id: str) -> Form:
    return _change_state(form_id, form_publishing.flag_for_upgrade, "form.flagged_for_upgrade")


__all__ = [
    "get_form",
    "create_form",
    "reorder_questionings",
    "remove_questionings",
    "publish_form",
    "unpublish_form",
    "record_download",
    "flag_form_for_upgrade",
]
