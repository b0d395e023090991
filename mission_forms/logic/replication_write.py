"""Replication service: load sources, copy, persist, all in one transaction."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.engine import Connection

from mission_forms.db.base import transaction
from mission_forms.logic.errors import NotFoundError, ValidationError
from mission_forms.logic.replication import ReplicationContext, Replicable, replicate
from mission_forms.logic.repository_catalog import SqlReplicationScope, persist_replication
from mission_forms.logic.repository_graph import GraphLoader
from mission_forms.logic.repository_missions import get_mission
from mission_forms.models.domain import Form, OptionSet, Question

logger = logging.getLogger(__name__)

REPLICABLE_KINDS = (Form.KIND, OptionSet.KIND, Question.KIND)


def _load_source(loader: GraphLoader, kind: str, source_id: str) -> Replicable:
    if kind not in REPLICABLE_KINDS:
        raise ValidationError("not_replicable", f"{kind} cannot be replicated")
    if kind == Form.KIND:
        source = loader.form(source_id)
    elif kind == OptionSet.KIND:
        source = loader.option_set(source_id)
    else:
        source = loader.question(source_id)
    if source is None:
        raise NotFoundError(f"{kind}_not_found", f"{kind} {source_id} not found")
    return source


def _check_mission(conn: Connection, mission_id: Optional[str]) -> None:
    if mission_id is not None and get_mission(conn, mission_id) is None:
        raise NotFoundError("mission_not_found", f"mission {mission_id} not found")


def replicate_batch(items: Sequence[Tuple[str, str]], mission_id: Optional[str] = None) -> List[Replicable]:
    """Replicate several ``(kind, id)`` sources with one shared context.

    Options, questions and option sets common to several sources are copied
    once. Either every copy is committed or none is.
    """
    with transaction() as conn:
        _check_mission(conn, mission_id)
        loader = GraphLoader(conn)
        scope = SqlReplicationScope(conn, loader)
        ctx = ReplicationContext()
        sources = [_load_source(loader, kind, sid) for kind, sid in items]
        copies = [replicate(src, mission_id, ctx=ctx, scope=scope) for src in sources]
        persist_replication(conn, ctx)
    logger.info(
        "replication.batch_committed items=%s mission_id=%s created=%s",
        len(items),
        mission_id,
        len(ctx),
    )
    return copies


def replicate_one(kind: str, source_id: str, mission_id: Optional[str] = None) -> Replicable:
    return replicate_batch([(kind, source_id)], mission_id)[0]


__all__ = ["REPLICABLE_KINDS", "replicate_batch", "replicate_one"]
