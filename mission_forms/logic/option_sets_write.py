"""Option set service operations.

Each operation loads what it needs, runs the core logic and persists the
result inside one transaction, so a rejected edit never leaves partial rows.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from mission_forms.db.base import get_engine, transaction
from mission_forms.logic.builders import build_option, build_option_set
from mission_forms.logic.deletion_guard import check_option_set_associations
from mission_forms.logic.errors import NotFoundError, ValidationError
from mission_forms.logic.option_set_editing import OptioningChange, remove_optioning, update_optionings
from mission_forms.logic.repository_graph import GraphLoader
from mission_forms.logic import repository_option_sets as repo
from mission_forms.logic.repository_usage import SqlUsageQuery
from mission_forms.logic.uniqueness import name_unique_in_scope
from mission_forms.models.domain import OptionSet

logger = logging.getLogger(__name__)


def _require_option_set(loader: GraphLoader, option_set_id: str) -> OptionSet:
    os_ = loader.option_set(option_set_id)
    if os_ is None:
        raise NotFoundError("option_set_not_found", f"option set {option_set_id} not found")
    return os_


def get_option_set(option_set_id: str) -> OptionSet:
    with get_engine().connect() as conn:
        return _require_option_set(GraphLoader(conn), option_set_id)


def create_option_set(
    name: str,
    options: Sequence[Mapping],
    mission_id: Optional[str] = None,
    is_standard: bool = False,
) -> OptionSet:
    """Create an option set from ``options`` entries.

    Each entry carries either ``option_id`` (link an existing option) or
    ``names`` (create a new option), and an optional ``rank``.
    """
    if is_standard and mission_id is not None:
        raise ValidationError("standard_with_mission", "standard option sets cannot belong to a mission")
    with transaction() as conn:
        loader = GraphLoader(conn)
        entries = []
        for entry in options:
            rank = entry.get("rank")
            if entry.get("option_id"):
                option = loader.option(str(entry["option_id"]))
                if option is None:
                    raise ValidationError("option_not_found", f"option {entry['option_id']} does not exist")
            else:
                option = build_option(entry.get("names") or {}, mission_id=mission_id, is_standard=is_standard)
            entries.append((option, int(rank) if rank is not None else None))
        os_ = build_option_set(name, entries, mission_id=mission_id, is_standard=is_standard)
        name_unique_in_scope(os_.name, repo.option_set_names(conn, mission_id))
        repo.insert_option_set(conn, os_)
    logger.info("option_set.created option_set_id=%s mission_id=%s options=%s", os_.id, mission_id, len(entries))
    return os_


def update_option_set_optionings(option_set_id: str, changes: Sequence[OptioningChange]) -> OptionSet:
    with transaction() as conn:
        loader = GraphLoader(conn)
        os_ = _require_option_set(loader, option_set_id)
        linked = [c.option_id for c in changes if c.option_id]
        options_by_id = loader.options(linked)
        update = update_optionings(os_, changes, SqlUsageQuery(conn), options_by_id)
        repo.delete_optionings(conn, [o.id for o in update.removed])
        for option in update.new_options:
            repo.insert_option(conn, option)
        for option in update.renamed_options:
            repo.update_option_names(conn, option)
        added_ids = {o.id for o in update.added}
        for oing in update.added:
            repo.insert_optioning(conn, oing)
        repo.update_optionings(conn, [o for o in os_.optionings if o.id not in added_ids])
    return os_


def destroy_optioning(option_set_id: str, optioning_id: str) -> OptionSet:
    with transaction() as conn:
        os_ = _require_option_set(GraphLoader(conn), option_set_id)
        removed = remove_optioning(os_, optioning_id, SqlUsageQuery(conn))
        repo.delete_optionings(conn, [removed.id])
        repo.update_optionings(conn, os_.optionings)
    return os_


def delete_option_set(option_set_id: str) -> None:
    with transaction() as conn:
        os_ = _require_option_set(GraphLoader(conn), option_set_id)
        check_option_set_associations(os_, SqlUsageQuery(conn))
        repo.delete_option_set(conn, os_.id)
    logger.info("option_set.deleted option_set_id=%s", option_set_id)


__all__ = [
    "get_option_set",
    "create_option_set",
    "update_option_set_optionings",
    "destroy_optioning",
    "delete_option_set",
]
