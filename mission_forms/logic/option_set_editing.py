"""Nested updates to a loaded option set.

An update is a list of ``OptioningChange`` entries, one per optioning to
touch: reorder or relink an existing optioning, rename its option, add a new
optioning (for an existing or a brand-new option), or destroy one. Every check
runs before the option set is mutated, so a rejected update leaves it as it
was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from mission_forms.logic.builders import normalize_names, validate_option_names
from mission_forms.logic.deletion_guard import guard_delete, guard_not_empty
from mission_forms.logic.errors import ValidationError
from mission_forms.logic.rank_sequences import fix_ranks
from mission_forms.logic.usage import UsageQuery
from mission_forms.models.domain import Option, OptionSet, Optioning, new_id

logger = logging.getLogger(__name__)


@dataclass
class OptioningChange:
    id: Optional[str] = None
    rank: Optional[int] = None
    option_id: Optional[str] = None
    option_names: Optional[Dict[str, Optional[str]]] = None
    destroy: bool = False


@dataclass
class OptioningUpdate:
    added: List[Optioning] = field(default_factory=list)
    removed: List[Optioning] = field(default_factory=list)
    new_options: List[Option] = field(default_factory=list)
    renamed_options: List[Option] = field(default_factory=list)


def optioning_for(option_set: OptionSet, option: Option) -> Optional[Optioning]:
    for oing in option_set.optionings:
        if oing.option.id == option.id:
            return oing
    return None


def _resolve_option(change: OptioningChange, options_by_id: Mapping[str, Option]) -> Option:
    try:
        return options_by_id[str(change.option_id)]
    except KeyError:
        raise ValidationError("option_not_found", f"option {change.option_id} does not exist") from None


def update_optionings(
    option_set: OptionSet,
    changes: Sequence[OptioningChange],
    usage: UsageQuery,
    options_by_id: Optional[Mapping[str, Option]] = None,
) -> OptioningUpdate:
    options_by_id = options_by_id or {}
    by_id = {o.id: o for o in option_set.optionings}
    result = OptioningUpdate()

    existing_changes: List[tuple] = []
    new_changes: List[OptioningChange] = []
    for change in changes:
        if change.id is None:
            if not change.destroy:
                new_changes.append(change)
            continue
        oing = by_id.get(str(change.id))
        if oing is None:
            raise ValidationError("optioning_not_found", f"optioning {change.id} is not in this option set")
        if change.destroy:
            result.removed.append(oing)
        else:
            existing_changes.append((oing, change))

    # checks, in order: non-empty, usage, names
    survivors = len(option_set.optionings) - len(result.removed) + len(new_changes)
    if survivors <= 0:
        guard_not_empty(option_set, [o.id for o in result.removed])
    for oing in result.removed:
        guard_delete(oing, usage)

    relinked: Dict[int, Option] = {}
    for idx, (oing, change) in enumerate(existing_changes):
        if change.option_id is not None and change.option_id != oing.option.id:
            relinked[idx] = _resolve_option(change, options_by_id)
    pending_names: Dict[int, dict] = {}
    for idx, (oing, change) in enumerate(existing_changes):
        if change.option_names is not None:
            # translations merge into the option the optioning will point at
            merged = dict(relinked.get(idx, oing.option).names)
            merged.update(normalize_names(change.option_names))
            validate_option_names(merged)
            pending_names[idx] = merged
    new_options: Dict[int, Option] = {}
    for idx, change in enumerate(new_changes):
        if change.option_id is not None:
            new_options[idx] = _resolve_option(change, options_by_id)
        else:
            names = normalize_names(change.option_names or {})
            validate_option_names(names)
            option = Option(
                id=new_id(),
                names=names,
                mission_id=option_set.mission_id,
                is_standard=option_set.is_standard,
            )
            new_options[idx] = option
            result.new_options.append(option)

    # mutate
    removed_ids = {o.id for o in result.removed}
    option_set.optionings = [o for o in option_set.optionings if o.id not in removed_ids]
    for idx, (oing, change) in enumerate(existing_changes):
        if change.rank is not None:
            oing.rank = int(change.rank)
        if idx in relinked:
            oing.option = relinked[idx]
        if idx in pending_names:
            oing.option.names = pending_names[idx]
            result.renamed_options.append(oing.option)
    for idx, change in enumerate(new_changes):
        oing = Optioning(
            id=new_id(),
            option_set_id=option_set.id,
            option=new_options[idx],
            rank=int(change.rank) if change.rank is not None else None,
            mission_id=option_set.mission_id,
            is_standard=option_set.is_standard,
        )
        option_set.optionings.append(oing)
        result.added.append(oing)
    fix_ranks(option_set.optionings)

    logger.info(
        "option_set.optionings_updated option_set_id=%s added=%s removed=%s renamed=%s",
        option_set.id,
        len(result.added),
        len(result.removed),
        len(result.renamed_options),
    )
    return result


def remove_optioning(option_set: OptionSet, optioning_id: str, usage: UsageQuery) -> Optioning:
    """Destroy one optioning; same checks as a nested update with ``destroy``."""
    update = update_optionings(option_set, [OptioningChange(id=optioning_id, destroy=True)], usage)
    return update.removed[0]


__all__ = [
    "OptioningChange",
    "OptioningUpdate",
    "optioning_for",
    "update_optionings",
    "remove_optioning",
]
