"""Deep copy of form and option-set graphs between scopes.

Two kinds of replication are supported:

- **Within-scope duplicate** (no target mission, or the source's own mission):
  owned children (questionings, optionings, conditions) are copied, shared
  children (questions, option sets, options) are linked, the copy's name is
  always suffixed because the source occupies the scope, and the copy has no
  standard backlink.
- **Standard to mission**: every node is copied into the target mission, the
  copy keeps its name unless a same-named sibling already exists there, and
  each copy points back at the template it came from via ``standard_id``.

Shared children are copied at most once per ``ReplicationContext`` and target
mission. Before a shared child is copied the context is consulted, then the
scope collaborator is asked for a copy made by an earlier replication; a hit
is linked instead of copied. A fresh copy is registered in the context before
its own children are visited, so a second reference resolves to the same copy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Tuple, TypeVar, Union

from mission_forms.logic.errors import ValidationError
from mission_forms.logic.rank_sequences import fix_ranks
from mission_forms.logic.uniqueness import CAMEL_CASE, SEP_WORDS, unique_name
from mission_forms.models.domain import (
    Condition,
    Form,
    Option,
    OptionSet,
    Optioning,
    Question,
    Questioning,
    new_id,
)

logger = logging.getLogger(__name__)

Replicable = Union[Form, OptionSet, Question, Option]
T = TypeVar("T")

# kind -> (name attribute, suffix style) for kinds whose names are unique per mission
UNIQUE_FIELDS: Dict[str, Tuple[str, str]] = {
    Form.KIND: ("name", SEP_WORDS),
    OptionSet.KIND: ("name", SEP_WORDS),
    Question.KIND: ("code", CAMEL_CASE),
}

# insertion order that satisfies foreign keys between created rows
PERSIST_ORDER = (
    Option.KIND,
    OptionSet.KIND,
    Optioning.KIND,
    Question.KIND,
    Form.KIND,
    Questioning.KIND,
    Condition.KIND,
)


class ReplicationScope(Protocol):
    """Read access to the target scope, supplied by the persistence layer."""

    def names_in_scope(self, kind: str, mission_id: Optional[str]) -> Iterable[str]: ...

    def find_copy(self, kind: str, standard_id: str, mission_id: str) -> Optional[object]: ...


class EmptyScope:
    """Scope with no persisted siblings, for purely in-memory replication."""

    def names_in_scope(self, kind: str, mission_id: Optional[str]) -> Iterable[str]:
        return ()

    def find_copy(self, kind: str, standard_id: str, mission_id: str) -> Optional[object]:
        return None


class ReplicationContext:
    """Per-invocation copy map from ``(kind, source_id, mission_id)`` to the copy.

    May be shared across several top-level ``replicate`` calls so that
    options common to several templates are copied only once.
    """

    def __init__(self) -> None:
        self._copies: Dict[Tuple[str, str, Optional[str]], object] = {}
        self._names: Dict[Tuple[str, Optional[str]], List[str]] = {}
        self.created: List[object] = []

    def lookup(self, kind: str, source_id: str, mission_id: Optional[str] = None) -> Optional[object]:
        return self._copies.get((kind, str(source_id), mission_id))

    def register(
        self, kind: str, source_id: str, copy: object, mission_id: Optional[str] = None, created: bool = True
    ) -> None:
        self._copies[(kind, str(source_id), mission_id)] = copy
        if created:
            self.created.append(copy)

    def names_for(self, kind: str, mission_id: Optional[str]) -> List[str]:
        return self._names.get((kind, mission_id), [])

    def add_name(self, kind: str, mission_id: Optional[str], name: str) -> None:
        self._names.setdefault((kind, mission_id), []).append(name)

    def created_of(self, kind: str) -> List[object]:
        return [e for e in self.created if getattr(e, "KIND", None) == kind]

    def in_persist_order(self) -> List[object]:
        order = {k: i for i, k in enumerate(PERSIST_ORDER)}
        # sorted() is stable, so creation order is kept within a kind
        return sorted(self.created, key=lambda e: order.get(getattr(e, "KIND", ""), len(order)))

    def __len__(self) -> int:
        return len(self.created)


@dataclass(frozen=True)
class _Plan:
    target_mission_id: Optional[str]
    from_standard: bool


def _plan_for(source: Replicable, target_mission_id: Optional[str]) -> _Plan:
    if target_mission_id is None or target_mission_id == source.mission_id:
        return _Plan(source.mission_id, from_standard=False)
    if source.is_standard:
        return _Plan(target_mission_id, from_standard=True)
    # mission entities are only duplicated within their own mission
    raise ValidationError(
        "cross_mission_replication",
        "only standard templates can be replicated into another mission",
    )


class _Replicator:
    def __init__(self, plan: _Plan, ctx: ReplicationContext, scope: ReplicationScope) -> None:
        self.plan = plan
        self.ctx = ctx
        self.scope = scope

    # -- shared helpers -------------------------------------------------

    def stamp(self, copy, source) -> None:
        copy.mission_id = self.plan.target_mission_id
        if self.plan.from_standard:
            copy.is_standard = False
            copy.standard_id = source.id
        else:
            copy.is_standard = source.is_standard
            copy.standard_id = None

    def unique(self, kind: str, candidate: str, source_is_sibling: bool) -> str:
        _, style = UNIQUE_FIELDS[kind]
        target = self.plan.target_mission_id
        names = list(self.scope.names_in_scope(kind, target)) + self.ctx.names_for(kind, target)
        if source_is_sibling:
            names.append(candidate)
        result = unique_name(candidate, names, style=style)
        self.ctx.add_name(kind, target, result)
        return result

    def shared(self, kind: str, source: T, make_copy: Callable[[T], T]) -> T:
        """Link or copy a shared child according to the plan and context."""
        if not self.plan.from_standard:
            return source
        hit = self.ctx.lookup(kind, source.id, self.plan.target_mission_id)
        if hit is not None:
            return hit  # type: ignore[return-value]
        existing = self.scope.find_copy(kind, source.id, self.plan.target_mission_id)
        if existing is not None:
            self.ctx.register(kind, source.id, existing, self.plan.target_mission_id, created=False)
            logger.info("replication.linked_existing kind=%s source=%s copy=%s", kind, source.id, existing.id)
            return existing  # type: ignore[return-value]
        return make_copy(source)

    # -- options --------------------------------------------------------

    def copy_option(self, source: Option) -> Option:
        copy = Option(id=new_id(), names=dict(source.names))
        self.stamp(copy, source)
        self.ctx.register(Option.KIND, source.id, copy, self.plan.target_mission_id)
        return copy

    def option(self, source: Option) -> Option:
        return self.shared(Option.KIND, source, self.copy_option)

    # -- option sets ----------------------------------------------------

    def copy_option_set(self, source: OptionSet) -> OptionSet:
        name = self.unique(OptionSet.KIND, source.name, source_is_sibling=not self.plan.from_standard)
        copy = OptionSet(id=new_id(), name=name)
        self.stamp(copy, source)
        self.ctx.register(OptionSet.KIND, source.id, copy, self.plan.target_mission_id)
        for src_oing in source.optionings:
            oing = Optioning(
                id=new_id(),
                option_set_id=copy.id,
                option=self.option(src_oing.option),
                rank=src_oing.rank,
            )
            self.stamp(oing, src_oing)
            self.ctx.register(Optioning.KIND, src_oing.id, oing, self.plan.target_mission_id)
            copy.optionings.append(oing)
        fix_ranks(copy.optionings)
        return copy

    def option_set(self, source: Optional[OptionSet]) -> Optional[OptionSet]:
        if source is None:
            return None
        return self.shared(OptionSet.KIND, source, self.copy_option_set)

    # -- questions ------------------------------------------------------

    def copy_question(self, source: Question) -> Question:
        code = self.unique(Question.KIND, source.code, source_is_sibling=not self.plan.from_standard)
        copy = Question(id=new_id(), code=code, qtype_name=source.qtype_name, names=dict(source.names))
        self.stamp(copy, source)
        self.ctx.register(Question.KIND, source.id, copy, self.plan.target_mission_id)
        copy.option_set = self.option_set(source.option_set)
        return copy

    def question(self, source: Question) -> Question:
        return self.shared(Question.KIND, source, self.copy_question)

    # -- forms ----------------------------------------------------------

    def copy_form(self, source: Form) -> Form:
        name = self.unique(Form.KIND, source.name, source_is_sibling=not self.plan.from_standard)
        # publication state, download counter and version are never copied
        copy = Form(id=new_id(), name=name, published=False, downloads=0, upgrade_needed=False)
        self.stamp(copy, source)
        self.ctx.register(Form.KIND, source.id, copy, self.plan.target_mission_id)
        qing_map: Dict[str, Questioning] = {}
        for src_qing in source.questionings:
            qing = Questioning(
                id=new_id(),
                form_id=copy.id,
                question=self.question(src_qing.question),
                rank=src_qing.rank,
                hidden=src_qing.hidden,
                required=src_qing.required,
            )
            self.stamp(qing, src_qing)
            self.ctx.register(Questioning.KIND, src_qing.id, qing, self.plan.target_mission_id)
            qing_map[src_qing.id] = qing
            copy.questionings.append(qing)
        # conditions may point at any questioning, so copy them once all exist
        for src_qing in source.questionings:
            if src_qing.condition is not None:
                self.copy_condition(src_qing.condition, qing_map)
        fix_ranks(copy.questionings)
        return copy

    def copy_condition(self, source: Condition, qing_map: Dict[str, Questioning]) -> Condition:
        owner = qing_map[source.questioning_id]
        ref = qing_map.get(source.ref_qing.id)
        if ref is None:
            raise ValidationError("condition_ref_outside_form", "condition references a question outside the form")
        copy = Condition(
            id=new_id(),
            questioning_id=owner.id,
            ref_qing=ref,
            op=source.op,
            value=source.value,
            option=self.option(source.option) if source.option is not None else None,
        )
        self.stamp(copy, source)
        self.ctx.register(Condition.KIND, source.id, copy, self.plan.target_mission_id)
        owner.condition = copy
        return copy


def replicate(
    source: Replicable,
    target_mission_id: Optional[str] = None,
    ctx: Optional[ReplicationContext] = None,
    scope: Optional[ReplicationScope] = None,
) -> Replicable:
    """Copy ``source`` into ``target_mission_id`` (or its own scope) and return the copy.

    New entities are recorded on ``ctx.created``; nothing is persisted here.
    """
    ctx = ctx if ctx is not None else ReplicationContext()
    scope = scope if scope is not None else EmptyScope()
    plan = _plan_for(source, target_mission_id)
    rep = _Replicator(plan, ctx, scope)
    before = len(ctx)

    if isinstance(source, Form):
        copy: Replicable = rep.copy_form(source)
    elif isinstance(source, OptionSet):
        copy = rep.copy_option_set(source)
    elif isinstance(source, Question):
        copy = rep.copy_question(source)
    elif isinstance(source, Option):
        copy = rep.copy_option(source)
    else:
        raise ValidationError("not_replicable", f"{type(source).__name__} cannot be replicated")

    logger.info(
        "replication.complete kind=%s source=%s copy=%s target_mission=%s from_standard=%s created=%s",
        source.KIND,
        source.id,
        copy.id,
        plan.target_mission_id,
        plan.from_standard,
        len(ctx) - before,
    )
    return copy


__all__ = [
    "UNIQUE_FIELDS",
    "PERSIST_ORDER",
    "ReplicationScope",
    "EmptyScope",
    "ReplicationContext",
    "replicate",
]
