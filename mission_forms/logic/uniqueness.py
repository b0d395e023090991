"""Name uniqueness within a mission scope.

A scope is the set of sibling names that must not collide, e.g. the names of
every option set in one mission. Standard templates live in their own scope
(mission ``None``), so a template never collides with its mission copies.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from mission_forms.config import get_config
from mission_forms.logic.errors import ValidationError

logger = logging.getLogger(__name__)

SEP_WORDS = "sep_words"
CAMEL_CASE = "camel_case"


def _with_suffix(candidate: str, n: int, style: str) -> str:
    if style == CAMEL_CASE:
        return f"{candidate}{n}"
    return f"{candidate} {n}"


def unique_name(
    candidate: str,
    scope: Iterable[str],
    style: str = SEP_WORDS,
    max_attempts: Optional[int] = None,
) -> str:
    """Return ``candidate`` or the first free ``"candidate N"`` (N >= 2) in ``scope``.

    Raises ValidationError("name_unresolvable") when ``max_attempts`` suffixes
    are all taken.
    """
    taken = {str(n) for n in scope if n is not None}
    if candidate not in taken:
        return candidate
    limit = max_attempts if max_attempts is not None else get_config().replication.max_suffix_attempts
    for n in range(2, limit + 2):
        attempt = _with_suffix(candidate, n, style)
        if attempt not in taken:
            logger.info("unique_name.resolved candidate=%s result=%s", candidate, attempt)
            return attempt
    logger.error("unique_name.exhausted candidate=%s attempts=%s", candidate, limit)
    raise ValidationError("name_unresolvable", f"could not find a free name for {candidate!r}")


def name_unique_in_scope(name: str, scope: Iterable[tuple[str, str]], exclude_id: Optional[str] = None) -> None:
    """Validate that ``name`` is not used by another entity in ``scope``.

    ``scope`` yields ``(id, name)`` pairs; the entity being saved is excluded
    by ``exclude_id``.
    """
    for other_id, other_name in scope:
        if exclude_id is not None and str(other_id) == str(exclude_id):
            continue
        if other_name == name:
            raise ValidationError("must_be_unique", f"name {name!r} is already used in this mission")


__all__ = ["SEP_WORDS", "CAMEL_CASE", "unique_name", "name_unique_in_scope"]
