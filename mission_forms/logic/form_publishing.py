"""Form publication lifecycle and read-side helpers."""

from __future__ import annotations

import logging
import secrets
import string
from typing import List, Optional

from mission_forms.logic.rank_sequences import ranked
from mission_forms.logic.usage import UsageCount, resolve_count
from mission_forms.models.domain import Form, FormVersion, OptionSet, Questioning, new_id

logger = logging.getLogger(__name__)

VERSION_CODE_LENGTH = 3


def _random_code() -> str:
    return "".join(secrets.choice(string.ascii_lowercase) for _ in range(VERSION_CODE_LENGTH))


def upgrade_version(form: Form) -> FormVersion:
    """Replace the current version with the next one and lower the upgrade flag."""
    prev = form.current_version
    if prev is not None:
        prev.is_current = False
        seq = prev.sequence + 1
        code = _random_code()
        while code == prev.code:
            code = _random_code()
    else:
        seq = 1
        code = _random_code()
    form.current_version = FormVersion(id=new_id(), form_id=form.id, sequence=seq, code=code, is_current=True)
    form.upgrade_needed = False
    logger.info("form.version_upgraded form_id=%s sequence=%s", form.id, seq)
    return form.current_version


def publish(form: Form) -> Form:
    """Publish and reset downloads; upgrade the version if flagged or missing."""
    form.published = True
    form.downloads = 0
    if form.upgrade_needed or form.current_version is None:
        upgrade_version(form)
    return form


def unpublish(form: Form) -> Form:
    form.published = False
    return form


def add_download(form: Form) -> Form:
    form.downloads = (form.downloads or 0) + 1
    return form


def flag_for_upgrade(form: Form) -> Form:
    """Mark the form so it gets a new version the next time it is published."""
    form.upgrade_needed = True
    return form


def version_label(form: Form, with_code: bool = False) -> str:
    if form.current_version is None:
        return ""
    if with_code:
        return form.current_version.sequence_and_code
    return str(form.current_version.sequence)


def temp_response_id(form: Form) -> str:
    return f"{form.name}_{secrets.randbelow(899999999) + 100000000}"


def visible_questionings(form: Form) -> List[Questioning]:
    return [q for q in ranked(form.questionings) if not q.hidden]


def smsable_questionings(form: Form) -> List[Questioning]:
    return [q for q in visible_questionings(form) if q.question.qtype.smsable]


def option_sets(form: Form) -> List[OptionSet]:
    seen: dict = {}
    for qing in ranked(form.questionings):
        os_ = qing.question.option_set
        if os_ is not None and os_.id not in seen:
            seen[os_.id] = os_
    return list(seen.values())


def all_required(form: Form, smsable: bool = False) -> bool:
    """True if no visible questioning is optional (optionally: no optional SMS question)."""
    for qing in visible_questionings(form):
        if qing.required:
            continue
        if smsable and not qing.question.qtype.smsable:
            continue
        return False
    return True


def published_copy_count(form: Form, copies: Optional[UsageCount]) -> int:
    """Number of published mission copies of a standard form (0 for mission forms)."""
    if not form.is_standard or copies is None:
        return 0
    return resolve_count(copies)


def self_or_copy_published(form: Form, copies: Optional[UsageCount]) -> bool:
    return form.published or published_copy_count(form, copies) > 0


__all__ = [
    "upgrade_version",
    "publish",
    "unpublish",
    "add_download",
    "flag_for_upgrade",
    "version_label",
    "temp_response_id",
    "visible_questionings",
    "smsable_questionings",
    "option_sets",
    "all_required",
    "published_copy_count",
    "self_or_copy_published",
]
