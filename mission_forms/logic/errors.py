"""Typed errors raised by the forms and option-set core.

All errors are synchronous and local to the triggering call. The HTTP layer
maps them to problem+json payloads (see ``mission_forms.http.problem``);
persistence errors are never wrapped and pass through unchanged.
"""

from __future__ import annotations

from typing import Optional


class MissionFormsError(Exception):
    """Base class carrying a stable machine-readable ``code``."""

    code = "error"

    def __init__(self, code: Optional[str] = None, detail: Optional[str] = None) -> None:
        if code:
            self.code = code
        self.detail = detail or self.code
        super().__init__(self.detail)


class ValidationError(MissionFormsError):
    """Input cannot be accepted as given; not retryable without changing it."""

    code = "invalid"


class DeletionError(MissionFormsError):
    """A structural removal is unsafe and must not proceed."""

    IN_USE = "in_use"
    EMPTY_NOT_ALLOWED = "empty_not_allowed"

    code = IN_USE

    def __init__(self, reason: str, detail: Optional[str] = None) -> None:
        super().__init__(reason, detail)

    @property
    def reason(self) -> str:
        return self.code


class NotFoundError(MissionFormsError):
    code = "not_found"


__all__ = [
    "MissionFormsError",
    "ValidationError",
    "DeletionError",
    "NotFoundError",
]
