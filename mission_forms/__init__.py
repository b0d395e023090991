"""FastAPI application package for the Mission Forms service.

Manages forms, questions and option sets for missions (tenants) and the
standard templates they are replicated from. Business logic lives in
`mission_forms/logic/`, persistence helpers in the `repository_*` modules,
and route handlers in `mission_forms/routes/`.
"""

from __future__ import annotations

from mission_forms.main import create_app

__all__ = ["create_app"]
