"""APIRouter registration for the Mission Forms service."""

from __future__ import annotations

from fastapi import APIRouter

from mission_forms.routes.catalog import router as catalog_router
from mission_forms.routes.forms import router as forms_router
from mission_forms.routes.option_sets import router as option_sets_router
from mission_forms.routes.replication import router as replication_router

api_router = APIRouter()
api_router.include_router(catalog_router, tags=["Missions", "Questions"])
api_router.include_router(option_sets_router, tags=["OptionSets"])
api_router.include_router(forms_router, tags=["Forms"])
api_router.include_router(replication_router, tags=["Replication"])

__all__ = ["api_router"]
