"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type and handler callables that turn core errors,
HTTP errors and request validation failures into application/problem+json
responses.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mission_forms.logic.errors import DeletionError, MissionFormsError, NotFoundError, ValidationError

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)

# error class -> (title, HTTP status)
ERROR_STATUS = {
    NotFoundError: ("Not Found", 404),
    DeletionError: ("Conflict", 409),
    ValidationError: ("Unprocessable Entity", 422),
}


def problem_for(exc: MissionFormsError) -> Dict[str, Any]:
    title, status = "Bad Request", 400
    for cls, mapped in ERROR_STATUS.items():
        if isinstance(exc, cls):
            title, status = mapped
            break
    return {
        "type": "about:blank",
        "title": title,
        "status": status,
        "detail": exc.detail,
        "code": exc.code,
    }


async def handle_domain_error(request: Request, exc: MissionFormsError) -> JSONResponse:  # noqa: D401
    problem = problem_for(exc)
    logger.info(
        "error_handler.handle path=%s code=%s status=%s",
        request.url.path,
        problem["code"],
        problem["status"],
    )
    return JSONResponse(problem, status_code=problem["status"], media_type=PROBLEM_MEDIA_TYPE)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    status_code = int(getattr(exc, "status_code", 500) or 500)
    if isinstance(exc.detail, dict):
        detail = exc.detail
    else:
        detail = {"title": "Error", "status": status_code, "detail": str(exc.detail or "")}
    headers = {str(k): str(v) for k, v in (exc.headers or {}).items()}
    return JSONResponse(detail, status_code=status_code, media_type=PROBLEM_MEDIA_TYPE, headers=headers or None)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    problem = {
        "title": "Invalid Request",
        "status": 422,
        "detail": "Request validation failed",
        "code": "request_invalid",
        "errors": [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
            for e in exc.errors()
        ],
    }
    return JSONResponse(problem, status_code=422, media_type=PROBLEM_MEDIA_TYPE)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return JSONResponse({"title": "Internal Server Error", "status": 500}, status_code=500, media_type=PROBLEM_MEDIA_TYPE)


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "ERROR_STATUS",
    "problem_for",
    "handle_domain_error",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
