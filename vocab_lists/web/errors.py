from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from vocab_lists.db.database import PersistenceFailure
from vocab_lists.service.ai_generator import AIGenerationError
from vocab_lists.service.clock import utc_now
from vocab_lists.service.list_lifecycle import ListLocked
from vocab_lists.service.list_service import ItemNotFound, ListLimitExceeded, ListNotFound
from vocab_lists.service.quota_service import QuotaExceeded
from vocab_lists.service.test_run_service import RunNotFound, StaleRun
from vocab_lists.service.test_session import InsufficientItems, InvalidTransition

logger = logging.getLogger(__name__)


class NotAuthenticated(Exception):
    pass


def error_response(
    error: str,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {"error": error, "message": message}
    if details:
        body["details"] = details
    return JSONResponse(body, status_code=status_code, headers=headers)


def validation_error_response(message: str, fields: Dict[str, str]) -> JSONResponse:
    errors = [{"field": field, "message": msg} for field, msg in fields.items()]
    return error_response("validation_error", message, 400, {"errors": errors})


def quota_exceeded_response(exc: QuotaExceeded) -> JSONResponse:
    retry_after = max(1, math.ceil((exc.reset_at - utc_now()).total_seconds()))
    return JSONResponse(
        {
            "error": "rate_limit_exceeded",
            "message": str(exc),
            "reset_at": exc.reset_at.isoformat().replace("+00:00", "Z"),
        },
        status_code=429,
        headers={"Retry-After": str(retry_after)},
    )


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _validation(request: Request, exc: RequestValidationError):
        fields: Dict[str, str] = {}
        for err in exc.errors():
            if err.get("type") == "json_invalid":
                return error_response("invalid_json", "Request body must be valid JSON", 400)
            loc = [str(p) for p in err.get("loc", ()) if p != "body"]
            fields[".".join(loc) or "root"] = err.get("msg", "Invalid value")
        logger.warning("Validation error on %s: %s", request.url.path, fields)
        return validation_error_response("Invalid request data", fields)

    @app.exception_handler(NotAuthenticated)
    async def _unauthorized(request: Request, exc: NotAuthenticated):
        return error_response("unauthorized", "Authentication required", 401)

    @app.exception_handler(ListNotFound)
    async def _list_not_found(request: Request, exc: ListNotFound):
        return error_response("not_found", "List not found", 404)

    @app.exception_handler(ItemNotFound)
    async def _item_not_found(request: Request, exc: ItemNotFound):
        return error_response("not_found", "Item not found", 404)

    @app.exception_handler(RunNotFound)
    async def _run_not_found(request: Request, exc: RunNotFound):
        return error_response("not_found", "Test run not found", 404)

    @app.exception_handler(ListLocked)
    async def _locked(request: Request, exc: ListLocked):
        logger.warning("Attempt to modify locked list %s", exc.list_id)
        return error_response("list_locked", str(exc), 403, {"locked_since": exc.since})

    @app.exception_handler(InsufficientItems)
    async def _insufficient(request: Request, exc: InsufficientItems):
        return error_response("insufficient_items", str(exc), 400, {"have": exc.have, "need": exc.need})

    @app.exception_handler(InvalidTransition)
    async def _invalid_state(request: Request, exc: InvalidTransition):
        return error_response("invalid_state", str(exc), 409)

    @app.exception_handler(StaleRun)
    async def _stale(request: Request, exc: StaleRun):
        return error_response("conflict", str(exc), 409)

    @app.exception_handler(ListLimitExceeded)
    async def _list_limit(request: Request, exc: ListLimitExceeded):
        return error_response("list_limit_exceeded", str(exc), 429)

    @app.exception_handler(QuotaExceeded)
    async def _quota(request: Request, exc: QuotaExceeded):
        return quota_exceeded_response(exc)

    @app.exception_handler(AIGenerationError)
    async def _ai(request: Request, exc: AIGenerationError):
        logger.error("AI generation failed: %s", exc.detail)
        return JSONResponse(
            {
                "error": "ai_service_error",
                "message": "Failed to generate list. Please try again.",
                "retry_after": exc.retry_after,
            },
            status_code=500,
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(PersistenceFailure)
    async def _db(request: Request, exc: PersistenceFailure):
        logger.error("Storage failure on %s: %s", request.url.path, exc)
        return error_response("database_error", "A storage error occurred. Please try again.", 503)
