from __future__ import annotations
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from vocab_lists.config import settings
from vocab_lists.models.user import User
from vocab_lists.service.list_service import ListService
from vocab_lists.service.recorder import TestResultRecorder
from vocab_lists.service.test_session import InsufficientItems
from vocab_lists.web.dependencies import get_list_service, get_recorder, require_user
from vocab_lists.web.errors import error_response
from vocab_lists.web.schemas import (
    CompleteTestRequest,
    CreateListRequest,
    RenameListRequest,
    list_to_dict,
    test_to_dict,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/lists", tags=["lists"])


@router.post("")
def create_list(
    body: CreateListRequest,
    user: User = Depends(require_user),
    lists: ListService = Depends(get_list_service),
):
    try:
        created = lists.create_list(
            user_id=user.id,
            name=body.name,
            source=body.source,
            category=body.category,
            items=[(i.position, i.display) for i in body.items],
        )
    except ValueError as e:
        return error_response("validation_error", str(e), 400)
    return JSONResponse({"success": True, "list": list_to_dict(created)}, status_code=201)


@router.get("")
def my_lists(user: User = Depends(require_user), lists: ListService = Depends(get_list_service)):
    return {"lists": [list_to_dict(l, include_items=False) for l in lists.list_lists(user.id)]}


@router.get("/{list_id}")
def get_list(list_id: int, user: User = Depends(require_user), lists: ListService = Depends(get_list_service)):
    return {"list": list_to_dict(lists.get_list(user.id, list_id, touch=True))}


@router.patch("/{list_id}")
def rename_list(
    list_id: int,
    body: RenameListRequest,
    user: User = Depends(require_user),
    lists: ListService = Depends(get_list_service),
):
    try:
        renamed = lists.rename_list(user.id, list_id, body.name)
    except ValueError as e:
        return error_response("validation_error", str(e), 400)
    return {"success": True, "list": list_to_dict(renamed, include_items=False)}


@router.delete("/{list_id}")
def delete_list(list_id: int, user: User = Depends(require_user), lists: ListService = Depends(get_list_service)):
    lists.delete_list(user.id, list_id)
    return {"success": True, "message": "List deleted successfully"}


@router.get("/{list_id}/tests")
def test_history(
    list_id: int,
    user: User = Depends(require_user),
    lists: ListService = Depends(get_list_service),
    recorder: TestResultRecorder = Depends(get_recorder),
):
    lists.get_list(user.id, list_id)
    return {"tests": [test_to_dict(t) for t in recorder.history(user.id, list_id)]}


@router.post("/{list_id}/tests")
def complete_test(
    list_id: int,
    body: CompleteTestRequest,
    user: User = Depends(require_user),
    lists: ListService = Depends(get_list_service),
    recorder: TestResultRecorder = Depends(get_recorder),
):
    """Record a test that was run client-side. Counts must cover every item."""
    word_list = lists.get_list(user.id, list_id)
    if len(word_list.items) < settings.MIN_TEST_ITEMS:
        raise InsufficientItems(have=len(word_list.items), need=settings.MIN_TEST_ITEMS)
    if body.correct + body.wrong != len(word_list.items):
        return error_response(
            "validation_error",
            f"correct + wrong must equal the number of items ({len(word_list.items)}).",
            400,
        )
    record = recorder.record_completion(user.id, list_id, body.correct, body.wrong)
    return JSONResponse(test_to_dict(record), status_code=201)
