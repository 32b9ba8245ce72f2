from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from vocab_lists.models.user import User
from vocab_lists.service.list_service import ListService
from vocab_lists.web.dependencies import get_list_service, require_user
from vocab_lists.web.errors import error_response
from vocab_lists.web.schemas import AddItemRequest, UpdateItemRequest, item_to_dict

router = APIRouter(prefix="/api/lists/{list_id}/items", tags=["items"])


@router.post("")
def add_item(
    list_id: int,
    body: AddItemRequest,
    user: User = Depends(require_user),
    lists: ListService = Depends(get_list_service),
):
    try:
        item = lists.add_item(user.id, list_id, body.display)
    except ValueError as e:
        return error_response("validation_error", str(e), 400)
    return JSONResponse({"success": True, "item": item_to_dict(item)}, status_code=201)


@router.patch("/{item_id}")
def update_item(
    list_id: int,
    item_id: int,
    body: UpdateItemRequest,
    user: User = Depends(require_user),
    lists: ListService = Depends(get_list_service),
):
    try:
        item = lists.edit_item(user.id, list_id, item_id, display=body.display, position=body.position)
    except ValueError as e:
        return error_response("validation_error", str(e), 400)
    return {"success": True, "item": item_to_dict(item)}


@router.delete("/{item_id}")
def delete_item(
    list_id: int,
    item_id: int,
    user: User = Depends(require_user),
    lists: ListService = Depends(get_list_service),
):
    lists.delete_item(user.id, list_id, item_id)
    return {"success": True, "items": [item_to_dict(i) for i in lists.get_list(user.id, list_id).items]}
