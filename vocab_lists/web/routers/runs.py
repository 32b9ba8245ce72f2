from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from vocab_lists.models.user import User
from vocab_lists.service.test_run_service import TestRunService
from vocab_lists.web.dependencies import get_run_service, require_user
from vocab_lists.web.schemas import AnswerRequest, run_to_dict

router = APIRouter(prefix="/api", tags=["runs"])


@router.post("/lists/{list_id}/runs")
def start_run(list_id: int, user: User = Depends(require_user), runs: TestRunService = Depends(get_run_service)):
    return JSONResponse(run_to_dict(runs.start(user.id, list_id)), status_code=201)


@router.get("/runs/{run_id}")
def get_run(run_id: int, user: User = Depends(require_user), runs: TestRunService = Depends(get_run_service)):
    return run_to_dict(runs.get(user.id, run_id))


@router.post("/runs/{run_id}/answer")
def answer(
    run_id: int,
    body: AnswerRequest,
    user: User = Depends(require_user),
    runs: TestRunService = Depends(get_run_service),
):
    return run_to_dict(runs.answer(user.id, run_id, is_slot_a=body.choice == "A"))


@router.post("/runs/{run_id}/advance")
def advance(run_id: int, user: User = Depends(require_user), runs: TestRunService = Depends(get_run_service)):
    """Called when the feedback flash ends."""
    return run_to_dict(runs.advance(user.id, run_id))


@router.post("/runs/{run_id}/record")
def record(run_id: int, user: User = Depends(require_user), runs: TestRunService = Depends(get_run_service)):
    return run_to_dict(runs.record(user.id, run_id))
