from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from vocab_lists.config import settings
from vocab_lists.models.quota import QuotaStatus
from vocab_lists.models.word_list import TestRecord, WordList, WordListItem
from vocab_lists.service.list_lifecycle import is_locked
from vocab_lists.service.test_run_service import RunView
from vocab_lists.service.test_session import SessionState

Category = Literal["animals", "food", "household_items", "transport", "jobs"]


# -------------------------
# Requests
# -------------------------
class Credentials(BaseModel):
    username: str
    password: str


class NewItem(BaseModel):
    position: int = Field(ge=1, le=settings.MAX_ITEMS_PER_LIST)
    display: str


class CreateListRequest(BaseModel):
    name: str
    source: Literal["manual", "ai"]
    category: Optional[Category] = None
    items: List[NewItem] = Field(min_length=1, max_length=settings.MAX_ITEMS_PER_LIST)


class RenameListRequest(BaseModel):
    name: str


class AddItemRequest(BaseModel):
    display: str


class UpdateItemRequest(BaseModel):
    display: Optional[str] = None
    position: Optional[int] = Field(default=None, ge=1)


class CompleteTestRequest(BaseModel):
    correct: int = Field(ge=0)
    wrong: int = Field(ge=0)


class AnswerRequest(BaseModel):
    choice: Literal["A", "B"]


class GenerateListRequest(BaseModel):
    category: Category
    count: int = Field(ge=settings.AI_MIN_COUNT, le=settings.AI_MAX_COUNT)


# -------------------------
# Responses
# -------------------------
def item_to_dict(item: WordListItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "list_id": item.list_id,
        "position": item.position,
        "display": item.display,
        "normalized": item.normalized,
        "created_at": item.created_at,
    }


def list_to_dict(word_list: WordList, include_items: bool = True) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": word_list.id,
        "name": word_list.name,
        "source": word_list.source,
        "category": word_list.category,
        "locked": is_locked(word_list),
        "first_tested_at": word_list.first_tested_at,
        "last_score": word_list.last_score,
        "last_correct": word_list.last_correct,
        "last_wrong": word_list.last_wrong,
        "last_tested_at": word_list.last_tested_at,
        "last_accessed_at": word_list.last_accessed_at,
        "created_at": word_list.created_at,
        "updated_at": word_list.updated_at,
    }
    if include_items:
        data["items"] = [item_to_dict(i) for i in word_list.items]
    return data


def test_to_dict(record: TestRecord) -> Dict[str, Any]:
    return {
        "id": record.id,
        "list_id": record.list_id,
        "correct": record.correct,
        "wrong": record.wrong,
        "items_count": record.items_count,
        "score": record.score,
        "completed_at": record.completed_at,
    }


def quota_to_dict(status: QuotaStatus) -> Dict[str, Any]:
    return {
        "used": status.used,
        "remaining": status.remaining,
        "limit": status.limit,
        "reset_at": status.reset_at.isoformat().replace("+00:00", "Z"),
    }


def run_to_dict(view: RunView) -> Dict[str, Any]:
    """Public view of a run. Which slot is correct is never sent."""
    session = view.session
    question = session.current_question
    data: Dict[str, Any] = {
        "run_id": view.run_id,
        "list_id": view.list_id,
        "state": session.state.value,
        "total": session.total,
        "answered": session.answered,
        "correct": session.correct,
        "wrong": session.wrong,
        "last_answer_correct": session.last_answer_correct,
        "question": None,
        "result": None,
        "recorded": view.test is not None,
        "test": test_to_dict(view.test) if view.test else None,
    }
    if question is not None:
        data["question"] = {
            "number": session.index + 1,
            "prompt": session.prompt,
            "option_a": question.option_a,
            "option_b": question.option_b,
            "last_indicated": session.last_indicated,
        }
    if session.state is SessionState.COMPLETED:
        result = session.result()
        data["result"] = {
            "correct": result.correct,
            "wrong": result.wrong,
            "total": result.total,
            "score": result.score,
        }
    if view.record_failed:
        data["record_error"] = "The result could not be saved. Retry to record it."
    return data
