from __future__ import annotations
from typing import Optional
from fastapi import Request
from vocab_lists.config import settings
from vocab_lists.data.list_repo import ListRepo
from vocab_lists.data.quota_repo import QuotaRepo
from vocab_lists.data.run_repo import RunRepo
from vocab_lists.data.session_repo import SessionRepo
from vocab_lists.data.test_repo import TestRepo
from vocab_lists.data.user_repo import UserRepo
from vocab_lists.models.user import User
from vocab_lists.service.ai_generator import ListGenerator, build_generator
from vocab_lists.service.auth_service import AuthService
from vocab_lists.service.list_service import ListService
from vocab_lists.service.quota_service import QuotaAccount
from vocab_lists.service.recorder import TestResultRecorder
from vocab_lists.service.test_run_service import TestRunService
from vocab_lists.web.errors import NotAuthenticated

# Repositories and services hold no per-request state; the user is resolved
# from each request and passed in explicitly.
auth_service = AuthService(UserRepo(), SessionRepo(settings.SESSION_LIFETIME_HOURS))
list_service = ListService(
    ListRepo(),
    max_lists=settings.MAX_LISTS_PER_USER,
    max_items=settings.MAX_ITEMS_PER_LIST,
    name_max_len=settings.NAME_MAX_LEN,
    display_max_len=settings.DISPLAY_MAX_LEN,
)
recorder = TestResultRecorder(TestRepo())
run_service = TestRunService(RunRepo(), list_service, recorder, min_items=settings.MIN_TEST_ITEMS)
quota_account = QuotaAccount(QuotaRepo(), daily_limit=settings.AI_DAILY_LIMIT)

def session_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get(settings.SESSION_COOKIE_NAME)

def get_current_user(request: Request) -> Optional[User]:
    token = session_token(request)
    if not token:
        return None
    return auth_service.user_for_token(token)

def require_user(request: Request) -> User:
    user = get_current_user(request)
    if user is None:
        raise NotAuthenticated()
    return user

def get_auth_service() -> AuthService:
    return auth_service

def get_list_service() -> ListService:
    return list_service

def get_recorder() -> TestResultRecorder:
    return recorder

def get_run_service() -> TestRunService:
    return run_service

def get_quota_account() -> QuotaAccount:
    return quota_account

def get_list_generator() -> ListGenerator:
    return build_generator(settings)
