from __future__ import annotations
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from vocab_lists.config import settings
from vocab_lists.models.user import User
from vocab_lists.service.auth_service import AuthError, AuthResult, AuthService
from vocab_lists.web.dependencies import get_auth_service, require_user, session_token
from vocab_lists.web.errors import error_response
from vocab_lists.web.schemas import Credentials

router = APIRouter(prefix="/api/auth", tags=["auth"])

def _user_dict(user: User) -> dict:
    return {"id": user.id, "username": user.username, "created_at": user.created_at}

def _session_response(result: AuthResult, status_code: int) -> JSONResponse:
    resp = JSONResponse(
        {"user": _user_dict(result.user), "token": result.session_token, "expires_at": result.expires_at.isoformat()},
        status_code=status_code,
    )
    resp.set_cookie(settings.SESSION_COOKIE_NAME, result.session_token, httponly=True, samesite="lax")
    return resp

@router.post("/register")
def register(body: Credentials, auth: AuthService = Depends(get_auth_service)):
    try:
        result = auth.register(body.username, body.password)
    except AuthError as e:
        return error_response("registration_failed", str(e), 400)
    return _session_response(result, 201)

@router.post("/login")
def login(body: Credentials, auth: AuthService = Depends(get_auth_service)):
    try:
        result = auth.login(body.username, body.password)
    except AuthError as e:
        return error_response("invalid_credentials", str(e), 401)
    return _session_response(result, 200)

@router.post("/logout")
def logout(request: Request, auth: AuthService = Depends(get_auth_service)):
    token = session_token(request)
    if token:
        auth.logout(token)
    resp = JSONResponse({"success": True})
    resp.delete_cookie(settings.SESSION_COOKIE_NAME)
    return resp

@router.get("/me")
def me(user: User = Depends(require_user)):
    return {"user": _user_dict(user)}
