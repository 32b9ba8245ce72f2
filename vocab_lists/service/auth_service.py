from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from vocab_lists.data.user_repo import UserRepo
from vocab_lists.data.session_repo import SessionRepo
from vocab_lists.models.user import User
from vocab_lists.service.security import hash_password, new_session_token, verify_password

logger = logging.getLogger(__name__)

class AuthError(Exception): pass

@dataclass
class AuthResult:
    user: User
    session_token: str
    expires_at: datetime

class AuthService:
    """Password sign-in that hands out opaque session tokens.

    Stand-in for an external identity provider: the rest of the app only
    needs ``user_for_token``.
    """

    def __init__(self, user_repo: UserRepo, session_repo: SessionRepo):
        self.user_repo = user_repo
        self.session_repo = session_repo

    def _open_session(self, user: User) -> AuthResult:
        token = new_session_token()
        expires_at = self.session_repo.create_session(user_id=user.id, token=token)
        return AuthResult(user=user, session_token=token, expires_at=expires_at)

    def register(self, username: str, password: str) -> AuthResult:
        username = username.strip()
        if len(username) < 3:
            raise AuthError("Username must be at least 3 characters.")
        if len(password) < 6:
            raise AuthError("Password must be at least 6 characters.")
        if self.user_repo.username_exists(username):
            raise AuthError("That username is already taken.")
        user = self.user_repo.create_user(username=username, password_hash=hash_password(password))
        logger.info("Registered user %s", user.id)
        return self._open_session(user)

    def login(self, username: str, password: str) -> AuthResult:
        found = self.user_repo.get_user_by_username_with_hash(username.strip())
        if not found or not verify_password(password, found[1]):
            logger.warning("Failed login for %r", username.strip())
            raise AuthError("Invalid username or password.")
        return self._open_session(found[0])

    def user_for_token(self, token: str) -> Optional[User]:
        user_id = self.session_repo.get_user_id_by_token(token)
        if user_id is None:
            return None
        return self.user_repo.get_user_by_id(user_id)

    def logout(self, token: str) -> None:
        self.session_repo.delete_session(token)
