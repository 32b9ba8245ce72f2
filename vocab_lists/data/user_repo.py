from __future__ import annotations

from typing import Optional, Tuple
from datetime import datetime, timezone

from vocab_lists.db.database import get_conn
from vocab_lists.models.user import User

class UserRepo:
    def create_user(self, username: str, password_hash: str) -> User:
        now = datetime.now(timezone.utc).isoformat()
        with get_conn() as conn:
            cur = conn.execute(
                "INSERT INTO users (username, password_hash, created_at) VALUES (?, ?, ?)",
                (username, password_hash, now),
            )
            user_id = int(cur.lastrowid)
        return User(id=user_id, username=username, created_at=now)

    def username_exists(self, username: str) -> bool:
        with get_conn() as conn:
            row = conn.execute("SELECT 1 FROM users WHERE username = ?", (username,)).fetchone()
        return row is not None

    def get_user_by_username_with_hash(self, username: str) -> Optional[Tuple[User, str]]:
        with get_conn() as conn:
            row = conn.execute(
                "SELECT id, username, password_hash, created_at FROM users WHERE username = ?",
                (username,),
            ).fetchone()
        if not row:
            return None
        return User(id=row["id"], username=row["username"], created_at=row["created_at"]), row["password_hash"]

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        with get_conn() as conn:
            row = conn.execute("SELECT id, username, created_at FROM users WHERE id = ?", (user_id,)).fetchone()
        if not row:
            return None
        return User(id=row["id"], username=row["username"], created_at=row["created_at"])
