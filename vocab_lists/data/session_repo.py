from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from vocab_lists.db.database import get_conn

class SessionRepo:
    def __init__(self, lifetime_hours: int = 24):
        self.lifetime_hours = lifetime_hours

    def create_session(self, user_id: int, token: str) -> datetime:
        now = datetime.now(timezone.utc)
        expires = now + timedelta(hours=self.lifetime_hours)
        with get_conn() as conn:
            conn.execute(
                """INSERT INTO sessions (token, user_id, created_at, expires_at)
                     VALUES (?, ?, ?, ?)""",
                (token, user_id, now.isoformat(), expires.isoformat()),
            )
        return expires

    def get_user_id_by_token(self, token: str) -> Optional[int]:
        with get_conn() as conn:
            row = conn.execute("SELECT user_id, expires_at FROM sessions WHERE token = ?", (token,)).fetchone()
        if not row:
            return None
        if datetime.fromisoformat(row["expires_at"]) < datetime.now(timezone.utc):
            self.delete_session(token)
            return None
        return int(row["user_id"])

    def delete_session(self, token: str) -> None:
        with get_conn() as conn:
            conn.execute("DELETE FROM sessions WHERE token = ?", (token,))
