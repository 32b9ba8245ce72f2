from __future__ import annotations

from typing import Tuple

from vocab_lists.db.database import get_conn, transaction

class QuotaRepo:
    def try_increment(self, user_id: int, day_utc: str, limit: int, now: str) -> Tuple[bool, int]:
        """Atomically bump today's counter if it is below ``limit``.

        Returns (incremented, used_after). The row is created with used = 0
        on first use of the day.
        """
        with transaction() as conn:
            conn.execute(
                """INSERT INTO ai_usage_daily (user_id, day_utc, used, updated_at)
                     VALUES (?, ?, 0, ?)
                     ON CONFLICT(user_id, day_utc) DO NOTHING""",
                (user_id, day_utc, now),
            )
            cur = conn.execute(
                """UPDATE ai_usage_daily SET used = used + 1, updated_at = ?
                     WHERE user_id = ? AND day_utc = ? AND used < ?""",
                (now, user_id, day_utc, limit),
            )
            incremented = cur.rowcount == 1
            row = conn.execute(
                "SELECT used FROM ai_usage_daily WHERE user_id = ? AND day_utc = ?", (user_id, day_utc)
            ).fetchone()
        return incremented, int(row["used"])

    def get_used(self, user_id: int, day_utc: str) -> int:
        with get_conn() as conn:
            row = conn.execute(
                "SELECT used FROM ai_usage_daily WHERE user_id = ? AND day_utc = ?", (user_id, day_utc)
            ).fetchone()
        return int(row[0]) if row else 0
