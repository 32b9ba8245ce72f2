from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from vocab_lists.db.database import get_conn


@dataclass(frozen=True)
class StoredRun:
    id: int
    user_id: int
    list_id: int
    state: Dict[str, Any]
    version: int
    test_id: Optional[int]
    created_at: str


class RunRepo:
    def create(self, user_id: int, list_id: int, state: Dict[str, Any]) -> StoredRun:
        now = datetime.now(timezone.utc).isoformat()
        with get_conn() as conn:
            cur = conn.execute(
                """INSERT INTO test_runs (user_id, list_id, state_json, version, created_at, updated_at)
                     VALUES (?, ?, ?, 0, ?, ?)""",
                (user_id, list_id, json.dumps(state), now, now),
            )
            run_id = int(cur.lastrowid)
        return StoredRun(id=run_id, user_id=user_id, list_id=list_id, state=state, version=0, test_id=None, created_at=now)

    def get(self, run_id: int, user_id: int) -> Optional[StoredRun]:
        with get_conn() as conn:
            r = conn.execute(
                """SELECT id, user_id, list_id, state_json, version, test_id, created_at
                     FROM test_runs WHERE id = ? AND user_id = ?""",
                (run_id, user_id),
            ).fetchone()
        if not r:
            return None
        return StoredRun(
            id=r["id"], user_id=r["user_id"], list_id=r["list_id"], state=json.loads(r["state_json"]),
            version=r["version"], test_id=r["test_id"], created_at=r["created_at"],
        )

    def save(self, run_id: int, user_id: int, state: Dict[str, Any], expected_version: int) -> bool:
        """Compare-and-swap on ``version``. False means another request got there first."""
        now = datetime.now(timezone.utc).isoformat()
        with get_conn() as conn:
            cur = conn.execute(
                """UPDATE test_runs SET state_json = ?, version = version + 1, updated_at = ?
                     WHERE id = ? AND user_id = ? AND version = ?""",
                (json.dumps(state), now, run_id, user_id, expected_version),
            )
            saved = cur.rowcount == 1
        return saved
