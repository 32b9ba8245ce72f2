from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from vocab_lists.db.database import get_conn, transaction
from vocab_lists.models.word_list import WordList, WordListItem

_LIST_COLUMNS = """id, user_id, name, source, category, first_tested_at, last_score, last_correct,
                   last_wrong, last_tested_at, last_accessed_at, created_at, updated_at"""

_ITEM_COLUMNS = "id, list_id, position, display, normalized, created_at"

# Item mutations only touch rows whose list is still unlocked, so a test that
# completes between the caller's lock check and the write cannot be bypassed.
_UNLOCKED = "EXISTS (SELECT 1 FROM word_lists WHERE id = ? AND first_tested_at IS NULL)"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

def _row_to_item(r: sqlite3.Row) -> WordListItem:
    return WordListItem(
        id=r["id"], list_id=r["list_id"], position=r["position"],
        display=r["display"], normalized=r["normalized"], created_at=r["created_at"],
    )

def _row_to_list(r: sqlite3.Row, items: Sequence[WordListItem] = ()) -> WordList:
    return WordList(
        id=r["id"],
        user_id=r["user_id"],
        name=r["name"],
        source=r["source"],
        category=r["category"],
        first_tested_at=r["first_tested_at"],
        last_score=r["last_score"],
        last_correct=r["last_correct"],
        last_wrong=r["last_wrong"],
        last_tested_at=r["last_tested_at"],
        last_accessed_at=r["last_accessed_at"],
        created_at=r["created_at"],
        updated_at=r["updated_at"],
        items=list(items),
    )

def _shift_positions(conn: sqlite3.Connection, list_id: int, low: int, high: int, delta: int) -> None:
    """Shift positions in [low, high] by delta.

    UNIQUE(list_id, position) is checked row by row in sqlite, so the block is
    first moved to negative space and then flipped back.
    """
    conn.execute(
        "UPDATE list_items SET position = -(position + ?) WHERE list_id = ? AND position BETWEEN ? AND ?",
        (delta, list_id, low, high),
    )
    conn.execute("UPDATE list_items SET position = -position WHERE list_id = ? AND position < 0", (list_id,))


class ListRepo:
    # -------------------------
    # Lists
    # -------------------------
    def create_list_with_items(
        self,
        user_id: int,
        name: str,
        source: str,
        category: Optional[str],
        items: Sequence[Tuple[str, str]],
        max_lists: int,
    ) -> Optional[WordList]:
        """Insert a list and its items (display, normalized) as positions 1..N.

        Returns None when the user already owns ``max_lists`` lists.
        """
        now = _now()
        with transaction() as conn:
            (count,) = conn.execute("SELECT COUNT(*) FROM word_lists WHERE user_id = ?", (user_id,)).fetchone()
            if count >= max_lists:
                return None
            cur = conn.execute(
                """INSERT INTO word_lists (user_id, name, source, category, created_at, updated_at, last_accessed_at)
                     VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (user_id, name, source, category, now, now, now),
            )
            list_id = int(cur.lastrowid)
            conn.executemany(
                "INSERT INTO list_items (list_id, position, display, normalized, created_at) VALUES (?, ?, ?, ?, ?)",
                [(list_id, pos, display, normalized, now) for pos, (display, normalized) in enumerate(items, start=1)],
            )
            row = conn.execute(f"SELECT {_LIST_COLUMNS} FROM word_lists WHERE id = ?", (list_id,)).fetchone()
            item_rows = conn.execute(
                f"SELECT {_ITEM_COLUMNS} FROM list_items WHERE list_id = ? ORDER BY position", (list_id,)
            ).fetchall()
        return _row_to_list(row, [_row_to_item(r) for r in item_rows])

    def count_lists(self, user_id: int) -> int:
        with get_conn() as conn:
            (count,) = conn.execute("SELECT COUNT(*) FROM word_lists WHERE user_id = ?", (user_id,)).fetchone()
        return int(count)

    def list_lists(self, user_id: int) -> List[WordList]:
        with get_conn() as conn:
            rows = conn.execute(
                f"""SELECT {_LIST_COLUMNS} FROM word_lists WHERE user_id = ?
                     ORDER BY COALESCE(last_accessed_at, created_at) DESC, id DESC""",
                (user_id,),
            ).fetchall()
        return [_row_to_list(r) for r in rows]

    def get_list(self, list_id: int, user_id: int, with_items: bool = True) -> Optional[WordList]:
        with get_conn() as conn:
            row = conn.execute(
                f"SELECT {_LIST_COLUMNS} FROM word_lists WHERE id = ? AND user_id = ?", (list_id, user_id)
            ).fetchone()
            if not row:
                return None
            items: List[sqlite3.Row] = []
            if with_items:
                items = conn.execute(
                    f"SELECT {_ITEM_COLUMNS} FROM list_items WHERE list_id = ? ORDER BY position", (list_id,)
                ).fetchall()
        return _row_to_list(row, [_row_to_item(r) for r in items])

    def touch_list(self, list_id: int, user_id: int) -> None:
        with get_conn() as conn:
            conn.execute(
                "UPDATE word_lists SET last_accessed_at = ? WHERE id = ? AND user_id = ?",
                (_now(), list_id, user_id),
            )

    def rename_list(self, list_id: int, user_id: int, name: str) -> bool:
        with get_conn() as conn:
            cur = conn.execute(
                "UPDATE word_lists SET name = ?, updated_at = ? WHERE id = ? AND user_id = ?",
                (name, _now(), list_id, user_id),
            )
            renamed = cur.rowcount > 0
        return renamed

    def delete_list(self, list_id: int, user_id: int) -> bool:
        with get_conn() as conn:
            cur = conn.execute("DELETE FROM word_lists WHERE id = ? AND user_id = ?", (list_id, user_id))
            deleted = cur.rowcount > 0
        return deleted

    # -------------------------
    # Items
    # -------------------------
    def get_item(self, list_id: int, item_id: int) -> Optional[WordListItem]:
        with get_conn() as conn:
            row = conn.execute(
                f"SELECT {_ITEM_COLUMNS} FROM list_items WHERE id = ? AND list_id = ?", (item_id, list_id)
            ).fetchone()
        return _row_to_item(row) if row else None

    def append_item(self, list_id: int, display: str, normalized: str, max_items: int) -> Optional[WordListItem]:
        """Add an item at position N+1. None if the list is locked or full."""
        with transaction() as conn:
            unlocked = conn.execute(f"SELECT {_UNLOCKED}", (list_id,)).fetchone()[0]
            (count,) = conn.execute("SELECT COUNT(*) FROM list_items WHERE list_id = ?", (list_id,)).fetchone()
            if not unlocked or count >= max_items:
                return None
            cur = conn.execute(
                "INSERT INTO list_items (list_id, position, display, normalized, created_at) VALUES (?, ?, ?, ?, ?)",
                (list_id, count + 1, display, normalized, _now()),
            )
            row = conn.execute(f"SELECT {_ITEM_COLUMNS} FROM list_items WHERE id = ?", (cur.lastrowid,)).fetchone()
            conn.execute("UPDATE word_lists SET updated_at = ? WHERE id = ?", (_now(), list_id))
        return _row_to_item(row)

    def edit_item(
        self,
        list_id: int,
        item_id: int,
        display: Optional[str] = None,
        normalized: Optional[str] = None,
        new_position: Optional[int] = None,
    ) -> Optional[WordListItem]:
        """Change an item's text and/or move it (clamped to 1..N) in one transaction.

        Returns None, with nothing written, if the list is locked or the item is missing.
        """
        with transaction() as conn:
            unlocked = conn.execute(f"SELECT {_UNLOCKED}", (list_id,)).fetchone()[0]
            row = conn.execute(
                "SELECT position FROM list_items WHERE id = ? AND list_id = ?", (item_id, list_id)
            ).fetchone()
            if not unlocked or not row:
                return None
            if display is not None:
                conn.execute(
                    "UPDATE list_items SET display = ?, normalized = ? WHERE id = ?",
                    (display, normalized, item_id),
                )
            if new_position is not None:
                (count,) = conn.execute("SELECT COUNT(*) FROM list_items WHERE list_id = ?", (list_id,)).fetchone()
                old_position = row["position"]
                target = max(1, min(new_position, count))
                if target != old_position:
                    conn.execute("UPDATE list_items SET position = 0 WHERE id = ?", (item_id,))
                    if target < old_position:
                        _shift_positions(conn, list_id, target, old_position - 1, 1)
                    else:
                        _shift_positions(conn, list_id, old_position + 1, target, -1)
                    conn.execute("UPDATE list_items SET position = ? WHERE id = ?", (target, item_id))
            conn.execute("UPDATE word_lists SET updated_at = ? WHERE id = ?", (_now(), list_id))
            edited = conn.execute(f"SELECT {_ITEM_COLUMNS} FROM list_items WHERE id = ?", (item_id,)).fetchone()
        return _row_to_item(edited)

    def delete_item(self, list_id: int, item_id: int) -> bool:
        """Delete an item and close the gap so positions stay 1..N."""
        with transaction() as conn:
            unlocked = conn.execute(f"SELECT {_UNLOCKED}", (list_id,)).fetchone()[0]
            row = conn.execute(
                "SELECT position FROM list_items WHERE id = ? AND list_id = ?", (item_id, list_id)
            ).fetchone()
            if not unlocked or not row:
                return False
            deleted_position = row["position"]
            conn.execute("DELETE FROM list_items WHERE id = ?", (item_id,))
            (max_position,) = conn.execute(
                "SELECT COALESCE(MAX(position), 0) FROM list_items WHERE list_id = ?", (list_id,)
            ).fetchone()
            if max_position > deleted_position:
                _shift_positions(conn, list_id, deleted_position + 1, max_position, -1)
            conn.execute("UPDATE word_lists SET updated_at = ? WHERE id = ?", (_now(), list_id))
        return True
