from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from vocab_lists.config import settings

logger = logging.getLogger(__name__)


class PersistenceFailure(Exception):
    """Transient storage error (locked database, I/O). Callers may retry."""


def _connect(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path, timeout=10.0)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn

@contextmanager
def get_conn() -> Iterator[sqlite3.Connection]:
    try:
        conn = _connect(settings.DB_PATH)
    except sqlite3.OperationalError as e:
        raise PersistenceFailure(str(e)) from e
    try:
        yield conn
        conn.commit()
    except sqlite3.OperationalError as e:
        conn.rollback()
        logger.warning("Storage error, rolled back: %s", e)
        raise PersistenceFailure(str(e)) from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

@contextmanager
def transaction() -> Iterator[sqlite3.Connection]:
    """Write transaction that takes the database write lock up front.

    Used where a read and the following write must not interleave with
    another writer (quota guard, test completion, position renumbering).
    """
    try:
        conn = _connect(settings.DB_PATH)
    except sqlite3.OperationalError as e:
        raise PersistenceFailure(str(e)) from e
    conn.isolation_level = None
    try:
        conn.execute("BEGIN IMMEDIATE;")
        yield conn
        conn.execute("COMMIT;")
    except sqlite3.OperationalError as e:
        if conn.in_transaction:
            conn.execute("ROLLBACK;")
        logger.warning("Storage error, rolled back: %s", e)
        raise PersistenceFailure(str(e)) from e
    except Exception:
        if conn.in_transaction:
            conn.execute("ROLLBACK;")
        raise
    finally:
        conn.close()

def init_db() -> None:
    settings.DB_PATH.parent.mkdir(parents=True, exist_ok=True)

    with get_conn() as conn:
        # ---- Users ----
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT NOT NULL UNIQUE,
                password_hash TEXT NOT NULL,
                created_at TEXT NOT NULL
            );
            """
        )

        # ---- Sessions ----
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS sessions (
                token TEXT PRIMARY KEY,
                user_id INTEGER NOT NULL,
                created_at TEXT NOT NULL,
                expires_at TEXT NOT NULL,
                FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
            );
            """
        )

        # ---- Word lists ----
        # first_tested_at is the only lock marker: NULL = editable, set = locked for good.
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS word_lists (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                name TEXT NOT NULL,
                source TEXT NOT NULL CHECK (source IN ('manual', 'ai')),
                category TEXT,
                first_tested_at TEXT,
                last_score INTEGER,
                last_correct INTEGER,
                last_wrong INTEGER,
                last_tested_at TEXT,
                last_accessed_at TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                CHECK (source = 'ai' OR category IS NULL),
                FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
            );
            """
        )

        # ---- Items ----
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS list_items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                list_id INTEGER NOT NULL,
                position INTEGER NOT NULL,
                display TEXT NOT NULL,
                normalized TEXT NOT NULL,
                created_at TEXT NOT NULL,
                UNIQUE(list_id, position),
                FOREIGN KEY(list_id) REFERENCES word_lists(id) ON DELETE CASCADE
            );
            """
        )

        # ---- Tests (immutable history) ----
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS tests (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                list_id INTEGER NOT NULL,
                correct INTEGER NOT NULL CHECK (correct >= 0),
                wrong INTEGER NOT NULL CHECK (wrong >= 0),
                items_count INTEGER NOT NULL CHECK (items_count = correct + wrong AND items_count > 0),
                score INTEGER NOT NULL CHECK (score BETWEEN 0 AND 100),
                completed_at TEXT NOT NULL,
                created_at TEXT NOT NULL,
                FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE,
                FOREIGN KEY(list_id) REFERENCES word_lists(id) ON DELETE CASCADE
            );
            """
        )

        # ---- Daily AI usage ----
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS ai_usage_daily (
                user_id INTEGER NOT NULL,
                day_utc TEXT NOT NULL,
                used INTEGER NOT NULL DEFAULT 0 CHECK (used >= 0),
                updated_at TEXT NOT NULL,
                PRIMARY KEY(user_id, day_utc),
                FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
            );
            """
        )

        # ---- Test runs (server-side session state) ----
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS test_runs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                list_id INTEGER NOT NULL,
                state_json TEXT NOT NULL,
                version INTEGER NOT NULL DEFAULT 0,
                test_id INTEGER,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE,
                FOREIGN KEY(list_id) REFERENCES word_lists(id) ON DELETE CASCADE,
                FOREIGN KEY(test_id) REFERENCES tests(id) ON DELETE SET NULL
            );
            """
        )
