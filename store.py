# store.py
from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import closing
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from utils import mask_connection_string, normalize_score

try:
    import psycopg
    from psycopg.rows import dict_row
except Exception:
    psycopg = None  # allows SQLite / in-memory mode without psycopg installed

logger = logging.getLogger(__name__)

MEMORY_CAPACITY = 10
CONNECT_TIMEOUT_SECONDS = 5


class StoreFault(RuntimeError):
    """An operation against an available durable store failed."""


# =========================
# Models
# =========================

@dataclass
class ScoreEntry:
    handle: str
    score: Union[int, float]
    recorded_at: str  # ISO string

    def to_public(self) -> dict:
        return {"handle": self.handle, "score": normalize_score(self.score)}


# =========================
# Stores
# =========================

class ScoreStore:
    durable = False

    def top(self, limit: int) -> List[ScoreEntry]:
        raise NotImplementedError

    def submit(self, handle: str, score, recorded_at: str) -> bool:
        """Insert, or replace only if higher. Returns True if the store changed."""
        raise NotImplementedError


class MemoryScoreStore(ScoreStore):
    """
    Process-local fallback: one ordered list, best first, capped at
    MEMORY_CAPACITY entries after every submission. Lost on restart.
    """

    durable = False

    def __init__(self, capacity: int = MEMORY_CAPACITY):
        self.capacity = capacity
        self._entries: List[ScoreEntry] = []
        self._lock = threading.Lock()

    def top(self, limit: int) -> List[ScoreEntry]:
        with self._lock:
            return [
                ScoreEntry(e.handle, e.score, e.recorded_at)
                for e in self._entries[:limit]
            ]

    def submit(self, handle: str, score, recorded_at: str) -> bool:
        with self._lock:
            changed = False
            existing = next((e for e in self._entries if e.handle == handle), None)

            if existing is None:
                self._entries.append(ScoreEntry(handle, score, recorded_at))
                changed = True
            elif score > existing.score:
                existing.score = score
                existing.recorded_at = recorded_at
                changed = True

            # stable sort: ties keep their current order
            self._entries.sort(key=lambda e: e.score, reverse=True)
            del self._entries[self.capacity:]
            return changed


class SqlScoreStore(ScoreStore):
    """
    Durable store: one row per handle.

    The upsert only rewrites a row when the new score is strictly higher,
    so two concurrent submissions for one handle can't lose an improvement.
    """

    durable = True
    error_types: tuple = ()

    def __init__(self, database_url: str):
        self.database_url = database_url

    def _connect(self):
        raise NotImplementedError

    def init_db(self) -> None:
        with closing(self._connect()) as conn:
            conn.execute(self.create_sql)
            conn.commit()

    def top(self, limit: int) -> List[ScoreEntry]:
        try:
            with closing(self._connect()) as conn:
                rows = conn.execute(self.top_sql, (int(limit),)).fetchall()
        except self.error_types as e:
            raise StoreFault(f"leaderboard query failed: {e}") from e

        return [
            ScoreEntry(handle=r["handle"], score=r["score"], recorded_at=r["date"])
            for r in rows
        ]

    def submit(self, handle: str, score, recorded_at: str) -> bool:
        try:
            with closing(self._connect()) as conn:
                cur = conn.execute(self.upsert_sql, (handle, score, recorded_at))
                changed = cur.rowcount == 1
                conn.commit()
                return changed
        except self.error_types as e:
            raise StoreFault(f"saving score for {handle!r} failed: {e}") from e


class PostgresScoreStore(SqlScoreStore):
    create_sql = """
        CREATE TABLE IF NOT EXISTS scores (
            handle TEXT PRIMARY KEY,
            score DOUBLE PRECISION NOT NULL,
            date TEXT NOT NULL
        )
    """
    top_sql = """
        SELECT handle, score, date
        FROM scores
        ORDER BY score DESC, date ASC
        LIMIT %s
    """
    upsert_sql = """
        INSERT INTO scores (handle, score, date)
        VALUES (%s, %s, %s)
        ON CONFLICT (handle)
        DO UPDATE SET
            score = EXCLUDED.score,
            date = EXCLUDED.date
        WHERE EXCLUDED.score > scores.score
    """

    def __init__(self, database_url: str):
        if psycopg is None:
            raise RuntimeError("psycopg is not installed")
        super().__init__(database_url)
        self.error_types = (psycopg.Error,)

    def _connect(self):
        return psycopg.connect(
            self.database_url,
            row_factory=dict_row,
            connect_timeout=CONNECT_TIMEOUT_SECONDS,
        )


class SqliteScoreStore(SqlScoreStore):
    """Local development stand-in for Postgres; same table, same rules."""

    # ints wider than 64 bits raise OverflowError on bind
    error_types = (sqlite3.Error, OverflowError)

    create_sql = """
        CREATE TABLE IF NOT EXISTS scores (
            handle TEXT PRIMARY KEY,
            score NUMERIC NOT NULL,
            date TEXT NOT NULL
        )
    """
    top_sql = """
        SELECT handle, score, date
        FROM scores
        ORDER BY score DESC, date ASC
        LIMIT ?
    """
    upsert_sql = """
        INSERT INTO scores (handle, score, date)
        VALUES (?, ?, ?)
        ON CONFLICT (handle)
        DO UPDATE SET
            score = excluded.score,
            date = excluded.date
        WHERE excluded.score > scores.score
    """

    def __init__(self, database_url: str):
        super().__init__(database_url)
        self.db_path = Path(database_url[len("sqlite:///"):])

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, timeout=CONNECT_TIMEOUT_SECONDS)
        conn.row_factory = sqlite3.Row
        return conn


# =========================
# Persistence selector
# =========================

def _durable_store_for(database_url: str) -> SqlScoreStore:
    if database_url.startswith(("postgres://", "postgresql://")):
        return PostgresScoreStore(database_url)
    if database_url.startswith("sqlite:///") and len(database_url) > len("sqlite:///"):
        return SqliteScoreStore(database_url)
    raise ValueError(f"unsupported database URL scheme: {database_url.split(':', 1)[0]!r}")


def select_store(database_url: Optional[str]) -> ScoreStore:
    """
    Decide once, at startup, where scores live.

    Returns the durable store if it can be reached and its table created,
    otherwise a fresh in-memory store. Never raises and never retries:
    a database that comes up later is ignored until the process restarts.
    """
    masked = mask_connection_string(database_url or "")
    try:
        if not database_url:
            raise ValueError("no database URL configured")
        store = _durable_store_for(database_url)
        store.init_db()
    except Exception as e:
        logger.warning("Leaderboard database connection failed. Running in IN-MEMORY mode.")
        logger.warning("Scores will NOT be saved to the database.")
        logger.warning(f"Error details: {e}")
        logger.warning(f"Connection string (masked): {masked}")
        return MemoryScoreStore()

    logger.info(f"Connected to leaderboard database at {masked}")
    return store
