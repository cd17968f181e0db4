"""
SQLite Card Store: infrastructure adapter for the scheduling database.

Implements CardStore with one row per card identity. Rows are never
deleted: a record whose card text disappeared from every deck simply stays.
"""

import logging
import sqlite3
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from repeater.domain.exceptions import StoreError
from repeater.domain.models import CardIdentity, CardRecord
from repeater.domain.ports import CardStore

logger = logging.getLogger(__name__)

COLUMNS = (
    "card_hash",
    "added_at",
    "state",
    "stability",
    "difficulty",
    "due_date",
    "last_reviewed_at",
    "reps",
    "lapses",
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS cards (
    card_hash TEXT PRIMARY KEY,
    added_at TEXT,
    state TEXT NOT NULL,
    stability REAL NOT NULL,
    difficulty REAL NOT NULL,
    due_date TEXT,
    last_reviewed_at TEXT,
    reps INTEGER NOT NULL DEFAULT 0,
    lapses INTEGER NOT NULL DEFAULT 0
)
"""

UPSERT_SQL = (
    f"INSERT INTO cards ({', '.join(COLUMNS)}) "
    f"VALUES ({', '.join(':' + c for c in COLUMNS)}) "
    "ON CONFLICT(card_hash) DO UPDATE SET "
    + ", ".join(f"{c} = excluded.{c}" for c in COLUMNS if c not in ("card_hash", "added_at"))
)

# SQLite's default limit on bound parameters is 999 on older builds.
FETCH_CHUNK = 500


class SqliteCardStore(CardStore):
    """
    Card records in a local SQLite file.

    Usable as a context manager; the connection opens lazily on first use.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None

    def __enter__(self) -> "SqliteCardStore":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def connect(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn
        try:
            if str(self.db_path) != ":memory:":
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path))
            conn.row_factory = sqlite3.Row
            conn.execute(SCHEMA)
            conn.commit()
        except (sqlite3.Error, OSError) as e:
            raise StoreError(f"Could not open card store at {self.db_path}: {e}") from e
        logger.debug(f"[store] Opened {self.db_path}")
        self._conn = conn
        return conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def fetch_rows(self, identities: Iterable[CardIdentity]) -> dict[CardIdentity, dict[str, Any]]:
        ids = list(dict.fromkeys(identities))
        rows: dict[CardIdentity, dict[str, Any]] = {}
        conn = self.connect()
        try:
            for i in range(0, len(ids), FETCH_CHUNK):
                chunk = ids[i : i + FETCH_CHUNK]
                placeholders = ", ".join("?" for _ in chunk)
                cursor = conn.execute(
                    f"SELECT {', '.join(COLUMNS)} FROM cards WHERE card_hash IN ({placeholders})",
                    chunk,
                )
                for row in cursor:
                    rows[row["card_hash"]] = dict(row)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read card records: {e}") from e
        return rows

    def exists(self, identity: CardIdentity) -> bool:
        conn = self.connect()
        try:
            cursor = conn.execute("SELECT 1 FROM cards WHERE card_hash = ?", (identity,))
            return cursor.fetchone() is not None
        except sqlite3.Error as e:
            raise StoreError(f"Failed to look up card {identity[:12]}: {e}") from e

    def upsert(self, record: CardRecord) -> None:
        conn = self.connect()
        try:
            with conn:
                conn.execute(UPSERT_SQL, record.to_row())
        except sqlite3.Error as e:
            raise StoreError(f"Failed to save card {record.identity[:12]}: {e}") from e

    def upsert_many(self, records: Iterable[CardRecord]) -> int:
        rows = [record.to_row() for record in records]
        if not rows:
            return 0
        conn = self.connect()
        try:
            with conn:
                conn.executemany(UPSERT_SQL, rows)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to save {len(rows)} card records: {e}") from e
        return len(rows)

    def count(self) -> int:
        conn = self.connect()
        try:
            return conn.execute("SELECT COUNT(*) FROM cards").fetchone()[0]
        except sqlite3.Error as e:
            raise StoreError(f"Failed to count card records: {e}") from e
