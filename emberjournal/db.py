# -*- coding: utf-8 -*-
"""SQLite schema and async record store for Ember Journal.

The store only sees :class:`~emberjournal.models.PersistedRecord` values;
it never encrypts or decrypts anything.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Protocol
import json
import logging

import aiosqlite

from .errors import RecordStoreError
from .models import PersistedRecord

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# Store interface
# ---------------------------------------------------------------------

class RecordStore(Protocol):
    """Keyed record storage queried by owner. Failures raise RecordStoreError."""

    async def insert(self, record: PersistedRecord) -> None:
        ...

    async def select_by_owner(self, user_id: str) -> List[PersistedRecord]:
        ...

    async def select_by_id(self, user_id: str, entry_id: str) -> Optional[PersistedRecord]:
        ...


# ---------------------------------------------------------------------
# Base schema (new installs)
# ---------------------------------------------------------------------

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS journal_entries (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    date        TEXT NOT NULL,

    -- Envelope or legacy plaintext
    title       TEXT NOT NULL,
    content     TEXT NOT NULL,
    insights    TEXT NOT NULL DEFAULT '[]',

    duration    TEXT,
    mood_tags   TEXT NOT NULL DEFAULT '[]',
    transcript  TEXT,

    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_entries_user_date ON journal_entries(user_id, date);
"""

SELECT_COLUMNS = """
    id, user_id, date, title, content, insights,
    duration, mood_tags, transcript, created_at, updated_at
"""


# ---------------------------------------------------------------------
# Migrations (existing installs)
# ---------------------------------------------------------------------

async def _column_exists(db: aiosqlite.Connection, table: str, column: str) -> bool:
    """Return True if `column` is present in `table`."""
    cur = await db.execute(f"PRAGMA table_info({table})")
    rows = await cur.fetchall()
    await cur.close()
    # PRAGMA table_info columns: cid, name, type, notnull, default_value, pk
    return any(len(r) >= 2 and r[1] == column for r in rows)


async def migrate_db(db_path: str) -> List[str]:
    """Idempotent migrations for databases that predate later columns.

    Returns the statements that were applied.
    """
    async with aiosqlite.connect(db_path) as db:
        statements = []
        if not await _column_exists(db, "journal_entries", "transcript"):
            statements.append("ALTER TABLE journal_entries ADD COLUMN transcript TEXT;")
        if not await _column_exists(db, "journal_entries", "duration"):
            statements.append("ALTER TABLE journal_entries ADD COLUMN duration TEXT;")
        if not await _column_exists(db, "journal_entries", "updated_at"):
            statements.append(
                "ALTER TABLE journal_entries ADD COLUMN updated_at TEXT NOT NULL DEFAULT '';"
            )

        for stmt in statements:
            await db.execute(stmt)

        if statements:
            await db.commit()
            logger.info("Applied %d migration(s) to %s", len(statements), db_path)
    return statements


# ---------------------------------------------------------------------
# Row conversion
# ---------------------------------------------------------------------

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

def _load_list(raw: Optional[str]) -> List[str]:
    """Decode a JSON list column; a non-JSON value becomes a one-item list."""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        logger.warning("List column is not JSON; keeping raw value")
        return [raw]
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)]

def _row_to_record(row: aiosqlite.Row) -> PersistedRecord:
    return PersistedRecord(
        id=row["id"],
        user_id=row["user_id"],
        date=row["date"],
        title=row["title"],
        content=row["content"],
        insights=_load_list(row["insights"]),
        mood_tags=_load_list(row["mood_tags"]),
        duration=row["duration"],
        transcript=row["transcript"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


# ---------------------------------------------------------------------
# SQLite store
# ---------------------------------------------------------------------

class SqliteRecordStore:
    """RecordStore backed by a local SQLite file, one connection per call."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path

    async def init(self) -> None:
        """Create tables if they don't exist and run lightweight migrations."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.executescript(SCHEMA_SQL)
                await db.commit()
            await migrate_db(self.db_path)
        except aiosqlite.Error as exc:
            raise RecordStoreError(f"Could not initialize {self.db_path}") from exc

    async def insert(self, record: PersistedRecord) -> None:
        """Insert a new record; an existing id is rejected."""
        now = _now()
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    """
                    INSERT INTO journal_entries (
                        id, user_id, date,
                        title, content, insights,
                        duration, mood_tags, transcript,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.id,
                        record.user_id,
                        record.date,
                        record.title,
                        record.content,
                        json.dumps(record.insights),
                        record.duration,
                        json.dumps(record.mood_tags),
                        record.transcript,
                        now,
                        now,
                    ),
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise RecordStoreError(f"Insert of entry {record.id} failed: {exc}") from exc

    async def select_by_owner(self, user_id: str) -> List[PersistedRecord]:
        """Return all records owned by *user_id*, newest date first."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                cur = await db.execute(
                    f"""
                    SELECT {SELECT_COLUMNS}
                      FROM journal_entries
                     WHERE user_id = ?
                     ORDER BY date DESC
                    """,
                    (user_id,),
                )
                rows = await cur.fetchall()
                await cur.close()
        except aiosqlite.Error as exc:
            raise RecordStoreError(f"Listing entries failed: {exc}") from exc
        return [_row_to_record(r) for r in rows]

    async def select_by_id(self, user_id: str, entry_id: str) -> Optional[PersistedRecord]:
        """Return the record with *entry_id* owned by *user_id*, or None."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                cur = await db.execute(
                    f"""
                    SELECT {SELECT_COLUMNS}
                      FROM journal_entries
                     WHERE id = ? AND user_id = ?
                    """,
                    (entry_id, user_id),
                )
                row = await cur.fetchone()
                await cur.close()
        except aiosqlite.Error as exc:
            raise RecordStoreError(f"Fetching entry {entry_id} failed: {exc}") from exc
        return _row_to_record(row) if row else None
