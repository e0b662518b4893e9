"""Append-only journal of narrative events (SQLite).

Screens and timers run synchronously, so they only ``note`` events into an
in-memory buffer. The async driver calls ``flush`` to write them out.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS narrative_events (
    id TEXT PRIMARY KEY,
    session TEXT,
    event_type TEXT,     -- "stage_fired" | "puzzle_completed" | "navigation" | "signal_consumed" | "reset"
    subject TEXT,
    created_at TEXT,
    metadata TEXT        -- JSON blob
);

CREATE INDEX IF NOT EXISTS idx_narrative_events_type
    ON narrative_events (event_type, created_at);
"""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class JournalEntry:
    event_type: str
    subject: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: str = field(default_factory=_now_iso)


class EventJournal:
    """History of what happened in a session, for status views and debugging."""

    def __init__(self, db_path: str | Path, session: str = "default"):
        self._path = Path(db_path)
        self._session = session
        self._db: aiosqlite.Connection | None = None
        self._pending: list[JournalEntry] = []

    async def open(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(self._path))
        await self._db.executescript(_SCHEMA)
        await self._db.commit()
        logger.debug("Event journal ready at %s", self._path)

    async def close(self) -> None:
        if self._db:
            await self.flush()
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> EventJournal:
        await self.open()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ── Buffered writes ─────────────────────────────────────────

    def note(self, event_type: str, subject: str = "", **metadata: Any) -> None:
        self._pending.append(JournalEntry(event_type, subject, metadata))

    @property
    def pending(self) -> list[JournalEntry]:
        return list(self._pending)

    async def flush(self) -> int:
        if not self._pending or self._db is None:
            return 0
        batch, self._pending = self._pending, []
        await self._db.executemany(
            "INSERT INTO narrative_events (id, session, event_type, subject, created_at, metadata) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            [
                (
                    str(uuid.uuid4()),
                    self._session,
                    entry.event_type,
                    entry.subject,
                    entry.created_at,
                    json.dumps(entry.metadata),
                )
                for entry in batch
            ],
        )
        await self._db.commit()
        return len(batch)

    # ── Queries ─────────────────────────────────────────────────

    async def get_recent_events(self, limit: int = 20, event_type: str = "") -> list[dict]:
        query = "SELECT * FROM narrative_events WHERE session = ?"
        params: list[Any] = [self._session]
        if event_type:
            query += " AND event_type = ?"
            params.append(event_type)
        query += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
        params.append(limit)

        cursor = await self._db.execute(query, tuple(params))
        cols = [d[0] for d in cursor.description]
        rows = await cursor.fetchall()
        events = [dict(zip(cols, row)) for row in rows]
        for event in events:
            event["metadata"] = json.loads(event["metadata"] or "{}")
        return events

    async def count_events(self, event_type: str) -> int:
        cursor = await self._db.execute(
            "SELECT COUNT(*) FROM narrative_events WHERE session = ? AND event_type = ?",
            (self._session, event_type),
        )
        row = await cursor.fetchone()
        return int(row[0]) if row else 0
