"""SQLite storage for ingested events."""

import json
import uuid
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import AppEvent


class IEventStore(Protocol):
    """Persistent store of ingested events (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    async def save_events(self, user_id: str, events: list[AppEvent]) -> int:
        """Insert events, skipping duplicate idempotency keys. Return rows inserted."""
        ...

    async def get_events(
        self,
        user_id: str,
        event_type: str | None = None,
        session_id: str | None = None,
        limit: int = 100,
    ) -> list[AppEvent]:
        """Get a user's events (newest first) with optional filters."""
        ...

    async def count_events(self, user_id: str | None = None) -> int:
        """Count stored events, optionally for one user."""
        ...

    async def clear(self) -> None:
        """Clear all data."""
        ...


class EventStore:
    """SQLite event store implementation."""

    def __init__(self, db_path: str | Path | None = None):
        self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        if str(self._db_path) != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def save_events(self, user_id: str, events: list[AppEvent]) -> int:
        """Insert events, skipping duplicate idempotency keys. Return rows inserted."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        inserted = 0
        for event in events:
            cursor = await self._conn.execute(
                """
                INSERT OR IGNORE INTO app_events
                (id, event_id, user_id, session_id, correlation_id, event_type, source, ts,
                 idempotency_key, schema_version, privacy_level, payload, context)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(uuid.uuid4()),
                    event.event_id,
                    user_id,
                    event.session_id,
                    event.correlation_id,
                    event.event_type,
                    event.source,
                    event.ts,
                    event.idempotency_key or event.event_id,
                    event.schema_version,
                    event.privacy_level,
                    json.dumps(event.payload),
                    json.dumps(event.context),
                ),
            )
            inserted += max(cursor.rowcount, 0)

        await self._conn.commit()
        return inserted

    async def get_events(
        self,
        user_id: str,
        event_type: str | None = None,
        session_id: str | None = None,
        limit: int = 100,
    ) -> list[AppEvent]:
        """Get a user's events (newest first) with optional filters."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        conditions = ["user_id = ?"]
        params: list = [user_id]

        if event_type:
            conditions.append("event_type = ?")
            params.append(event_type)
        if session_id:
            conditions.append("session_id = ?")
            params.append(session_id)

        query = f"""
            SELECT event_id, event_type, ts, source, session_id, correlation_id,
                   idempotency_key, schema_version, privacy_level, payload, context
            FROM app_events
            WHERE {' AND '.join(conditions)}
            ORDER BY ts DESC, rowid DESC
            LIMIT ?
        """
        params.append(limit)

        cursor = await self._conn.execute(query, params)
        rows = await cursor.fetchall()

        return [
            AppEvent(
                event_id=row[0],
                event_type=row[1],
                ts=row[2],
                source=row[3],
                session_id=row[4],
                correlation_id=row[5],
                idempotency_key=row[6],
                schema_version=row[7],
                privacy_level=row[8],
                payload=json.loads(row[9]),
                context=json.loads(row[10]),
            )
            for row in rows
        ]

    async def count_events(self, user_id: str | None = None) -> int:
        """Count stored events, optionally for one user."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        if user_id:
            cursor = await self._conn.execute(
                "SELECT COUNT(*) FROM app_events WHERE user_id = ?", (user_id,)
            )
        else:
            cursor = await self._conn.execute("SELECT COUNT(*) FROM app_events")
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def clear(self) -> None:
        """Clear all data."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        await self._conn.execute("DELETE FROM app_events")
        await self._conn.commit()
