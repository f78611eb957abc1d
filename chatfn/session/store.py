"""
SQLite-backed conversation store.

Uses ``aiosqlite`` for async database access with a write lock to serialise
mutations (SQLite only supports one writer at a time in WAL mode).

Each row holds a lossless snapshot of one :class:`ChatContext` keyed by its
session id.  Schema is version-tracked via a ``schema_version`` table and
migrations are applied automatically on ``init()``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from chatfn.session.context import ChatContext

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Schema management
# ---------------------------------------------------------------------------

SCHEMA_VERSION = 1

MIGRATIONS: dict[int, list[str]] = {
    1: [
        """CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER NOT NULL
        )""",
        """CREATE TABLE IF NOT EXISTS contexts (
            session_id TEXT PRIMARY KEY,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            model TEXT NOT NULL,
            message_count INTEGER NOT NULL DEFAULT 0,
            metadata TEXT NOT NULL DEFAULT '{}',
            payload TEXT NOT NULL
        )""",
        """CREATE INDEX IF NOT EXISTS idx_contexts_updated ON contexts(updated_at)""",
    ],
}


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class ContextStore:
    """
    Async SQLite store for saved conversations.

    Usage::

        store = ContextStore("~/.chatfn/history.db")
        await store.init()
        await store.save(session_id, context)
        restored = await store.load(session_id)
        await store.close()
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = Path(db_path).expanduser().resolve()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._write_lock = asyncio.Lock()
        self._db: aiosqlite.Connection | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init(self) -> None:
        """Open the database and ensure the schema is up to date."""
        self._db = await aiosqlite.connect(str(self.db_path))
        await self._db.execute("PRAGMA journal_mode=WAL")
        await self._run_migrations()

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    # ------------------------------------------------------------------
    # Migration runner
    # ------------------------------------------------------------------

    async def _get_schema_version(self) -> int:
        """Return the current schema version, or 0 if not initialised."""
        assert self._db is not None
        cursor = await self._db.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
        )
        row = await cursor.fetchone()
        if row is None:
            return 0
        cursor = await self._db.execute("SELECT version FROM schema_version LIMIT 1")
        row = await cursor.fetchone()
        if row is None:
            return 0
        return int(row[0])

    async def _set_schema_version(self, version: int) -> None:
        assert self._db is not None
        cursor = await self._db.execute("SELECT COUNT(*) FROM schema_version")
        row = await cursor.fetchone()
        assert row is not None
        if row[0] == 0:
            await self._db.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (version,)
            )
        else:
            await self._db.execute(
                "UPDATE schema_version SET version = ?", (version,)
            )

    async def _run_migrations(self) -> None:
        """Apply any pending migrations sequentially."""
        assert self._db is not None
        current = await self._get_schema_version()
        if current >= SCHEMA_VERSION:
            return

        for version in range(current + 1, SCHEMA_VERSION + 1):
            stmts = MIGRATIONS.get(version)
            if stmts is None:
                raise RuntimeError(
                    f"Missing migration for schema version {version}"
                )
            for stmt in stmts:
                await self._db.execute(stmt)
            await self._set_schema_version(version)
            logger.info("Applied context store migration %d", version)

        await self._db.commit()

    async def get_schema_version(self) -> int:
        """Public accessor for the current schema version."""
        return await self._get_schema_version()

    # ------------------------------------------------------------------
    # Contexts
    # ------------------------------------------------------------------

    async def save(
        self,
        session_id: str,
        context: ChatContext,
        metadata: dict | None = None,
    ) -> None:
        """
        Insert or replace the snapshot for *session_id*.

        ``created_at`` is kept from the first save; *metadata* replaces the
        stored metadata only when given.
        """
        assert self._db is not None
        now = datetime.now(timezone.utc).isoformat()
        payload = json.dumps(context.to_dict())

        async with self._write_lock:
            await self._db.execute(
                """INSERT INTO contexts
                   (session_id, created_at, updated_at, model, message_count, metadata, payload)
                   VALUES (?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(session_id) DO UPDATE SET
                       updated_at = excluded.updated_at,
                       model = excluded.model,
                       message_count = excluded.message_count,
                       metadata = CASE WHEN ? THEN excluded.metadata ELSE contexts.metadata END,
                       payload = excluded.payload""",
                (
                    session_id,
                    now,
                    now,
                    context.model,
                    len(context.messages),
                    json.dumps(metadata or {}),
                    payload,
                    metadata is not None,
                ),
            )
            await self._db.commit()

    async def load(self, session_id: str) -> ChatContext | None:
        """Return the saved context, or ``None`` if the session is unknown."""
        assert self._db is not None
        cursor = await self._db.execute(
            "SELECT payload FROM contexts WHERE session_id = ?", (session_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return ChatContext.from_dict(json.loads(row[0]))

    async def get_session(self, session_id: str) -> dict | None:
        """Return session summary dict, or ``None`` if not found."""
        assert self._db is not None
        cursor = await self._db.execute(
            """SELECT session_id, created_at, updated_at, model, message_count, metadata
               FROM contexts WHERE session_id = ?""",
            (session_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_summary(row) if row is not None else None

    async def list_sessions(self) -> list[dict]:
        """Return all saved sessions, most recently updated first."""
        assert self._db is not None
        cursor = await self._db.execute(
            """SELECT session_id, created_at, updated_at, model, message_count, metadata
               FROM contexts ORDER BY updated_at DESC, rowid DESC"""
        )
        rows = await cursor.fetchall()
        return [self._row_to_summary(row) for row in rows]

    async def delete(self, session_id: str) -> bool:
        """Delete a saved session.  Returns ``True`` if a row was removed."""
        assert self._db is not None
        async with self._write_lock:
            cursor = await self._db.execute(
                "DELETE FROM contexts WHERE session_id = ?", (session_id,)
            )
            await self._db.commit()
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_summary(row) -> dict:
        return {
            "session_id": row[0],
            "created_at": row[1],
            "updated_at": row[2],
            "model": row[3],
            "message_count": row[4],
            "metadata": json.loads(row[5]),
        }
