"""Apply journal: an audit trail of every reconciliation action.

Each ``packsync sync`` run is a session. Every fetch, toggle, removal and
config copy performed during the session becomes one row, so a user can see
afterwards exactly what was written into an instance and what failed.

Database Schema:
---------------
```
journal (
    id             INTEGER PRIMARY KEY,
    session_id     TEXT NOT NULL,   -- one per sync run
    timestamp      TEXT NOT NULL,   -- ISO format, UTC
    modpack_id     TEXT NOT NULL,
    instance_path  TEXT NOT NULL,
    action         TEXT NOT NULL,   -- fetch, toggle, remove, config
    bucket         TEXT NOT NULL,   -- mod, resourcepack, shader, config
    target         TEXT NOT NULL,   -- path relative to the instance
    mod_id         TEXT,
    success        BOOLEAN NOT NULL,
    error_message  TEXT,
    details        TEXT             -- JSON
)
```
"""

import json
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from types import TracebackType
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class JournalEntry:
    """Entry in the apply journal."""

    id: int | None
    session_id: str
    timestamp: str
    modpack_id: str
    instance_path: str
    action: str
    bucket: str
    target: str
    mod_id: str | None
    success: bool
    error_message: str | None
    details: str | None  # JSON


class ApplyJournal:
    """SQLite-backed journal of reconciliation actions, grouped by session."""

    def __init__(self, db_path: str | Path) -> None:
        """
        Args:
            db_path: Path to the SQLite database file (":memory:" for tests)
        """
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn: sqlite3.Connection = self._initialize_db()

    def _initialize_db(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS journal (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                session_id TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                modpack_id TEXT NOT NULL,
                instance_path TEXT NOT NULL,
                action TEXT NOT NULL,
                bucket TEXT NOT NULL,
                target TEXT NOT NULL,
                mod_id TEXT,
                success BOOLEAN NOT NULL,
                error_message TEXT,
                details TEXT
            )
        """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_journal_session
            ON journal(session_id)
        """
        )
        conn.commit()
        return conn

    def record_action(
        self,
        session_id: str,
        modpack_id: str,
        instance_path: str,
        action: str,
        bucket: str,
        target: str,
        success: bool,
        mod_id: str | None = None,
        error_message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> int:
        """
        Record one action.

        Returns:
            Row id of the inserted entry
        """
        cursor = self.conn.execute(
            """
            INSERT INTO journal (
                session_id, timestamp, modpack_id, instance_path, action,
                bucket, target, mod_id, success, error_message, details
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                session_id,
                datetime.now(timezone.utc).isoformat(),
                modpack_id,
                instance_path,
                action,
                bucket,
                target,
                mod_id,
                success,
                error_message,
                json.dumps(details) if details else None,
            ),
        )
        self.conn.commit()
        entry_id = cursor.lastrowid
        assert entry_id is not None, "INSERT should always set lastrowid"
        return entry_id

    def get_session_entries(self, session_id: str) -> list[JournalEntry]:
        cursor = self.conn.execute(
            "SELECT * FROM journal WHERE session_id = ? ORDER BY id ASC",
            (session_id,),
        )
        return [self._row_to_entry(row) for row in cursor.fetchall()]

    def get_sessions(self, limit: int = 10, modpack_id: str | None = None) -> list[dict[str, Any]]:
        """
        Recent sessions with per-session counts, newest first.

        Args:
            limit: Maximum number of sessions to return
            modpack_id: Restrict to sessions for one modpack
        """
        where = "WHERE modpack_id = ?" if modpack_id else ""
        params: tuple[Any, ...] = (modpack_id, limit) if modpack_id else (limit,)
        query = f"""
            SELECT
                session_id,
                modpack_id,
                instance_path,
                MIN(timestamp) as start_time,
                MAX(timestamp) as end_time,
                COUNT(*) as total_actions,
                SUM(CASE WHEN success THEN 1 ELSE 0 END) as successful,
                SUM(CASE WHEN NOT success THEN 1 ELSE 0 END) as failed
            FROM journal
            {where}
            GROUP BY session_id
            ORDER BY start_time DESC
            LIMIT ?
        """
        cursor = self.conn.execute(query, params)
        return [dict(row) for row in cursor.fetchall()]

    def _row_to_entry(self, row: sqlite3.Row) -> JournalEntry:
        return JournalEntry(
            id=row["id"],
            session_id=row["session_id"],
            timestamp=row["timestamp"],
            modpack_id=row["modpack_id"],
            instance_path=row["instance_path"],
            action=row["action"],
            bucket=row["bucket"],
            target=row["target"],
            mod_id=row["mod_id"],
            success=bool(row["success"]),
            error_message=row["error_message"],
            details=row["details"],
        )

    def close(self) -> None:
        if self.conn:
            self.conn.close()

    def __enter__(self) -> "ApplyJournal":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
