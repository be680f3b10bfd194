"""
Interaction Log — append-only audit of pipeline runs.

Every resolve-and-execute call produces one InteractionRecord.

Behavioral Contract:
- Append-only. No record is ever modified or deleted.
- Every record answers: What was asked? What was planned? Which tools ran?
  Which todos were touched? Did it fail, and at which stage?
- Queryable by scope, recency and failure.
"""

import json
import sqlite3
from typing import List, Optional

from todo_kernel.models.interaction import InteractionRecord


class InteractionLog:
    """
    Append-only interaction store.
    Prototype: SQLite. A shared deployment would point db_path at a file.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        """Create the interactions table if it doesn't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS interactions (
                id TEXT PRIMARY KEY,
                scope TEXT NOT NULL,
                success INTEGER NOT NULL DEFAULT 0,
                failure TEXT,
                duration_seconds REAL NOT NULL,
                record_json TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_interactions_scope ON interactions(scope)
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_interactions_success ON interactions(success)
        """)
        self._conn.commit()

    def append(self, record: InteractionRecord) -> InteractionRecord:
        """Append one record. Raises sqlite3.IntegrityError on a duplicate id."""
        self._conn.execute(
            """
            INSERT INTO interactions (
                id, scope, success, failure, duration_seconds, record_json, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                record.scope,
                int(record.success),
                record.failure,
                record.duration_seconds,
                json.dumps(record.model_dump(mode="json"), default=str),
                record.created_at.isoformat(),
            ),
        )
        self._conn.commit()
        return record

    def _deserialize(self, row: sqlite3.Row) -> InteractionRecord:
        return InteractionRecord.model_validate_json(row["record_json"])

    def get_by_id(self, record_id: str) -> Optional[InteractionRecord]:
        row = self._conn.execute(
            "SELECT record_json FROM interactions WHERE id = ?", (record_id,)
        ).fetchone()
        return self._deserialize(row) if row else None

    def query_by_scope(self, scope: str) -> List[InteractionRecord]:
        """All runs within one scope, oldest first."""
        rows = self._conn.execute(
            "SELECT record_json FROM interactions WHERE scope = ? ORDER BY rowid",
            (scope,),
        ).fetchall()
        return [self._deserialize(r) for r in rows]

    def query_recent(self, limit: int = 50) -> List[InteractionRecord]:
        """The most recent runs, returned oldest first."""
        rows = self._conn.execute(
            "SELECT record_json FROM interactions ORDER BY rowid DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [self._deserialize(r) for r in reversed(rows)]

    def query_failures(self, stage: Optional[str] = None) -> List[InteractionRecord]:
        """Runs that did not succeed, optionally narrowed to one failing stage."""
        if stage:
            rows = self._conn.execute(
                "SELECT record_json FROM interactions WHERE success = 0 "
                "AND failure = ? ORDER BY rowid",
                (stage,),
            ).fetchall()
        else:
            rows = self._conn.execute(
                "SELECT record_json FROM interactions WHERE success = 0 ORDER BY rowid"
            ).fetchall()
        return [self._deserialize(r) for r in rows]

    def count(self) -> int:
        """Total number of interaction records."""
        row = self._conn.execute("SELECT COUNT(*) as cnt FROM interactions").fetchone()
        return row["cnt"]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
