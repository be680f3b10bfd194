"""
Todo Store — durable record storage behind the pipeline.

Written by: Executor only
Read by: ContentMatcher, Validator, Verifier

Behavioral Contract:
- Every read and write is scoped.
- Point lookups return None for an absent record; exceptions mean the store
  itself failed, never that the record is missing.
- Two text-search primitives: lexical (substring) and similarity (trigram).
"""

import json
import re
import sqlite3
from datetime import datetime, timezone
from typing import List, Optional, Protocol
from uuid import uuid4

from todo_kernel.models.matching import SimilarityRow
from todo_kernel.models.todo import Todo

_UPDATABLE_FIELDS = ("content", "completed", "priority", "labels", "complexity")


class TodoStore(Protocol):
    """Protocol for the record store — pluggable backend."""

    async def create(
        self,
        *,
        content: str,
        scope: str,
        created_by: str = "user",
        priority: Optional[int] = None,
        labels: Optional[List[str]] = None,
        complexity: Optional[float] = None,
    ) -> Todo: ...

    async def update_fields(self, todo_id: str, fields: dict) -> Optional[Todo]: ...

    async def delete(self, todo_id: str) -> bool: ...

    async def get_by_id(self, todo_id: str) -> Optional[Todo]: ...

    async def list_filtered(
        self,
        scope: str,
        completed: Optional[bool] = None,
        priority: Optional[int] = None,
        labels: Optional[List[str]] = None,
    ) -> List[Todo]: ...

    async def search_lexical(self, scope: str, terms: List[str]) -> List[Todo]: ...

    async def search_similarity(
        self, scope: str, phrase: str, limit: int = 5, min_similarity: float = 0.0
    ) -> List[SimilarityRow]: ...


def _trigrams(text: str) -> set:
    """pg_trgm-style trigrams: each word padded with two leading blanks and one trailing."""
    grams = set()
    for word in re.findall(r"[a-z0-9]+", text.lower()):
        padded = f"  {word} "
        for i in range(len(padded) - 2):
            grams.add(padded[i:i + 3])
    return grams


def trigram_similarity(left: Optional[str], right: Optional[str]) -> float:
    """Shared trigrams over the union of trigrams, in [0, 1]."""
    a = _trigrams(left or "")
    b = _trigrams(right or "")
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SqliteTodoStore:
    """
    SQLite-backed todo store.
    Defaults to an in-memory database; pass a file path for persistence.

    The coroutine methods run plain sqlite3 calls and block the event loop
    while a statement executes. That is fine for the in-memory database and
    a single-process deployment; a busy file-backed database will stall
    other requests on the same loop.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.create_function(
            "similarity", 2, trigram_similarity, deterministic=True
        )
        self._init_schema()

    def _init_schema(self) -> None:
        """Create the todos table if it doesn't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS todos (
                id TEXT PRIMARY KEY,
                content TEXT NOT NULL,
                completed INTEGER NOT NULL DEFAULT 0,
                priority INTEGER NOT NULL DEFAULT 0,
                labels TEXT NOT NULL DEFAULT '[]',
                complexity REAL NOT NULL DEFAULT 0,
                scope TEXT NOT NULL,
                created_by TEXT NOT NULL DEFAULT 'user',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_todos_scope ON todos(scope)
        """)
        self._conn.commit()

    def _deserialize(self, row: sqlite3.Row) -> Todo:
        """Turn a row back into a Todo."""
        return Todo(
            id=row["id"],
            content=row["content"],
            completed=bool(row["completed"]),
            priority=row["priority"],
            labels=json.loads(row["labels"]),
            complexity=row["complexity"],
            scope=row["scope"],
            created_by=row["created_by"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    async def create(
        self,
        *,
        content: str,
        scope: str,
        created_by: str = "user",
        priority: Optional[int] = None,
        labels: Optional[List[str]] = None,
        complexity: Optional[float] = None,
    ) -> Todo:
        """Insert a new record and return it as stored."""
        todo_id = str(uuid4())
        now = _now()
        self._conn.execute(
            """
            INSERT INTO todos (
                id, content, completed, priority, labels, complexity,
                scope, created_by, created_at, updated_at
            ) VALUES (?, ?, 0, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                todo_id,
                content,
                priority if priority is not None else 0,
                json.dumps(labels or []),
                complexity if complexity is not None else 0.0,
                scope,
                created_by,
                now,
                now,
            ),
        )
        self._conn.commit()
        return await self.get_by_id(todo_id)

    async def update_fields(self, todo_id: str, fields: dict) -> Optional[Todo]:
        """Apply a partial update. None-valued and unknown fields are ignored."""
        updates = {
            k: v for k, v in fields.items()
            if k in _UPDATABLE_FIELDS and v is not None
        }
        if "labels" in updates:
            updates["labels"] = json.dumps(updates["labels"])
        if "completed" in updates:
            updates["completed"] = int(updates["completed"])
        updates["updated_at"] = _now()

        assignments = ", ".join(f"{column} = ?" for column in updates)
        cursor = self._conn.execute(
            f"UPDATE todos SET {assignments} WHERE id = ?",
            (*updates.values(), todo_id),
        )
        self._conn.commit()
        if cursor.rowcount == 0:
            return None
        return await self.get_by_id(todo_id)

    async def delete(self, todo_id: str) -> bool:
        """Remove a record. Returns False if it did not exist."""
        cursor = self._conn.execute("DELETE FROM todos WHERE id = ?", (todo_id,))
        self._conn.commit()
        return cursor.rowcount > 0

    async def get_by_id(self, todo_id: str) -> Optional[Todo]:
        """Get a specific record by ID."""
        row = self._conn.execute(
            "SELECT * FROM todos WHERE id = ?", (todo_id,)
        ).fetchone()
        return self._deserialize(row) if row else None

    async def list_filtered(
        self,
        scope: str,
        completed: Optional[bool] = None,
        priority: Optional[int] = None,
        labels: Optional[List[str]] = None,
    ) -> List[Todo]:
        """Records in a scope, newest first. `labels` matches any-of."""
        query = "SELECT * FROM todos WHERE scope = ?"
        params: list = [scope]
        if completed is not None:
            query += " AND completed = ?"
            params.append(int(completed))
        if priority is not None:
            query += " AND priority = ?"
            params.append(priority)
        query += " ORDER BY created_at DESC, rowid DESC"

        todos = [self._deserialize(r) for r in self._conn.execute(query, params).fetchall()]
        if labels:
            wanted = set(labels)
            todos = [t for t in todos if wanted & set(t.labels)]
        return todos

    async def search_lexical(self, scope: str, terms: List[str]) -> List[Todo]:
        """Records whose content contains any term, case-insensitively. Newest first."""
        terms = [t.lower() for t in terms if t]
        if not terms:
            return []
        clauses = " OR ".join("instr(lower(content), ?) > 0" for _ in terms)
        rows = self._conn.execute(
            f"SELECT * FROM todos WHERE scope = ? AND ({clauses}) "
            "ORDER BY created_at DESC, rowid DESC",
            (scope, *terms),
        ).fetchall()
        return [self._deserialize(r) for r in rows]

    async def search_similarity(
        self, scope: str, phrase: str, limit: int = 5, min_similarity: float = 0.0
    ) -> List[SimilarityRow]:
        """
        Records sharing trigrams with the phrase, most similar first.
        Rows scoring below min_similarity are never returned, and a row must
        share at least one trigram even when the floor is zero.
        """
        rows = self._conn.execute(
            """
            SELECT * FROM (
                SELECT *, rowid AS rid, similarity(lower(content), ?) AS sim FROM todos
                WHERE scope = ?
            )
            WHERE sim > 0 AND sim >= ?
            ORDER BY sim DESC, created_at DESC, rid DESC
            LIMIT ?
            """,
            (phrase, scope, min_similarity, limit),
        ).fetchall()
        return [
            SimilarityRow(
                todo=self._deserialize(r),
                similarity=r["sim"],
                distance=1.0 - r["sim"],
            )
            for r in rows
        ]

    def count(self, scope: Optional[str] = None) -> int:
        """Number of records, optionally within one scope."""
        if scope is None:
            row = self._conn.execute("SELECT COUNT(*) AS cnt FROM todos").fetchone()
        else:
            row = self._conn.execute(
                "SELECT COUNT(*) AS cnt FROM todos WHERE scope = ?", (scope,)
            ).fetchone()
        return row["cnt"]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
