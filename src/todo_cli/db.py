from __future__ import annotations

import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator, List, Optional, Tuple

from .models import TodoEntity
from .repositories import ListQuery, Repository, apply_update, utc_timestamp
from .schemas import TodoCreate, TodoUpdate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    completed: str = "completed"
    priority: str = "priority"
    due_date: str = "due_date"
    tags: str = "tags"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_COLS = _Cols()


def _row_id(todo_id: str) -> Optional[int]:
    # ids are exposed as strings but stored as INTEGER keys
    s = todo_id.strip()
    # isdigit() also accepts characters like "²" that int() rejects
    return int(s) if s.isascii() and s.isdecimal() else None


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_COLS.title} TEXT NOT NULL,
                    {_COLS.description} TEXT NULL,
                    {_COLS.completed} INTEGER NOT NULL DEFAULT 0,
                    {_COLS.priority} TEXT NOT NULL DEFAULT 'medium'
                        CHECK ({_COLS.priority} IN ('low', 'medium', 'high')),
                    {_COLS.due_date} TEXT NULL,
                    {_COLS.tags} TEXT NOT NULL DEFAULT '[]',
                    {_COLS.created_at} TEXT NOT NULL,
                    {_COLS.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_completed ON {_COLS.table}({_COLS.completed})"
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_priority ON {_COLS.table}({_COLS.priority})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        return {
            "id": str(row[_COLS.id]),
            "title": str(row[_COLS.title]),
            "description": row[_COLS.description],
            "completed": bool(row[_COLS.completed]),
            "priority": str(row[_COLS.priority]),
            "due_date": row[_COLS.due_date],
            "tags": json.loads(row[_COLS.tags]),
            "created_at": str(row[_COLS.created_at]),
            "updated_at": str(row[_COLS.updated_at]),
        }

    def _select(self, conn: sqlite3.Connection, row_id: int) -> Optional[sqlite3.Row]:
        return conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (row_id,)).fetchone()

    def create(self, data: TodoCreate) -> TodoEntity:
        now = utc_timestamp()
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.title}, {_COLS.description}, {_COLS.completed},
                    {_COLS.priority}, {_COLS.due_date}, {_COLS.tags}, {_COLS.created_at}, {_COLS.updated_at})
                VALUES (?, ?, 0, ?, ?, ?, ?, ?)
                """,
                (data.title, data.description, data.priority, data.due_date, json.dumps(data.tags), now, now),
            )
            row = self._select(conn, int(cur.lastrowid))
            assert row is not None
            entity = self._row_to_entity(row)
        logger.debug("Created todo %s in %s", entity["id"], self._db_path)
        return entity

    def get(self, todo_id: str) -> Optional[TodoEntity]:
        row_id = _row_id(todo_id)
        if row_id is None:
            return None
        with self._conn() as conn:
            row = self._select(conn, row_id)
            return self._row_to_entity(row) if row else None

    def update(self, todo_id: str, data: TodoUpdate) -> Optional[TodoEntity]:
        row_id = _row_id(todo_id)
        if row_id is None:
            return None
        with self._conn() as conn:
            row = self._select(conn, row_id)
            if not row:
                return None
            updated = apply_update(self._row_to_entity(row), data)
            conn.execute(
                f"""
                UPDATE {_COLS.table}
                SET {_COLS.title} = ?, {_COLS.description} = ?, {_COLS.completed} = ?,
                    {_COLS.priority} = ?, {_COLS.due_date} = ?, {_COLS.tags} = ?, {_COLS.updated_at} = ?
                WHERE {_COLS.id} = ?
                """,
                (
                    updated["title"],
                    updated["description"],
                    1 if updated["completed"] else 0,
                    updated["priority"],
                    updated["due_date"],
                    json.dumps(updated["tags"]),
                    updated["updated_at"],
                    row_id,
                ),
            )
            row2 = self._select(conn, row_id)
            assert row2 is not None
            entity = self._row_to_entity(row2)
        logger.debug("Updated todo %s: %s", todo_id, sorted(data.model_fields_set))
        return entity

    def delete(self, todo_id: str) -> bool:
        row_id = _row_id(todo_id)
        if row_id is None:
            return False
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (row_id,))
            removed = cur.rowcount > 0
        if removed:
            logger.debug("Deleted todo %s", todo_id)
        return removed

    def list(self, query: Optional[ListQuery] = None) -> Tuple[List[TodoEntity], int]:
        q = query or ListQuery()
        clauses = []
        params: list = []

        if q.completed is not None:
            clauses.append(f"{_COLS.completed} = ?")
            params.append(1 if q.completed else 0)

        if q.priority is not None:
            clauses.append(f"{_COLS.priority} = ?")
            params.append(q.priority)

        where_sql = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_COLS.table} {where_sql} ORDER BY {_COLS.id} ASC",
                params,
            ).fetchall()
            items = [self._row_to_entity(r) for r in rows]
            return items, len(items)
