from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import RLock
from typing import Dict, List, Optional, Tuple

from .models import TodoEntity
from .schemas import TodoCreate, TodoUpdate
from .settings import Settings

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def touch(created_at: str) -> str:
    """Timestamp for an update; never earlier than created_at."""
    return max(utc_timestamp(), created_at)


@dataclass(frozen=True)
class ListQuery:
    """
    Filters for listing todos. None means "do not filter on this field".
    """
    completed: Optional[bool] = None
    priority: Optional[str] = None


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for todo storage backends."""

    @abstractmethod
    def create(self, data: TodoCreate) -> TodoEntity:
        """Create and return a new TodoEntity."""

    @abstractmethod
    def get(self, todo_id: str) -> Optional[TodoEntity]:
        """Return a TodoEntity by id, or None if not found."""

    @abstractmethod
    def update(self, todo_id: str, data: TodoUpdate) -> Optional[TodoEntity]:
        """Update fields of an existing TodoEntity. Return updated entity or None if not found."""

    @abstractmethod
    def delete(self, todo_id: str) -> bool:
        """Delete a TodoEntity by id. Return True if deleted, False if not found."""

    @abstractmethod
    def list(self, query: Optional[ListQuery] = None) -> Tuple[List[TodoEntity], int]:
        """
        Return the TodoEntities matching the filters, in creation order,
        together with their count.
        - Filter by completed
        - Filter by priority
        """


def apply_update(current: TodoEntity, data: TodoUpdate) -> TodoEntity:
    """Return a copy of current with the fields explicitly set on data applied."""
    updated = current.copy()
    for field in data.model_fields_set:
        value = getattr(data, field)
        if value is None and field not in {"description", "due_date"}:
            continue
        updated[field] = list(value) if field == "tags" else value  # type: ignore[literal-required]
    updated["updated_at"] = touch(current["created_at"])
    return updated


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, TodoEntity] = {}
        self._next_id = 1

    def _allocate_id(self) -> str:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return str(i)

    @staticmethod
    def _copy(item: TodoEntity) -> TodoEntity:
        copied = item.copy()
        copied["tags"] = list(item["tags"])
        return copied

    def create(self, data: TodoCreate) -> TodoEntity:
        now = utc_timestamp()
        entity: TodoEntity = {
            "id": self._allocate_id(),
            "title": data.title,
            "description": data.description,
            "completed": False,
            "priority": data.priority,
            "due_date": data.due_date,
            "tags": list(data.tags),
            "created_at": now,
            "updated_at": now,
        }
        with self._lock:
            self._items[entity["id"]] = entity
        logger.debug("Created todo %s", entity["id"])
        return self._copy(entity)

    def get(self, todo_id: str) -> Optional[TodoEntity]:
        with self._lock:
            item = self._items.get(todo_id)
            return None if item is None else self._copy(item)

    def update(self, todo_id: str, data: TodoUpdate) -> Optional[TodoEntity]:
        with self._lock:
            existing = self._items.get(todo_id)
            if existing is None:
                return None
            updated = apply_update(existing, data)
            self._items[todo_id] = updated
        logger.debug("Updated todo %s: %s", todo_id, sorted(data.model_fields_set))
        return self._copy(updated)

    def delete(self, todo_id: str) -> bool:
        with self._lock:
            removed = self._items.pop(todo_id, None) is not None
        if removed:
            logger.debug("Deleted todo %s", todo_id)
        return removed

    def list(self, query: Optional[ListQuery] = None) -> Tuple[List[TodoEntity], int]:
        q = query or ListQuery()
        with self._lock:
            items = list(self._items.values())

        if q.completed is not None:
            items = [t for t in items if t["completed"] == q.completed]
        if q.priority is not None:
            items = [t for t in items if t["priority"] == q.priority]

        # dict preserves insertion order, which is creation order
        return [self._copy(t) for t in items], len(items)


# PUBLIC_INTERFACE
def get_repository(settings: Settings) -> Repository:
    """
    Factory to return the configured repository based on settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository backed by settings.sqlite_db_path
    """
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path)
    return InMemoryRepository()
