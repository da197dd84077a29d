"""
Todo business functions invoked by the command table.

Each function takes the repository as its first argument followed by the
parsed command options, and returns a result model. "Not found" is a
normal result (``todo=None`` or ``success=False``), never an exception.
"""
from __future__ import annotations

from typing import Iterable, Optional

from .models import TodoEntity
from .repositories import ListQuery, Repository
from .schemas import DeleteResult, Todo, TodoCreate, TodoListResult, TodoResult, TodoUpdate


def _to_todo(entity: Optional[TodoEntity]) -> Optional[Todo]:
    return None if entity is None else Todo(**entity)


# PUBLIC_INTERFACE
def list_todos(
    repo: Repository,
    completed: Optional[bool] = None,
    priority: Optional[str] = None,
) -> TodoListResult:
    """
    List todos in creation order, optionally filtered by completion status
    and priority.
    """
    items, total = repo.list(ListQuery(completed=completed, priority=priority))
    return TodoListResult(todos=[Todo(**it) for it in items], total=total)


# PUBLIC_INTERFACE
def get_todo(repo: Repository, id: str) -> TodoResult:
    """Retrieve a single todo by its id."""
    return TodoResult(todo=_to_todo(repo.get(id)))


# PUBLIC_INTERFACE
def create_todo(
    repo: Repository,
    title: str,
    priority: Optional[str] = None,
    due_date: Optional[str] = None,
    description: Optional[str] = None,
    tags: Optional[Iterable[str]] = None,
) -> TodoResult:
    """
    Create a todo. Priority defaults to 'medium' when not given.

    Raises:
        pydantic.ValidationError: if the title is empty or the due date is malformed.
    """
    payload = TodoCreate(
        title=title,
        description=description,
        due_date=due_date,
        tags=list(tags or []),
        **({"priority": priority} if priority is not None else {}),
    )
    return TodoResult(todo=_to_todo(repo.create(payload)))


# PUBLIC_INTERFACE
def complete_todo(repo: Repository, id: str) -> TodoResult:
    """Mark a todo as completed. Returns todo=None when the id is unknown."""
    return TodoResult(todo=_to_todo(repo.update(id, TodoUpdate(completed=True))))


# PUBLIC_INTERFACE
def delete_todo(repo: Repository, id: str) -> DeleteResult:
    """Delete a todo. success is False when the id is unknown."""
    return DeleteResult(success=repo.delete(id))
