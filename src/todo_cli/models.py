from __future__ import annotations

from enum import Enum
from typing import List, Optional, TypedDict


class Priority(str, Enum):
    """Allowed todo priorities."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


PRIORITY_CHOICES = [p.value for p in Priority]


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A lightweight domain record representing a Todo as stored by the
    repository backends.

    Fields:
    - id: Unique identifier (sequential integer rendered as a string)
    - title: Short title (1..200 chars, trimmed on input via schemas)
    - description: Optional detailed description
    - completed: Boolean completion flag, False on creation
    - priority: One of 'low', 'medium', 'high'
    - due_date: Optional due date as 'YYYY-MM-DD'
    - tags: Ordered list of tags; order is preserved, duplicates allowed
    - created_at: ISO-8601 creation timestamp
    - updated_at: ISO-8601 last update timestamp
    """

    id: str
    title: str
    description: Optional[str]
    completed: bool
    priority: str
    due_date: Optional[str]
    tags: List[str]
    created_at: str
    updated_at: str
