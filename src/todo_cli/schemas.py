from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import Priority


def _parse_due_date(value: Optional[object]) -> Optional[str]:
    """
    Internal helper to normalize a due date into a 'YYYY-MM-DD' string.
    - None and empty strings mean "no due date".
    - date instances are formatted with isoformat().
    - Strings must parse with date.fromisoformat and are re-emitted canonically.
    """
    if value is None:
        return None

    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            return date.fromisoformat(s).isoformat()
        except ValueError as e:
            raise ValueError(f"Invalid due date {value!r}. Use YYYY-MM-DD.") from e

    raise ValueError("Invalid type for due date; expected date or 'YYYY-MM-DD' string.")


def _validate_title(v: str) -> str:
    s = v.strip()
    if not (1 <= len(s) <= 200):
        raise ValueError("title length must be between 1 and 200 characters")
    return s


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)


# PUBLIC_INTERFACE
class TodoCreate(_CamelModel):
    """
    Schema for creating a new Todo item.
    """

    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    priority: Priority = Field(default=Priority.MEDIUM.value, description="low, medium or high")
    due_date: Optional[str] = Field(default=None, description="Due date as YYYY-MM-DD")
    tags: List[str] = Field(default_factory=list, description="Ordered tags")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        return _validate_title(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[object]) -> Optional[str]:
        return _parse_due_date(v)


# PUBLIC_INTERFACE
class TodoUpdate(_CamelModel):
    """
    Schema for updating an existing Todo item.
    All fields are optional; only provided fields will be updated.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    completed: Optional[bool] = None
    priority: Optional[Priority] = None
    due_date: Optional[str] = None
    tags: Optional[List[str]] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _validate_title(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[object]) -> Optional[str]:
        return _parse_due_date(v)


# PUBLIC_INTERFACE
class Todo(_CamelModel):
    """
    A Todo item as handed to renderers and serialized over the wire.
    JSON keys are camelCase (dueDate, createdAt, updatedAt).
    """

    id: str
    title: str
    description: Optional[str] = None
    completed: bool = False
    priority: Priority = Priority.MEDIUM.value
    due_date: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: str
    updated_at: str


# PUBLIC_INTERFACE
class TodoListResult(_CamelModel):
    """Result of listing todos: the matching items and their count."""

    todos: List[Todo]
    total: int


# PUBLIC_INTERFACE
class TodoResult(_CamelModel):
    """Result carrying a single todo, or None when no todo matched."""

    todo: Optional[Todo] = None


# PUBLIC_INTERFACE
class DeleteResult(_CamelModel):
    """Result of a delete: success is False when the id was unknown."""

    success: bool
