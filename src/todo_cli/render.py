"""
Terminal renderers for command results.

A renderer takes a command's result and an output sink, and writes lines
to the sink. Renderers return nothing and never raise on a missing
optional field.
"""
from __future__ import annotations

import json
import sys
from typing import Any, Callable, List, Optional, Protocol, TextIO, Union

from pydantic_core import to_jsonable_python

from .schemas import DeleteResult, TodoListResult, TodoResult


class OutputSink(Protocol):
    """Anything that can receive rendered lines."""

    def write_line(self, line: str) -> None: ...


class ConsoleSink:
    """Writes each line to a text stream, stdout by default."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream

    def write_line(self, line: str) -> None:
        print(line, file=self._stream if self._stream is not None else sys.stdout)


class BufferSink:
    """Collects lines in memory; used per WebSocket connection and in tests."""

    def __init__(self) -> None:
        self.lines: List[str] = []

    def write_line(self, line: str) -> None:
        self.lines.append(line)

    def drain(self) -> List[str]:
        """Return the collected lines and reset the buffer."""
        lines, self.lines = self.lines, []
        return lines


Renderer = Callable[[Any, OutputSink], None]


# PUBLIC_INTERFACE
def todo_list_renderer(result: TodoListResult, out: OutputSink) -> None:
    """Render a todo list: a count header, a blank line, then one line per todo."""
    if result.total == 0:
        out.write_line("No todos found.")
        return

    out.write_line(f"Found {result.total} todo(s):")
    out.write_line("")
    for todo in result.todos:
        status = "[x]" if todo.completed else "[ ]"
        priority = f"[{todo.priority.upper()}]"
        due = f" (due: {todo.due_date})" if todo.due_date else ""
        out.write_line(f"{status} {priority} {todo.id}: {todo.title}{due}")


# PUBLIC_INTERFACE
def todo_renderer(result: TodoResult, out: OutputSink) -> None:
    """Render every field of a single todo, skipping empty optional ones."""
    todo = result.todo
    if todo is None:
        out.write_line("Todo not found.")
        return

    out.write_line(f"ID: {todo.id}")
    out.write_line(f"Title: {todo.title}")
    out.write_line(f"Status: {'Completed' if todo.completed else 'Pending'}")
    out.write_line(f"Priority: {todo.priority}")

    if todo.description:
        out.write_line(f"Description: {todo.description}")
    if todo.due_date:
        out.write_line(f"Due: {todo.due_date}")
    if todo.tags:
        out.write_line(f"Tags: {', '.join(todo.tags)}")
    out.write_line(f"Created: {todo.created_at}")
    out.write_line(f"Updated: {todo.updated_at}")


# PUBLIC_INTERFACE
def success_renderer(result: Union[TodoResult, DeleteResult], out: OutputSink) -> None:
    """Render 'Success: <title>' when a todo came back, else Success/Failed."""
    todo = getattr(result, "todo", None)
    if todo is not None:
        out.write_line(f"Success: {todo.title}")
    else:
        out.write_line("Success" if getattr(result, "success", False) else "Failed")


# PUBLIC_INTERFACE
def json_renderer(result: Any, out: OutputSink) -> None:
    """Default renderer: the result as JSON with 2-space indentation."""
    payload = to_jsonable_python(result, by_alias=True)
    for line in json.dumps(payload, indent=2, ensure_ascii=False).splitlines():
        out.write_line(line)
