import io
import json

from todo_cli.render import (
    BufferSink,
    ConsoleSink,
    json_renderer,
    success_renderer,
    todo_list_renderer,
    todo_renderer,
)
from todo_cli.schemas import DeleteResult, Todo, TodoListResult, TodoResult

CREATED = "2024-01-01T09:00:00.000Z"
UPDATED = "2024-01-02T10:30:00.000Z"


def make_todo(**overrides) -> Todo:
    fields = {
        "id": "1",
        "title": "Buy milk",
        "description": None,
        "completed": False,
        "priority": "high",
        "due_date": "2024-01-01",
        "tags": [],
        "created_at": CREATED,
        "updated_at": UPDATED,
    }
    fields.update(overrides)
    return Todo(**fields)


def render(renderer, result):
    out = BufferSink()
    renderer(result, out)
    return out.lines


class TestTodoListRenderer:
    def test_empty_list(self):
        assert render(todo_list_renderer, TodoListResult(todos=[], total=0)) == ["No todos found."]

    def test_single_todo_example(self):
        lines = render(todo_list_renderer, TodoListResult(todos=[make_todo()], total=1))
        assert lines == [
            "Found 1 todo(s):",
            "",
            "[ ] [HIGH] 1: Buy milk (due: 2024-01-01)",
        ]

    def test_preserves_order_and_marks_status(self):
        todos = [
            make_todo(id="3", title="Walk dog", completed=True, priority="low", due_date=None),
            make_todo(id="1", title="Buy milk", priority="medium", due_date=None),
            make_todo(id="2", title="File taxes", priority="high", due_date="2024-04-15"),
        ]
        lines = render(todo_list_renderer, TodoListResult(todos=todos, total=3))
        assert lines[0] == "Found 3 todo(s):"
        assert lines[1] == ""
        assert lines[2:] == [
            "[x] [LOW] 3: Walk dog",
            "[ ] [MEDIUM] 1: Buy milk",
            "[ ] [HIGH] 2: File taxes (due: 2024-04-15)",
        ]


class TestTodoRenderer:
    def test_not_found(self):
        assert render(todo_renderer, TodoResult(todo=None)) == ["Todo not found."]

    def test_fully_populated(self):
        todo = make_todo(description="Two litres", completed=True, tags=["home", "errands"])
        assert render(todo_renderer, TodoResult(todo=todo)) == [
            "ID: 1",
            "Title: Buy milk",
            "Status: Completed",
            "Priority: high",
            "Description: Two litres",
            "Due: 2024-01-01",
            "Tags: home, errands",
            f"Created: {CREATED}",
            f"Updated: {UPDATED}",
        ]

    def test_optional_fields_omitted(self):
        todo = make_todo(description=None, due_date=None, tags=[], priority="medium")
        assert render(todo_renderer, TodoResult(todo=todo)) == [
            "ID: 1",
            "Title: Buy milk",
            "Status: Pending",
            "Priority: medium",
            f"Created: {CREATED}",
            f"Updated: {UPDATED}",
        ]


class TestSuccessRenderer:
    def test_success_flag_true(self):
        assert render(success_renderer, DeleteResult(success=True)) == ["Success"]

    def test_success_flag_false(self):
        assert render(success_renderer, DeleteResult(success=False)) == ["Failed"]

    def test_with_todo(self):
        assert render(success_renderer, TodoResult(todo=make_todo(title="X"))) == ["Success: X"]

    def test_missing_todo_is_failure(self):
        assert render(success_renderer, TodoResult(todo=None)) == ["Failed"]


class TestJsonRenderer:
    def test_plain_value_indented_two_spaces(self):
        assert render(json_renderer, {"a": 1}) == ["{", '  "a": 1', "}"]

    def test_model_uses_camel_case_keys(self):
        lines = render(json_renderer, TodoListResult(todos=[make_todo(tags=["x"])], total=1))
        data = json.loads("\n".join(lines))
        assert data["total"] == 1
        todo = data["todos"][0]
        assert todo["dueDate"] == "2024-01-01"
        assert todo["createdAt"] == CREATED
        assert todo["updatedAt"] == UPDATED
        assert todo["tags"] == ["x"]
        assert lines[1].startswith('  "todos"')


class TestSinks:
    def test_console_sink_writes_lines(self):
        stream = io.StringIO()
        sink = ConsoleSink(stream)
        sink.write_line("one")
        sink.write_line("")
        assert stream.getvalue() == "one\n\n"

    def test_console_sink_defaults_to_stdout(self, capsys):
        ConsoleSink().write_line("hello")
        assert capsys.readouterr().out == "hello\n"

    def test_buffer_sink_drain_resets(self):
        sink = BufferSink()
        sink.write_line("a")
        assert sink.drain() == ["a"]
        assert sink.lines == []
