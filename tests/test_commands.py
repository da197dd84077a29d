import json
import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from todo_cli import functions
from todo_cli.commands import COMMANDS, CommandSpec, UsageError, build_parser, dispatch, verbose_logging
from todo_cli.db import SQLiteRepository
from todo_cli.render import BufferSink, todo_renderer


def run(argv, repo, sink):
    code = dispatch(argv, repo, sink)
    return code, sink.drain()


class TestCommandTable:
    def test_commands_registered(self):
        assert set(COMMANDS) == {"list", "add", "show", "complete", "delete"}

    def test_wiring(self):
        assert COMMANDS["list"].func is functions.list_todos
        assert COMMANDS["add"].func is functions.create_todo
        assert COMMANDS["show"].func is functions.get_todo
        assert COMMANDS["complete"].func is functions.complete_todo
        assert COMMANDS["delete"].func is functions.delete_todo
        assert COMMANDS["add"].parameters == ("title",)
        for name in ("show", "complete", "delete"):
            assert COMMANDS[name].parameters == ("id",)

    def test_add_priority_defaults_to_medium(self):
        ns = build_parser().parse_args(["add", "Task"])
        assert ns.priority == "medium"
        assert ns.verbose is False


class TestDispatch:
    def test_list_empty(self, repo, sink):
        assert run(["list"], repo, sink) == (0, ["No todos found."])

    def test_add_then_list(self, repo, sink):
        assert run(["add", "Buy milk", "-p", "high", "-d", "2024-01-01"], repo, sink) == (0, ["Success: Buy milk"])
        code, lines = run(["list"], repo, sink)
        assert code == 0
        assert lines == ["Found 1 todo(s):", "", "[ ] [HIGH] 1: Buy milk (due: 2024-01-01)"]

    def test_add_with_description_and_tags(self, repo, sink):
        run(["add", "Groceries", "--description", "Weekly shop", "-t", "home", "--tag", "errands"], repo, sink)
        _, lines = run(["show", "1"], repo, sink)
        assert "Description: Weekly shop" in lines
        assert "Tags: home, errands" in lines
        assert "Priority: medium" in lines

    def test_show_not_found(self, repo, sink):
        assert run(["show", "7"], repo, sink) == (0, ["Todo not found."])

    def test_show_superscript_id_on_sqlite(self, sink, tmp_path):
        repo = SQLiteRepository(str(tmp_path / "todos.db"))
        assert run(["show", "\u00b2"], repo, sink) == (0, ["Todo not found."])

    def test_complete(self, repo, sink):
        run(["add", "Walk dog"], repo, sink)
        assert run(["complete", "1"], repo, sink) == (0, ["Success: Walk dog"])
        _, lines = run(["show", "1"], repo, sink)
        assert "Status: Completed" in lines

    def test_complete_unknown(self, repo, sink):
        assert run(["complete", "9"], repo, sink) == (0, ["Failed"])

    def test_delete(self, repo, sink):
        run(["add", "Temp"], repo, sink)
        assert run(["delete", "1"], repo, sink) == (0, ["Success"])
        assert run(["delete", "1"], repo, sink) == (0, ["Failed"])

    def test_list_filters(self, repo, sink):
        run(["add", "A", "-p", "low"], repo, sink)
        run(["add", "B", "-p", "high"], repo, sink)
        run(["add", "C", "-p", "high"], repo, sink)
        run(["complete", "3"], repo, sink)

        _, done = run(["list", "--completed"], repo, sink)
        assert done == ["Found 1 todo(s):", "", "[x] [HIGH] 3: C"]

        _, pending = run(["list", "--no-completed"], repo, sink)
        assert pending[0] == "Found 2 todo(s):"

        _, high = run(["list", "-p", "high"], repo, sink)
        assert high[2:] == ["[ ] [HIGH] 2: B", "[x] [HIGH] 3: C"]

        _, both = run(["list", "-c", "-p", "low"], repo, sink)
        assert both == ["No todos found."]

    def test_help(self, repo, sink):
        code, lines = run(["--help"], repo, sink)
        assert code == 0
        assert lines[0].startswith("usage: todo-cli")

    def test_subcommand_help(self, repo, sink):
        code, lines = run(["add", "-h"], repo, sink)
        assert code == 0
        assert any("--due-date" in line for line in lines)


class TestVerbose:
    @pytest.mark.parametrize("argv", [["-v", "list"], ["list", "--verbose"]])
    def test_verbose_does_not_change_output(self, repo, sink, argv):
        assert run(argv, repo, sink) == (0, ["No todos found."])

    def test_verbose_restores_log_level(self, repo, sink):
        pkg_logger = logging.getLogger("todo_cli")
        before = pkg_logger.level
        run(["--verbose", "add", "X"], repo, sink)
        assert pkg_logger.level == before

    def test_overlapping_verbose_blocks_restore_once(self):
        pkg_logger = logging.getLogger("todo_cli")
        before = pkg_logger.level
        first = verbose_logging(True)
        second = verbose_logging(True)
        first.__enter__()
        second.__enter__()
        first.__exit__(None, None, None)
        assert pkg_logger.level == logging.DEBUG
        second.__exit__(None, None, None)
        assert pkg_logger.level == before

    def test_verbose_blocks_on_threads(self, repo):
        pkg_logger = logging.getLogger("todo_cli")
        before = pkg_logger.level

        def invoke(i):
            return dispatch(["-v", "add", f"Task {i}"], repo, BufferSink())

        with ThreadPoolExecutor(max_workers=8) as pool:
            assert list(pool.map(invoke, range(40))) == [0] * 40
        assert pkg_logger.level == before
        assert repo.list()[1] == 40

    def test_verbose_before_command_survives_subparser(self):
        ns = build_parser().parse_args(["-v", "list"])
        assert ns.verbose is True


class TestRejectedInvocations:
    def test_unknown_command(self, repo, sink):
        with pytest.raises(UsageError) as exc:
            dispatch(["frobnicate"], repo, sink)
        assert "invalid choice" in exc.value.message
        assert exc.value.usage.startswith("usage:")
        assert sink.lines == []

    def test_missing_command(self, repo, sink):
        with pytest.raises(UsageError):
            dispatch([], repo, sink)

    @pytest.mark.parametrize("argv", [["show"], ["complete"], ["delete"], ["add"]])
    def test_missing_positional(self, repo, sink, argv):
        with pytest.raises(UsageError) as exc:
            dispatch(argv, repo, sink)
        assert "required" in exc.value.message

    def test_function_not_called_on_bad_invocation(self, repo, sink):
        calls = []

        def recorder(repo, id):
            calls.append(id)
            return functions.get_todo(repo, id)

        table = {"show": CommandSpec(func=recorder, description="Show", parameters=("id",), render=todo_renderer)}
        with pytest.raises(UsageError):
            dispatch(["show"], repo, sink, commands=table)
        assert calls == []
        dispatch(["show", "1"], repo, sink, commands=table)
        assert calls == ["1"]

    def test_invalid_priority(self, repo, sink):
        with pytest.raises(UsageError):
            dispatch(["add", "Task", "-p", "urgent"], repo, sink)
        assert repo.list()[1] == 0

    def test_invalid_due_date(self, repo, sink):
        with pytest.raises(UsageError) as exc:
            dispatch(["add", "Task", "-d", "2024-13-01"], repo, sink)
        assert "YYYY-MM-DD" in exc.value.message
        assert repo.list()[1] == 0

    def test_blank_title(self, repo, sink):
        with pytest.raises(UsageError) as exc:
            dispatch(["add", "   "], repo, sink)
        assert "title" in exc.value.message
        assert repo.list()[1] == 0


class TestDefaultRenderer:
    def test_command_without_renderer_prints_json(self, repo, sink):
        functions.create_todo(repo, "Buy milk", due_date="2024-01-01")
        table = {"dump": CommandSpec(func=functions.list_todos, description="Dump todos as JSON")}
        dispatch(["dump"], repo, sink, commands=table)
        data = json.loads("\n".join(sink.lines))
        assert data["total"] == 1
        assert data["todos"][0]["title"] == "Buy milk"
        assert data["todos"][0]["dueDate"] == "2024-01-01"
