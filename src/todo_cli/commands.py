"""
The todo-cli command table and its dispatcher.

``COMMANDS`` maps each subcommand to a :class:`CommandSpec` describing its
positional parameters, options, business function and renderer. The
argparse parser is derived from the table, so the table is the only place
a command is declared. Bad invocations are rejected by the parser, before
any business function runs, with a :class:`UsageError`.
"""
from __future__ import annotations

import argparse
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from . import functions
from .models import PRIORITY_CHOICES
from .render import OutputSink, Renderer, json_renderer, success_renderer, todo_list_renderer, todo_renderer
from .repositories import Repository

logger = logging.getLogger(__name__)

PROGRAM = "todo-cli"


class UsageError(Exception):
    """An invocation the parser refused: unknown command, missing argument, bad value."""

    def __init__(self, message: str, usage: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.usage = usage

    def __str__(self) -> str:
        return self.message


class _HelpRequested(Exception):
    def __init__(self, text: str) -> None:
        super().__init__(text)
        self.text = text


class _CommandParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of printing and exiting."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(f"{self.prog}: error: {message}", self.format_usage())

    def print_help(self, file=None) -> None:  # noqa: ARG002
        raise _HelpRequested(self.format_help())


def _due_date(value: str) -> str:
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}'. Use YYYY-MM-DD.") from e


@dataclass(frozen=True)
class OptionSpec:
    """
    One command-line option.

    kind:
    - "value": takes one argument (optionally restricted to choices)
    - "bool": tri-state flag, --name / --no-name, None when absent
    - "flag": store_true
    - "append": repeatable, collects a list
    """

    description: str
    short: Optional[str] = None
    default: Any = None
    kind: str = "value"
    choices: Optional[Sequence[str]] = None
    type: Optional[Callable[[str], Any]] = None
    metavar: Optional[str] = None
    flag: Optional[str] = None


@dataclass(frozen=True)
class CommandSpec:
    """A subcommand: what it calls, what it accepts and how its result is shown."""

    func: Callable[..., Any]
    description: str
    parameters: Tuple[str, ...] = ()
    options: Dict[str, OptionSpec] = field(default_factory=dict)
    render: Optional[Renderer] = None


COMMANDS: Dict[str, CommandSpec] = {
    "list": CommandSpec(
        func=functions.list_todos,
        description="List all todos",
        render=todo_list_renderer,
        options={
            "completed": OptionSpec("Filter by completed status", short="c", kind="bool"),
            "priority": OptionSpec(
                "Filter by priority (low, medium, high)", short="p", choices=PRIORITY_CHOICES
            ),
        },
    ),
    "add": CommandSpec(
        func=functions.create_todo,
        description="Add a new todo",
        parameters=("title",),
        render=success_renderer,
        options={
            "priority": OptionSpec(
                "Set priority (low, medium, high)", short="p", default="medium", choices=PRIORITY_CHOICES
            ),
            "due_date": OptionSpec("Set due date (YYYY-MM-DD)", short="d", type=_due_date, metavar="YYYY-MM-DD"),
            "description": OptionSpec("Set a longer description"),
            "tags": OptionSpec("Add a tag (repeatable)", short="t", kind="append", metavar="TAG", flag="tag"),
        },
    ),
    "show": CommandSpec(
        func=functions.get_todo,
        description="Show a todo by ID",
        parameters=("id",),
        render=todo_renderer,
    ),
    "complete": CommandSpec(
        func=functions.complete_todo,
        description="Mark a todo as complete",
        parameters=("id",),
        render=success_renderer,
    ),
    "delete": CommandSpec(
        func=functions.delete_todo,
        description="Delete a todo",
        parameters=("id",),
        render=success_renderer,
    ),
}

GLOBAL_OPTIONS: Dict[str, OptionSpec] = {
    "verbose": OptionSpec("Enable verbose output", short="v", default=False, kind="flag"),
}

DEFAULT_RENDERER: Renderer = json_renderer


def _flags(name: str, spec: OptionSpec) -> List[str]:
    flags = [f"-{spec.short}"] if spec.short else []
    flags.append(f"--{spec.flag or name.replace('_', '-')}")
    return flags


def _add_option(parser: argparse.ArgumentParser, name: str, spec: OptionSpec, default: Any) -> None:
    kwargs: Dict[str, Any] = {"dest": name, "help": spec.description, "default": default}
    if spec.kind == "flag":
        kwargs["action"] = "store_true"
    elif spec.kind == "bool":
        kwargs["action"] = argparse.BooleanOptionalAction
    elif spec.kind == "append":
        kwargs["action"] = "append"
        kwargs["metavar"] = spec.metavar
    else:
        kwargs["choices"] = spec.choices
        kwargs["type"] = spec.type
        kwargs["metavar"] = spec.metavar
    parser.add_argument(*_flags(name, spec), **kwargs)


# PUBLIC_INTERFACE
def build_parser(commands: Optional[Dict[str, CommandSpec]] = None) -> argparse.ArgumentParser:
    """Build the argparse parser for the given command table (default: COMMANDS)."""
    table = COMMANDS if commands is None else commands
    parser = _CommandParser(prog=PROGRAM, description="A minimal command-line todo manager.")
    for name, opt in GLOBAL_OPTIONS.items():
        _add_option(parser, name, opt, opt.default)

    sub = parser.add_subparsers(dest="command", required=True, metavar="<command>")
    for cmd_name, spec in table.items():
        s = sub.add_parser(cmd_name, help=spec.description, description=spec.description)
        for param in spec.parameters:
            s.add_argument(param, metavar=f"<{param}>")
        for opt_name, opt in spec.options.items():
            _add_option(s, opt_name, opt, opt.default)
        # repeated on each subcommand; SUPPRESS keeps a value given before the command
        for name, opt in GLOBAL_OPTIONS.items():
            _add_option(s, name, opt, argparse.SUPPRESS)
    return parser


_verbose_lock = threading.Lock()
_verbose_depth = 0
_saved_level = logging.NOTSET


@contextmanager
def verbose_logging(enabled: bool) -> Iterator[None]:
    """
    Raise the todo_cli logger to DEBUG while the block runs.

    Invocations may overlap when the server runs them on worker threads:
    the level is saved by the first verbose block to enter and restored by
    the last one to leave.
    """
    global _verbose_depth, _saved_level
    if not enabled:
        yield
        return

    pkg_logger = logging.getLogger("todo_cli")
    with _verbose_lock:
        if _verbose_depth == 0:
            _saved_level = pkg_logger.level
            pkg_logger.setLevel(logging.DEBUG)
        _verbose_depth += 1
    try:
        yield
    finally:
        with _verbose_lock:
            _verbose_depth -= 1
            if _verbose_depth == 0:
                pkg_logger.setLevel(_saved_level)


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


# PUBLIC_INTERFACE
def dispatch(
    argv: Sequence[str],
    repo: Repository,
    out: OutputSink,
    commands: Optional[Dict[str, CommandSpec]] = None,
) -> int:
    """
    Parse argv against the command table, run the matching function with
    the parsed options and hand its result to the command's renderer.

    Args:
        argv: Arguments without the program name, e.g. ["show", "1"].
        repo: The todo accessor passed to every business function.
        out: Sink the renderer writes to.
        commands: Alternative command table, COMMANDS when omitted.

    Returns:
        0 on success (including --help).

    Raises:
        UsageError: the invocation was rejected; no function was called.
    """
    table = COMMANDS if commands is None else commands
    parser = build_parser(table)
    try:
        ns = parser.parse_args(list(argv))
    except _HelpRequested as h:
        for line in h.text.rstrip("\n").splitlines():
            out.write_line(line)
        return 0

    spec = table[ns.command]
    kwargs = {p: getattr(ns, p) for p in spec.parameters}
    kwargs.update({o: getattr(ns, o) for o in spec.options})

    with verbose_logging(ns.verbose):
        logger.debug("Running %s with %s", ns.command, kwargs)
        try:
            result = spec.func(repo, **kwargs)
        except ValidationError as e:
            raise UsageError(
                f"{PROGRAM} {ns.command}: error: {_validation_message(e)}", parser.format_usage()
            ) from e
        (spec.render or DEFAULT_RENDERER)(result, out)
    return 0
