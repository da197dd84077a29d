from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 4002


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - TODO_CLI_HOST: host the WebSocket listener binds to (default: localhost)
    - TODO_CLI_PORT: port the WebSocket listener binds to (default: 4002)
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/todos.db'
    - LOG_LEVEL: level name for the todo_cli logger (default: WARNING)
    """

    host: str
    port: int
    persistence_backend: str
    sqlite_db_path: str
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_port(value: str) -> int:
    try:
        port = int(value.strip())
    except ValueError as e:
        raise ValueError(f"TODO_CLI_PORT must be an integer, got {value!r}") from e
    if not (0 < port < 65536):
        raise ValueError(f"TODO_CLI_PORT out of range: {port}")
    return port


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        raise ValueError(f"Unsupported PERSISTENCE_BACKEND: {backend!r} (expected 'memory' or 'sqlite')")

    level = _get_env("LOG_LEVEL", "WARNING").strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown LOG_LEVEL: {level!r}")

    return Settings(
        host=_get_env("TODO_CLI_HOST", DEFAULT_HOST).strip(),
        port=_parse_port(_get_env("TODO_CLI_PORT", str(DEFAULT_PORT))),
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/todos.db").strip(),
        log_level=level,
    )


# PUBLIC_INTERFACE
def configure_logging(level: str = "WARNING") -> logging.Logger:
    """
    Attach a stderr handler to the package logger and set its level.

    Calling this more than once only adjusts the level and re-targets the
    current sys.stderr; the handler is installed a single time.
    """
    logger = logging.getLogger("todo_cli")
    ours = [h for h in logger.handlers if getattr(h, "_todo_cli", False)]
    if ours:
        ours[0].stream = sys.stderr
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        handler._todo_cli = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
