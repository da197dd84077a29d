import pytest

from todo_cli.render import BufferSink
from todo_cli.repositories import InMemoryRepository

_ENV_VARS = ("TODO_CLI_HOST", "TODO_CLI_PORT", "PERSISTENCE_BACKEND", "SQLITE_DB_PATH", "LOG_LEVEL")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # Default to the memory backend so tests never touch ./data
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def sink():
    return BufferSink()
