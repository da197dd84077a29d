"""
Server entry point: ``todo-cli-server`` / ``python -m todo_cli.server``.

Loads configuration, builds the singleton services and serves the
WebSocket bridge with uvicorn until interrupted. Any startup failure,
including a listener that cannot bind, is reported on stderr and the
process exits with status 1.
"""
from __future__ import annotations

import logging
import sys

import uvicorn

from .app import CLI_PATH, create_app
from .services import create_config, create_singleton_services

logger = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """The listener did not come up."""


class CLIServer(uvicorn.Server):
    """uvicorn server that announces readiness once its sockets are bound."""

    async def startup(self, sockets=None) -> None:
        await super().startup(sockets=sockets)
        if self.started:
            print('Server ready! Run "todo-cli-remote <command>" in another terminal to connect.')


def serve(server: uvicorn.Server) -> None:
    """
    Run the server until it shuts down.

    Raises:
        StartupError: uvicorn failed to start, whether it exited or just returned.
    """
    bind = f"{server.config.host}:{server.config.port}"
    try:
        # uvicorn installs the SIGINT/SIGTERM handlers and shuts down cleanly
        server.run()
    except SystemExit as e:
        if not server.started:
            raise StartupError(f"could not start listener on {bind} (exit status {e.code})") from e
        raise
    if not server.started:
        raise StartupError(f"could not start listener on {bind}")


# PUBLIC_INTERFACE
def main() -> int:
    """Start the server; returns the process exit code."""
    try:
        config = create_config()
        singleton_services = create_singleton_services(config)
        app = create_app(singleton_services)

        print(f"CLI WebSocket server starting on ws://{config.host}:{config.port}{CLI_PATH}")
        serve(
            CLIServer(
                uvicorn.Config(app, host=config.host, port=config.port, log_level=config.log_level.lower())
            )
        )
    except Exception as e:  # noqa: BLE001
        logger.exception("Server failed to start")
        print(f"Server error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
