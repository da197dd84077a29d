"""
Remote entry point: ``todo-cli-remote [--url URL] <command> ...``.

Sends the invocation to a running ``todo-cli-server`` over its /cli
WebSocket and prints the rendered lines it sends back.
"""
from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, Optional, Sequence

from websockets.exceptions import WebSocketException
from websockets.sync.client import connect

from .app import CLI_PATH
from .settings import DEFAULT_HOST, DEFAULT_PORT

DEFAULT_URL = f"ws://{DEFAULT_HOST}:{DEFAULT_PORT}{CLI_PATH}"


def _build_parser() -> argparse.ArgumentParser:
    # only --url is ours; everything else, -h included, goes to the server
    parser = argparse.ArgumentParser(
        prog="todo-cli-remote",
        description="Run todo-cli commands against a todo-cli-server.",
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument("--url", default=DEFAULT_URL, help=f"Server WebSocket URL (default: {DEFAULT_URL})")
    return parser


# PUBLIC_INTERFACE
def send(url: str, argv: Sequence[str]) -> Dict[str, Any]:
    """Send one invocation and return the server's reply frame."""
    with connect(url) as ws:
        ws.send(json.dumps({"argv": list(argv)}))
        return json.loads(ws.recv())


# PUBLIC_INTERFACE
def print_reply(reply: Dict[str, Any]) -> int:
    """Print a reply frame the way the local CLI would and return its exit code."""
    if reply.get("type") == "error":
        usage = reply.get("usage")
        if usage:
            print(usage.rstrip("\n"), file=sys.stderr)
        print(reply.get("message", "Unknown error"), file=sys.stderr)
    else:
        for line in reply.get("lines", []):
            print(line)
    return int(reply.get("exitCode", 1))


def main(argv: Optional[Sequence[str]] = None) -> int:
    ns, forwarded = _build_parser().parse_known_args(argv)
    try:
        reply = send(ns.url, forwarded)
    except (OSError, WebSocketException) as e:
        print(f"Could not reach {ns.url}: {e}", file=sys.stderr)
        return 1
    return print_reply(reply)


if __name__ == "__main__":
    sys.exit(main())
