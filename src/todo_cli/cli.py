"""
Local entry point: ``todo-cli <command> ...``.

Runs the command table in-process against the configured repository and
writes rendered output to stdout. Use PERSISTENCE_BACKEND=sqlite to keep
todos between invocations.
"""
from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence

from .commands import UsageError, dispatch
from .render import ConsoleSink
from .services import create_config, create_singleton_services

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run one todo-cli invocation.

    Args:
        argv: Explicit argument list; sys.argv[1:] when None.

    Returns:
        0 on success, 2 on a usage error, 1 on an unexpected error.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        services = create_singleton_services(create_config())
        return dispatch(args, services.repository, ConsoleSink())
    except UsageError as e:
        if e.usage:
            print(e.usage.rstrip("\n"), file=sys.stderr)
        print(e.message, file=sys.stderr)
        return 2
    except Exception as e:  # noqa: BLE001
        logger.debug("Unexpected failure", exc_info=True)
        print(f"Error: {type(e).__name__}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
