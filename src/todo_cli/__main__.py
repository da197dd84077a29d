"""Allow ``python -m todo_cli`` invocation; same as the ``todo-cli`` script."""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
