"""
todo-cli package.

A minimal command-line todo manager: a command table with terminal
renderers, pluggable todo storage, and a WebSocket bridge that runs the
same commands remotely.
"""

__version__ = "0.1.0"
