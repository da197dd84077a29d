"""
FastAPI application bridging CLI invocations over a WebSocket.

Endpoints:
    GET /       Health check
    WS  /cli    Run todo-cli commands remotely

Frame protocol on /cli (JSON):
    client -> {"argv": ["add", "Buy milk", "-p", "high"]}
    server <- {"type": "output", "lines": [...], "exitCode": 0}
    server <- {"type": "error", "message": "...", "exitCode": 2}
    server <- {"type": "error", "message": "Error: ...", "exitCode": 1}   command crashed
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool

from .commands import UsageError, dispatch
from .services import SingletonServices, WireServices, create_wire_services

logger = logging.getLogger(__name__)

CLI_PATH = "/cli"
BAD_FRAME_MESSAGE = "Expected a JSON object with an 'argv' list"

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
]


def handle_frame(frame: Any, services: SingletonServices, wire: WireServices) -> Dict[str, Any]:
    """
    Run one client frame through the command table and build the reply frame.
    """
    argv = frame.get("argv") if isinstance(frame, dict) else None
    if not isinstance(argv, list) or not all(isinstance(a, str) for a in argv):
        return {"type": "error", "message": BAD_FRAME_MESSAGE, "exitCode": 2}

    try:
        code = dispatch(argv, services.repository, wire.out)
    except UsageError as e:
        wire.out.drain()
        return {"type": "error", "message": e.message, "usage": e.usage, "exitCode": 2}
    except Exception as e:  # noqa: BLE001
        logger.exception("Command %s failed", argv)
        wire.out.drain()
        return {"type": "error", "message": f"Error: {type(e).__name__}: {e}", "exitCode": 1}
    return {"type": "output", "lines": wire.out.drain(), "exitCode": code}


# PUBLIC_INTERFACE
def create_app(services: SingletonServices) -> FastAPI:
    """
    Build the FastAPI app around an already constructed set of singleton
    services. Each WebSocket connection gets its own wire services.
    """
    app = FastAPI(
        title="todo-cli",
        description="WebSocket bridge for the todo-cli command table.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )
    settings = services.settings

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    @app.websocket(CLI_PATH)
    async def cli_bridge(websocket: WebSocket):
        """Run CLI invocations sent by the client and stream back rendered lines."""
        await websocket.accept()
        wire = create_wire_services(services)
        logger.info("CLI client connected")
        try:
            while True:
                try:
                    frame = await websocket.receive_json()
                except ValueError:
                    await websocket.send_json({"type": "error", "message": BAD_FRAME_MESSAGE, "exitCode": 2})
                    continue
                # sqlite I/O blocks, so commands run off the event loop
                reply = await run_in_threadpool(handle_frame, frame, services, wire)
                await websocket.send_json(reply)
        except WebSocketDisconnect:
            logger.info("CLI client disconnected")

    return app
