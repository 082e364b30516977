"""Socket.IO server and the event handlers that feed the relay engine."""
from typing import List

import socketio

from logging_config import get_logger
from relay import RelayEngine

logger = get_logger(__name__)


def create_socket_server(allowed_origins: List[str]) -> socketio.AsyncServer:
    # websocket only, no long-polling fallback
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=allowed_origins,
        cors_credentials=True,
        transports=["websocket"],
    )


def register_handlers(sio: socketio.AsyncServer, engine: RelayEngine) -> None:
    """Wire inbound Socket.IO events to *engine*.

    A failure in one handler is logged and stays local to that connection.
    """

    @sio.event
    async def connect(sid, environ, auth=None):
        origin = environ.get("HTTP_ORIGIN", "unknown")
        logger.info(f"New client connected: {sid} (origin {origin})")

    @sio.event
    async def disconnect(sid, *args):
        await engine.disconnect(sid)

    @sio.on("join-chat")
    async def join_chat(sid, data=None):
        try:
            await engine.join(sid, data)
        except Exception as e:
            logger.error(f"Socket error handling join-chat for {sid}: {e}", exc_info=True)

    @sio.on("message")
    async def message(sid, data=None):
        try:
            await engine.message(sid, data)
        except Exception as e:
            logger.error(f"Socket error handling message for {sid}: {e}", exc_info=True)

    @sio.on("auto-delete-request")
    async def auto_delete_request(sid, data=None):
        try:
            await engine.delete_request(sid, data)
        except Exception as e:
            logger.error(f"Socket error handling auto-delete-request for {sid}: {e}", exc_info=True)
