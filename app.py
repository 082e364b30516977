import time
from contextlib import asynccontextmanager
from typing import Callable, List, Optional

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from constants import ALLOWED_ORIGINS, LOG_FILE, LOG_LEVEL
from logging_config import get_logger, setup_logging
from registry import ChatRegistry
from relay import RelayEngine
from routers.health import health_router
from scheduler import AsyncioScheduler
from sockets import create_socket_server, register_handlers
from sweeper import InactivitySweeper
from transport import SocketIOTransport

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def create_app(
    allowed_origins: Optional[List[str]] = None,
    clock: Callable[[], float] = time.time,
) -> socketio.ASGIApp:
    """Build the ASGI app: Socket.IO relay in front, FastAPI for plain HTTP."""
    origins = allowed_origins if allowed_origins is not None else ALLOWED_ORIGINS

    registry = ChatRegistry()
    sio = create_socket_server(origins)
    engine = RelayEngine(registry, SocketIOTransport(sio), AsyncioScheduler(), clock=clock)
    register_handlers(sio, engine)
    sweeper = InactivitySweeper(registry, clock=clock)

    @asynccontextmanager
    async def lifespan(api: FastAPI):
        sweeper.start()
        yield
        await sweeper.stop()

    api = FastAPI(title="CipherChat Relay", lifespan=lifespan)

    # Same allow-list as the Socket.IO transport
    api.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
    )
    api.include_router(health_router)

    api.state.registry = registry
    api.state.engine = engine
    api.state.sweeper = sweeper
    api.state.sio = sio

    logger.info(f"Relay application initialized, allowed origins: {origins}")
    return socketio.ASGIApp(sio, other_asgi_app=api)


app = create_app()
