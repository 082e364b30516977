from datetime import datetime, timezone

from fastapi import APIRouter, Request

from logging_config import get_logger
from schemas.chat import HealthResponse

logger = get_logger(__name__)

health_router = APIRouter(tags=["health"])


@health_router.get("/", response_model=HealthResponse)
async def health(request: Request):
    """Liveness probe: process status, current time and number of live chats."""
    registry = request.app.state.registry
    logger.debug(f"Health check from {request.client.host if request.client else 'unknown'}")
    return HealthResponse(
        status="CipherChat WebSocket Server Running",
        timestamp=datetime.now(timezone.utc).isoformat(),
        active_chats=len(registry),
    )
