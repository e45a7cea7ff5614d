from uuid import uuid4

from fastapi import APIRouter, WebSocket, status
from livestats.core.logger import get_logger
from livestats.realtime.gateway import Connection
from livestats.services.live_stats_service import LiveStatsService

router = APIRouter()
logger = get_logger("livestats.ws")


def _origin_allowed(origin: str | None, allowed: list[str]) -> bool:
    if "*" in allowed:
        return True
    return origin is not None and origin in allowed


@router.websocket("/ws")
async def stats_socket(websocket: WebSocket):
    service: LiveStatsService = websocket.app.state.service
    origin = websocket.headers.get("origin")
    if not service.accepting or not _origin_allowed(
        origin, service.settings.cors_origins
    ):
        logger.warning("websocket_refused", extra={"origin": origin})
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    connection = Connection(
        connection_id=uuid4().hex,
        transport=websocket,
        user_agent=websocket.headers.get("user-agent", ""),
    )
    gateway = service.gateway
    await gateway.connect(connection)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await gateway.receive(connection, raw)
    finally:
        await gateway.close(connection)
