import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from livestats import __version__
from livestats.api.dependencies import get_service
from livestats.core.clock import now_ms
from livestats.services.live_stats_service import LiveStatsService

router = APIRouter()
_start_time = time.monotonic()


@router.get("/health")
async def health(service: LiveStatsService = Depends(get_service)):
    try:
        await service.redis.ping()
    except Exception as e:
        return JSONResponse(
            status_code=503,
            content={
                "status": "degraded",
                "timestamp": now_ms(),
                "redis": "down",
                "error": str(e),
            },
        )
    return {"status": "ok", "timestamp": now_ms(), "redis": "ready"}


@router.get("/info")
async def info(service: LiveStatsService = Depends(get_service)):
    return {
        "name": "livestats",
        "version": __version__,
        "uptime": time.monotonic() - _start_time,
        "connections": service.gateway.connection_count,
    }
