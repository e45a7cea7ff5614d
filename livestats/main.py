from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from redis.asyncio import Redis
from livestats import __version__
from livestats.api.router import api_router
from livestats.core.config import Settings, settings as default_settings
from livestats.core.logger import configure_logging, get_logger
from livestats.errors import StartupError
from livestats.infrastructure.redis.client import connect_redis
from livestats.services.live_stats_service import LiveStatsService

# Configure logging once and get service logger
configure_logging()
logger = get_logger("livestats.main")

RedisFactory = Callable[[Settings], Awaitable[Redis]]


def create_app(
    settings: Optional[Settings] = None,
    redis_factory: RedisFactory = connect_redis,
) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("livestats_starting", extra={"port": settings.port})
        try:
            redis = await redis_factory(settings)
        except StartupError as e:
            logger.error("livestats_startup_failed", extra={"error": str(e)})
            raise
        app.state.service = LiveStatsService(redis, settings)
        await app.state.service.start()
        try:
            yield
        finally:
            logger.info("livestats_stopping")
            await app.state.service.stop()

    app = FastAPI(title="Live Visitor Stats", version=__version__, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.include_router(api_router)

    @app.get("/metrics")
    async def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()
