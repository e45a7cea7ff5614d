from fastapi import Request
from livestats.services.live_stats_service import LiveStatsService


def get_service(request: Request) -> LiveStatsService:
    return request.app.state.service  # type: ignore[return-value]
