"""Websocket frame protocol.

Inbound frames are JSON objects ``{"event": <name>, "data": <payload>}``.
They parse into one of a closed set of event models, discriminated by the
``event`` field; anything else is rejected with InvalidEventError.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from livestats.errors import InvalidEventError

from .models import HistoricalStats, Snapshot, VisitorHeartbeat

# Inbound event names
VISITOR_HEARTBEAT = "visitor:heartbeat"
VISITOR_DISCONNECT = "visitor:disconnect"
ADMIN_SUBSCRIBE = "admin:subscribe"
ADMIN_UNSUBSCRIBE = "admin:unsubscribe"
HISTORY_REQUEST = "admin:history:request"

# Outbound event names
CONNECTION_ACK = "connection:ack"
STATS_UPDATE = "stats:update"
HISTORY_RESPONSE = "admin:history:response"
HISTORY_ERROR = "admin:history:error"
ERROR = "error"


class VisitorHeartbeatEvent(BaseModel):
    event: Literal["visitor:heartbeat"]
    data: VisitorHeartbeat


class VisitorDisconnectEvent(BaseModel):
    event: Literal["visitor:disconnect"]
    data: Any = None


class AdminSubscribeEvent(BaseModel):
    event: Literal["admin:subscribe"]
    data: Any = None


class AdminUnsubscribeEvent(BaseModel):
    event: Literal["admin:unsubscribe"]
    data: Any = None


class HistoryRequestEvent(BaseModel):
    event: Literal["admin:history:request"]
    data: str

    @field_validator("data", mode="before")
    @classmethod
    def _unwrap_range(cls, value):
        # Accept both "1h" and {"range": "1h"}
        if isinstance(value, dict):
            return value.get("range", value.get("timeRange"))
        return value


InboundEvent = Annotated[
    Union[
        VisitorHeartbeatEvent,
        VisitorDisconnectEvent,
        AdminSubscribeEvent,
        AdminUnsubscribeEvent,
        HistoryRequestEvent,
    ],
    Field(discriminator="event"),
]

_inbound_adapter: TypeAdapter[InboundEvent] = TypeAdapter(InboundEvent)


def parse_frame(raw: str | bytes | dict) -> InboundEvent:
    """Parse one inbound frame or raise InvalidEventError."""
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (ValueError, UnicodeDecodeError) as e:
            raise InvalidEventError(f"Frame is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise InvalidEventError("Frame must be a JSON object")
    try:
        return _inbound_adapter.validate_python(raw)
    except ValidationError as e:
        errors = e.errors(include_url=False)
        first = errors[0] if errors else {}
        where = ".".join(str(p) for p in first.get("loc", ()))
        name = raw.get("event")
        raise InvalidEventError(
            f"Invalid frame{' at ' + where if where else ''}: "
            f"{first.get('msg', 'validation failed')}",
            event=name if isinstance(name, str) else None,
        ) from e


def frame(event: str, data: Optional[Any] = None) -> dict:
    """Build an outbound frame."""
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True, mode="json")
    return {"event": event, "data": data}


def stats_update(snapshot: Snapshot) -> dict:
    return frame(STATS_UPDATE, snapshot)


def history_response(stats: HistoricalStats) -> dict:
    return frame(HISTORY_RESPONSE, stats)


def error_frame(event: str, message: str) -> dict:
    return frame(event, {"message": message})
