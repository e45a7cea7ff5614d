"""Maps websocket traffic onto presence, aggregation and history calls.

A connection acts as a visitor (heartbeats), a dashboard (subscribe and
history requests), or both. Handlers never close the connection and never
let one connection's failure reach another.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from livestats.core.clock import now_ms
from livestats.core.logger import get_logger
from livestats.core.metrics import (
    CONNECTIONS_CURRENT,
    HANDLER_ERRORS_TOTAL,
    REJECTED_FRAMES_TOTAL,
)
from livestats.domain import events
from livestats.domain.events import (
    AdminSubscribeEvent,
    AdminUnsubscribeEvent,
    HistoryRequestEvent,
    InboundEvent,
    VisitorDisconnectEvent,
    VisitorHeartbeatEvent,
)
from livestats.domain.paths import categorize_device
from livestats.errors import InvalidEventError, InvalidRangeError
from livestats.history.sampler import HistorySampler
from livestats.presence.aggregator import Aggregator
from livestats.presence.tracker import PresenceTracker

from .subscribers import SubscriberGroup, Transport

logger = get_logger("livestats.gateway")


@dataclass
class Connection:
    connection_id: str
    transport: Transport
    user_agent: str = ""
    tracking: bool = False


class SessionGateway:
    def __init__(
        self,
        tracker: PresenceTracker,
        aggregator: Aggregator,
        sampler: HistorySampler,
        group: SubscriberGroup,
        clock: Callable[[], int] = now_ms,
    ):
        self.tracker = tracker
        self.aggregator = aggregator
        self.sampler = sampler
        self.group = group
        self._clock = clock
        self.connection_count = 0

    async def connect(self, connection: Connection):
        self.connection_count += 1
        CONNECTIONS_CURRENT.set(self.connection_count)
        logger.info(
            "client_connected", extra={"connection_id": connection.connection_id}
        )
        await self._send(connection, events.frame(events.CONNECTION_ACK))

    async def receive(self, connection: Connection, raw: str | bytes | dict):
        """Parse one inbound frame and dispatch it."""
        try:
            event = events.parse_frame(raw)
        except InvalidEventError as e:
            REJECTED_FRAMES_TOTAL.inc()
            logger.warning(
                "frame_rejected",
                extra={"connection_id": connection.connection_id, "error": str(e)},
            )
            # A bad history request is answered on the history channel
            reply = (
                events.HISTORY_ERROR
                if e.event == events.HISTORY_REQUEST
                else events.ERROR
            )
            await self._send(connection, events.error_frame(reply, str(e)))
            return
        await self.dispatch(connection, event)

    async def dispatch(self, connection: Connection, event: InboundEvent):
        if isinstance(event, VisitorHeartbeatEvent):
            await self.on_heartbeat(connection, event)
        elif isinstance(event, VisitorDisconnectEvent):
            await self.on_disconnect(connection)
        elif isinstance(event, AdminSubscribeEvent):
            await self.on_subscribe(connection)
        elif isinstance(event, AdminUnsubscribeEvent):
            self.on_unsubscribe(connection)
        elif isinstance(event, HistoryRequestEvent):
            await self.on_history_request(connection, event)
        else:  # pragma: no cover - closed union
            raise TypeError(f"Unhandled event type: {type(event).__name__}")

    async def close(self, connection: Connection):
        """Implicit disconnect: the transport went away."""
        self.group.leave(connection.connection_id)
        await self.on_disconnect(connection)
        self.connection_count = max(0, self.connection_count - 1)
        CONNECTIONS_CURRENT.set(self.connection_count)
        logger.info(
            "client_disconnected", extra={"connection_id": connection.connection_id}
        )

    # Handlers

    async def on_heartbeat(self, connection: Connection, event: VisitorHeartbeatEvent):
        data = event.data
        device = data.device_category or categorize_device(connection.user_agent)
        try:
            await self.tracker.record_heartbeat(
                connection.connection_id,
                data.page_hash,
                device,
                data.screen_bucket,
                self._clock(),
            )
            connection.tracking = True
        except Exception as e:
            self._handler_failed(connection, events.VISITOR_HEARTBEAT, e)

    async def on_disconnect(self, connection: Connection):
        if not connection.tracking:
            return
        try:
            await self.tracker.record_disconnect(
                connection.connection_id, self._clock()
            )
            connection.tracking = False
        except Exception as e:
            self._handler_failed(connection, events.VISITOR_DISCONNECT, e)

    async def on_subscribe(self, connection: Connection):
        self.group.join(connection.connection_id, connection.transport)
        logger.info(
            "admin_subscribed", extra={"connection_id": connection.connection_id}
        )
        try:
            snapshot = await self.aggregator.compute_snapshot(self._clock())
        except Exception as e:
            self._handler_failed(connection, events.ADMIN_SUBSCRIBE, e)
            return
        await self._send(connection, events.stats_update(snapshot))

    def on_unsubscribe(self, connection: Connection):
        if self.group.leave(connection.connection_id):
            logger.info(
                "admin_unsubscribed", extra={"connection_id": connection.connection_id}
            )

    async def on_history_request(
        self, connection: Connection, event: HistoryRequestEvent
    ):
        try:
            stats = await self.sampler.get_history(event.data, self._clock())
        except InvalidRangeError as e:
            await self._send(
                connection, events.error_frame(events.HISTORY_ERROR, str(e))
            )
            return
        except Exception as e:
            self._handler_failed(connection, events.HISTORY_REQUEST, e)
            await self._send(
                connection,
                events.error_frame(events.HISTORY_ERROR, str(e) or "Unknown error"),
            )
            return
        await self._send(connection, events.history_response(stats))

    # Internals

    def _handler_failed(self, connection: Connection, event: str, exc: Exception):
        HANDLER_ERRORS_TOTAL.labels(event=event).inc()
        logger.error(
            "event_handler_failed",
            extra={
                "connection_id": connection.connection_id,
                "event": event,
                "error": str(exc),
            },
            exc_info=True,
        )

    async def _send(self, connection: Connection, message: Any):
        try:
            await connection.transport.send_json(message)
        except Exception as e:
            logger.warning(
                "client_send_failed",
                extra={"connection_id": connection.connection_id, "error": str(e)},
            )
