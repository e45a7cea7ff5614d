from __future__ import annotations

import asyncio
from typing import Any, Protocol

from livestats.core.logger import get_logger
from livestats.core.metrics import SUBSCRIBERS_CURRENT

logger = get_logger("livestats.subscribers")


class Transport(Protocol):
    async def send_json(self, data: Any) -> None: ...


class SubscriberGroup:
    """Join/leave membership of dashboard connections.

    Not a queue: a member only receives messages broadcast while it is in
    the group, nothing is replayed.
    """

    def __init__(self):
        self._members: dict[str, Transport] = {}

    def join(self, connection_id: str, transport: Transport):
        self._members[connection_id] = transport
        SUBSCRIBERS_CURRENT.set(len(self._members))

    def leave(self, connection_id: str) -> bool:
        removed = self._members.pop(connection_id, None) is not None
        SUBSCRIBERS_CURRENT.set(len(self._members))
        return removed

    def clear(self):
        self._members.clear()
        SUBSCRIBERS_CURRENT.set(0)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._members

    def __len__(self) -> int:
        return len(self._members)

    async def broadcast(self, message: Any) -> int:
        """Send ``message`` to every member; returns how many got it.

        A member whose send fails is dropped from the group.
        """
        members = list(self._members.items())
        if not members:
            return 0
        results = await asyncio.gather(
            *(transport.send_json(message) for _, transport in members),
            return_exceptions=True,
        )
        delivered = 0
        for (connection_id, _), result in zip(members, results):
            if isinstance(result, Exception):
                logger.warning(
                    "subscriber_send_failed",
                    extra={"connection_id": connection_id, "error": str(result)},
                )
                self.leave(connection_id)
            else:
                delivered += 1
        return delivered
