from __future__ import annotations


class LiveStatsError(Exception):
    """Base class for errors raised by the live stats service."""


class InvalidEventError(LiveStatsError):
    """An inbound websocket frame could not be parsed into a known event.

    ``event`` is the frame's event name when it had one.
    """

    def __init__(self, message: str, event: str | None = None):
        super().__init__(message)
        self.event = event


class InvalidRangeError(LiveStatsError):
    """A history request named a time range that is not tracked."""

    def __init__(self, time_range: object):
        super().__init__(f"Unsupported time range: {time_range!r}")
        self.time_range = time_range


class StartupError(LiveStatsError):
    """The service could not reach its store while booting."""
