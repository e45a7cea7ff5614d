"""Value objects exchanged between the presence engine and its clients.

Every outbound model serialises with camelCase keys (``totalVisitors``,
``pageHash``...) which is what dashboard clients read.
"""

from __future__ import annotations

import json
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

DeviceCategory = Literal["mobile", "desktop", "tablet"]
DEVICE_CATEGORIES: tuple[str, ...] = ("mobile", "desktop", "tablet")

TimeRange = Literal["1h", "24h"]
RETENTION_MS: dict[str, int] = {
    "1h": 60 * 60 * 1000,
    "24h": 24 * 60 * 60 * 1000,
}


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class VisitorHeartbeat(CamelModel):
    """Payload of a ``visitor:heartbeat`` frame."""

    page_hash: str = Field(..., min_length=1, max_length=2048)
    device_category: Optional[DeviceCategory] = None
    screen_bucket: str = Field("unknown", max_length=32)
    timestamp: Optional[int] = Field(None, description="Client epoch-ms")


class SessionRecord(CamelModel):
    """What the store keeps for one live connection."""

    page_hash: str
    device_category: DeviceCategory
    screen_bucket: str
    last_heartbeat: int


class PageStats(CamelModel):
    page_hash: str
    original_path: Optional[str] = None
    visitors: int


class DeviceBreakdown(CamelModel):
    mobile: int = 0
    desktop: int = 0
    tablet: int = 0

    def total(self) -> int:
        return self.mobile + self.desktop + self.tablet


class Snapshot(CamelModel):
    """Live aggregate view at ``last_update`` (epoch ms)."""

    total_visitors: int
    top_pages: tuple[PageStats, ...] = ()
    device_breakdown: DeviceBreakdown = DeviceBreakdown()
    last_update: int


class TimeSeriesPoint(CamelModel):
    timestamp: int
    value: int

    def to_member(self) -> str:
        """Sorted-set member encoding, scored separately by ``timestamp``."""
        return json.dumps({"timestamp": self.timestamp, "value": self.value})

    @classmethod
    def from_member(cls, raw: str | bytes) -> Optional["TimeSeriesPoint"]:
        try:
            return cls.model_validate_json(raw)
        except ValidationError:
            return None


class DeviceSeries(CamelModel):
    mobile: list[TimeSeriesPoint] = Field(default_factory=list)
    desktop: list[TimeSeriesPoint] = Field(default_factory=list)
    tablet: list[TimeSeriesPoint] = Field(default_factory=list)


class HistoricalPageStats(CamelModel):
    page_hash: str
    original_path: Optional[str] = None
    data_points: list[TimeSeriesPoint] = Field(default_factory=list)


class HistoricalStats(CamelModel):
    total_visitors: list[TimeSeriesPoint] = Field(default_factory=list)
    device_breakdown: DeviceSeries = Field(default_factory=DeviceSeries)
    top_pages: list[HistoricalPageStats] = Field(default_factory=list)
    time_range: TimeRange
    start_time: int
    end_time: int
