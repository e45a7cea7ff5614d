"""Prometheus helpers.

Every metric is registered on the default registry under a
``<service>_`` prefix, so the /metrics route can expose all of them with
generate_latest().
"""

from __future__ import annotations

import re
from typing import Sequence

from prometheus_client import Counter, Gauge, Histogram

_NAME_RE = re.compile(r"^[a-z_][a-z0-9_]*$")

# Store round-trips are sub-millisecond locally and tens of ms when degraded
LATENCY_BUCKETS = (0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0)


def metric_name(name: str, service: str | None = None) -> str:
    if service and not name.startswith(service + "_"):
        name = f"{service}_{name}"
    if not _NAME_RE.match(name):
        raise ValueError(f"Invalid metric name '{name}': use snake_case")
    return name


def get_counter(
    name: str,
    documentation: str,
    service: str | None = None,
    labelnames: Sequence[str] = (),
) -> Counter:
    return Counter(metric_name(name, service), documentation, labelnames)


def get_gauge(name: str, documentation: str, service: str | None = None) -> Gauge:
    return Gauge(metric_name(name, service), documentation)


def get_histogram(
    name: str,
    documentation: str,
    service: str | None = None,
    buckets: Sequence[float] = LATENCY_BUCKETS,
) -> Histogram:
    return Histogram(metric_name(name, service), documentation, buckets=buckets)


__all__ = ["LATENCY_BUCKETS", "get_counter", "get_gauge", "get_histogram", "metric_name"]
