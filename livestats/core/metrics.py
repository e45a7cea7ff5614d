from shared.metrics import get_counter, get_gauge, get_histogram

SERVICE = "livestats"

# Presence writes
HEARTBEATS_TOTAL = get_counter(
    "heartbeats_total", "Visitor heartbeats written to the store.", SERVICE
)
DISCONNECTS_TOTAL = get_counter(
    "disconnects_total", "Session records removed on disconnect.", SERVICE
)

# Gateway
CONNECTIONS_CURRENT = get_gauge(
    "connections_current", "Open websocket connections.", SERVICE
)
REJECTED_FRAMES_TOTAL = get_counter(
    "rejected_frames_total", "Inbound frames rejected as malformed.", SERVICE
)
HANDLER_ERRORS_TOTAL = get_counter(
    "handler_errors_total",
    "Inbound event handlers that failed downstream.",
    SERVICE,
    labelnames=("event",),
)

# Broadcast
SUBSCRIBERS_CURRENT = get_gauge(
    "subscribers_current", "Members of the stats broadcast group.", SERVICE
)

# Periodic tasks
PERIODIC_TICK_FAILURES_TOTAL = get_counter(
    "periodic_tick_failures_total",
    "Periodic task ticks that raised.",
    SERVICE,
    labelnames=("task",),
)
HISTORY_SAMPLES_TOTAL = get_counter(
    "history_samples_total", "Snapshots written into the history windows.", SERVICE
)

# Aggregation
SNAPSHOT_LATENCY_SECONDS = get_histogram(
    "snapshot_latency_seconds", "Latency of computing one live snapshot.", SERVICE
)
