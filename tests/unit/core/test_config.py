import pytest
from livestats.core.config import Settings
from pydantic import ValidationError


def test_defaults(monkeypatch):
    for var in ("PORT", "REDIS_URL", "STATS_TTL", "CORS_ORIGINS"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.delenv("BROADCAST_INTERVAL", raising=False)
    monkeypatch.delenv("SNAPSHOT_INTERVAL", raising=False)

    s = Settings(_env_file=None)

    assert s.port == 3001
    assert s.redis_url == "redis://localhost:6379"
    assert s.stats_ttl_seconds == 300
    assert s.cors_origins == ["*"]
    assert s.broadcast_interval_ms == 2000
    assert s.snapshot_interval_ms == 10000
    assert s.history_top_pages == 5
    assert s.max_tracked_pages == 0
    assert s.service_name == "livestats"
    assert not hasattr(s, "otel_service_name")


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "4000")
    monkeypatch.setenv("REDIS_URL", "redis://cache:6380/1")
    monkeypatch.setenv("STATS_TTL", "60")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("BROADCAST_INTERVAL", "500")
    monkeypatch.setenv("SNAPSHOT_INTERVAL", "1000")

    s = Settings(_env_file=None)

    assert s.port == 4000
    assert s.redis_url == "redis://cache:6380/1"
    assert s.stats_ttl_seconds == 60
    assert s.cors_origins == ["https://a.example", "https://b.example"]
    assert s.broadcast_interval_ms == 500
    assert s.snapshot_interval_ms == 1000


def test_field_names_accepted_as_kwargs():
    s = Settings(_env_file=None, stats_ttl_seconds=30, cors_origins=["https://x"])

    assert s.stats_ttl_seconds == 30
    assert s.cors_origins == ["https://x"]


def test_non_positive_intervals_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, broadcast_interval_ms=0)
    with pytest.raises(ValidationError):
        Settings(_env_file=None, stats_ttl_seconds=0)


def test_redis_socket_timeout(monkeypatch):
    monkeypatch.delenv("REDIS_SOCKET_TIMEOUT", raising=False)
    assert Settings(_env_file=None).redis_socket_timeout == 5.0

    monkeypatch.setenv("REDIS_SOCKET_TIMEOUT", "1.5")
    assert Settings(_env_file=None).redis_socket_timeout == 1.5

    with pytest.raises(ValidationError):
        Settings(_env_file=None, redis_socket_timeout=0)


def test_port_must_be_valid():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, port=0)
    with pytest.raises(ValidationError):
        Settings(_env_file=None, port=65536)
