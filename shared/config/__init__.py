"""Settings bases shared by the service configuration.

Logging and store options live here so ``livestats.core.config.Settings``
only declares what is specific to presence tracking.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class BaseLoggingConfig(BaseSettings):
    app_log_level: str = "INFO"
    app_environment: str = "production"
    # Log fields and messages containing any of these are masked
    app_log_redaction_patterns: list[str] = Field(
        default_factory=lambda: [
            "password",
            "token",
            "secret",
            "authorization",
            "cookie",
        ]
    )


class BaseRedisConfig(BaseSettings):
    redis_url: str = "redis://localhost:6379"
    redis_connect_retries: int = Field(6, ge=1)
    # Seconds; applies to connecting and to every command
    redis_socket_timeout: float = Field(5.0, gt=0)


class BaseServiceConfig(BaseLoggingConfig, BaseRedisConfig):
    """Logging plus Redis settings; ``service_name`` names the service
    in log records and metric prefixes."""

    service_name: str = "unknown"


__all__ = ["BaseLoggingConfig", "BaseRedisConfig", "BaseServiceConfig"]
