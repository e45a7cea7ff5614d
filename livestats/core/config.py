from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import NoDecode, SettingsConfigDict

from shared.config import BaseServiceConfig


class Settings(BaseServiceConfig):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # HTTP / websocket
    host: str = "0.0.0.0"
    port: int = Field(
        3001, ge=1, le=65535, validation_alias=AliasChoices("PORT", "port")
    )
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["*"],
        validation_alias=AliasChoices("CORS_ORIGINS", "cors_origins"),
    )

    # Redis
    redis_url: str = Field(
        "redis://localhost:6379",
        validation_alias=AliasChoices("REDIS_URL", "redis_url"),
    )

    # Presence
    stats_ttl_seconds: int = Field(
        300, ge=1, validation_alias=AliasChoices("STATS_TTL", "stats_ttl_seconds")
    )
    max_tracked_pages: int = 0  # 0 = no cap on topPages length

    # Periodic tasks
    broadcast_interval_ms: int = Field(
        2000,
        ge=1,
        validation_alias=AliasChoices("BROADCAST_INTERVAL", "broadcast_interval_ms"),
    )
    snapshot_interval_ms: int = Field(
        10000,
        ge=1,
        validation_alias=AliasChoices("SNAPSHOT_INTERVAL", "snapshot_interval_ms"),
    )
    history_top_pages: int = 5

    service_name: str = "livestats"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [o.strip() for o in value.split(",") if o.strip()] or ["*"]
        return value


settings = Settings()
