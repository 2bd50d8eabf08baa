"""
Shared configuration management for the Image Cache Gateway.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_UPSTREAM_URL = "https://http.cat"
LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


class GatewayConfig(BaseSettings):
    """Immutable gateway configuration, built once at startup."""

    model_config = SettingsConfigDict(
        env_prefix="CACHE_GATEWAY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Listener
    host: str
    port: int = Field(ge=1, le=65535)

    # Local cache store
    cache_dir: Path

    # Upstream image service
    upstream_url: str = DEFAULT_UPSTREAM_URL
    upstream_timeout: float = Field(default=10.0, gt=0)

    # Observability
    log_level: str = "info"
    metrics_port: Optional[int] = Field(default=None, ge=1, le=65535)

    @field_validator("cache_dir")
    @classmethod
    def _resolve_cache_dir(cls, value: Path) -> Path:
        return (Path.cwd() / value).resolve()

    @field_validator("upstream_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        value = value.lower()
        if value not in LOG_LEVELS:
            raise ValueError(f"must be one of {', '.join(LOG_LEVELS)}")
        return value


def get_config(**overrides) -> GatewayConfig:
    """Build the gateway configuration from the environment plus explicit overrides."""
    return GatewayConfig(**overrides)
