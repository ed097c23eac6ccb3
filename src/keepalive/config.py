"""Configuration — environment defaults plus the immutable per-run config."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, ValidationError, field_validator
from pydantic_settings import BaseSettings

DEFAULT_INTERVAL = 300


class KeepAliveError(Exception):
    """Base error for the keep-alive tool."""


class ConfigError(KeepAliveError):
    """Raised when a run configuration cannot be built."""


class Settings(BaseSettings):
    """Defaults loaded from environment / .env file. CLI flags override them."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    keepalive_interval: int = DEFAULT_INTERVAL
    keepalive_services: str = ""  # comma-separated, empty = all known
    keepalive_message: str = ""
    keepalive_verbose: bool = False

    # 0 = wait for every command to finish
    keepalive_command_timeout: float = 0

    # Logging (stderr; stdout carries the report)
    log_level: str = "WARNING"

    @field_validator("keepalive_interval", mode="before")
    @classmethod
    def _tolerant_interval(cls, value: object) -> int:
        return coerce_interval(value)


class DisplayOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: bool = True
    emoji: bool = True


class KeepAliveConfig(BaseModel):
    """Built once at start-up and never mutated."""

    model_config = ConfigDict(frozen=True)

    interval_seconds: PositiveInt = DEFAULT_INTERVAL
    services: tuple[str, ...] = ()
    custom_message: str | None = None
    health_checks: bool = True
    verbose: bool = False
    display: DisplayOptions = Field(default_factory=DisplayOptions)

    @field_validator("services", mode="before")
    @classmethod
    def _split_services(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple)):
            return tuple(s.strip() for s in value if isinstance(s, str) and s.strip())
        return value


def coerce_interval(raw: object) -> int:
    """Positive whole seconds, else the default."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return DEFAULT_INTERVAL
    return value if value > 0 else DEFAULT_INTERVAL


def build_config(**kwargs: object) -> KeepAliveConfig:
    """Validate a run configuration, raising ConfigError instead of ValidationError."""
    try:
        return KeepAliveConfig.model_validate(kwargs)
    except ValidationError as e:
        raise ConfigError(str(e)) from e


settings = Settings()
