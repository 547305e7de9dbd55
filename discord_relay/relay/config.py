"""Configuration for the relay, read from the environment (and .env)."""

import os
from collections.abc import Mapping

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from discord_relay.core.dispatcher import BackoffStrategy

# Environment variable -> Settings field
REQUIRED_VARS = {
    "DISCORD_BOT_TOKEN": "bot_token",
    "N8N_WEBHOOK_URL": "webhook_url",
    "TARGET_CHANNEL_ID": "channel_id",
}
OPTIONAL_VARS = {
    "PROCESSING_INTERVAL": "processing_interval",
    "MAX_RETRIES": "max_retries",
    "RETRY_BACKOFF": "backoff_strategy",
    "RETRY_BACKOFF_BASE": "backoff_base",
    "REQUEST_TIMEOUT": "request_timeout",
    "DRAIN_POLL_INTERVAL": "drain_poll_interval",
    "QUEUE_MAX_SIZE": "queue_max_size",
    "DEDUPE_TTL": "dedupe_ttl",
    "LOG_LEVEL": "log_level",
}


class ConfigError(ValueError):
    """Raised when required configuration is missing or invalid."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("Config errors:\n  " + "\n  ".join(problems))


class Settings(BaseModel):
    """Validated relay settings."""

    bot_token: str
    webhook_url: str
    channel_id: str
    processing_interval: float = Field(default=5.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    backoff_strategy: BackoffStrategy = BackoffStrategy.LINEAR
    backoff_base: float = Field(default=1.0, ge=0)
    request_timeout: float = Field(default=10.0, gt=0)
    drain_poll_interval: float = Field(default=1.0, gt=0)
    queue_max_size: int = Field(default=0, ge=0)
    dedupe_ttl: float = Field(default=600.0, ge=0)
    log_level: str = "INFO"

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @field_validator("webhook_url")
    @classmethod
    def validate_webhook_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"must be an http(s) URL, got: {v!r}")
        return v

    @field_validator("channel_id")
    @classmethod
    def validate_channel_id(cls, v: str) -> str:
        return v.strip()

    @field_validator("backoff_strategy", mode="before")
    @classmethod
    def normalize_backoff(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.strip().upper()


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from the environment.

    Args:
        environ: Mapping to read instead of ``os.environ``. When omitted, a
            ``.env`` file in the working directory is loaded first.

    Raises:
        ConfigError: Listing every missing required variable, or the
            validation problems of supplied values.
    """
    if environ is None:
        load_dotenv(find_dotenv(usecwd=True))
        environ = os.environ

    missing = [name for name in REQUIRED_VARS if not (environ.get(name) or "").strip()]
    if missing:
        raise ConfigError([f"{name} is required" for name in missing])

    values: dict[str, str] = {field: environ[name].strip() for name, field in REQUIRED_VARS.items()}
    for name, field in OPTIONAL_VARS.items():
        raw = environ.get(name)
        if raw is not None and raw.strip():
            values[field] = raw.strip()

    try:
        return Settings(**values)
    except ValidationError as e:
        field_to_var = {field: name for name, field in {**REQUIRED_VARS, **OPTIONAL_VARS}.items()}
        problems = []
        for err in e.errors():
            field = str(err["loc"][0]) if err["loc"] else "?"
            problems.append(f"{field_to_var.get(field, field)}: {err['msg']}")
        raise ConfigError(problems) from e
