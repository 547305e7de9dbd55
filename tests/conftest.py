"""Pytest configuration, Hypothesis profiles and message fixtures."""

import logging
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any

import pytest
from hypothesis import settings

from discord_relay.core.normalizer import normalize_message
from discord_relay.core.record import NormalizedRecord

# Register Hypothesis profiles
settings.register_profile("ci", max_examples=100)
settings.register_profile("dev", max_examples=20)

# Load dev profile by default, CI can override via --hypothesis-profile=ci
settings.load_profile("dev")

MONITORED_CHANNEL = "111111111111111111"


def make_message(
    message_id: Any = "900000000000000001",
    content: str | None = "hello",
    author_id: Any = "222222222222222222",
    username: str = "alice",
    bot: bool = False,
    channel_id: Any = MONITORED_CHANNEL,
    channel_name: str = "relay",
    guild: SimpleNamespace | None = None,
    attachments: list | None = None,
    embeds: list | None = None,
    created_at: datetime | None = None,
    reference: SimpleNamespace | None = None,
) -> SimpleNamespace:
    """Build an object shaped like a discord.Message."""
    return SimpleNamespace(
        id=message_id,
        content=content,
        author=SimpleNamespace(id=author_id, name=username, discriminator="0", bot=bot),
        channel=SimpleNamespace(id=channel_id, name=channel_name, type="text"),
        guild=guild,
        attachments=attachments or [],
        embeds=embeds or [],
        created_at=created_at or datetime(2024, 5, 1, 12, 30, 0, 123456, tzinfo=UTC),
        reference=reference,
    )


def make_record(index: int) -> NormalizedRecord:
    """A valid record whose message id encodes ``index``."""
    return normalize_message(make_message(message_id=f"{900000000000000000 + index}", content=f"msg {index}"))


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio as the async backend for pytest-asyncio."""
    return "asyncio"


class LogCapture(logging.Handler):
    """Custom handler to capture log records for testing."""

    def __init__(self):
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def messages(self) -> list[str]:
        return [r.getMessage() for r in self.records]


@pytest.fixture
def log_capture():
    """Capture every record under the discord_relay logger namespace."""
    logger = logging.getLogger("discord_relay")
    handler = LogCapture()
    handler.setLevel(logging.DEBUG)

    original_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield handler

    logger.removeHandler(handler)
    logger.setLevel(original_level)
