"""Event Normalizer: raw chat message -> NormalizedRecord.

Works on any object shaped like a ``discord.Message`` (attribute access only),
so tests can pass plain namespaces. No I/O and no side effects.
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from discord_relay.core.record import (
    AttachmentInfo,
    AuthorInfo,
    ChannelInfo,
    GuildInfo,
    NormalizationError,
    NormalizedRecord,
    ReplyReference,
)


def _id_or_none(value: Any) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _required_id(obj: Any, attr: str, field_name: str) -> str:
    if obj is None:
        raise NormalizationError(field_name)
    value = _id_or_none(getattr(obj, attr, None))
    if value is None:
        raise NormalizationError(field_name)
    return value


def _str_or_none(value: Any) -> str | None:
    return None if value is None else str(value)


def format_timestamp(created_at: datetime) -> str:
    """Render a datetime as UTC ISO-8601 with millisecond precision and ``Z``."""
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    rendered = created_at.astimezone(UTC).isoformat(timespec="milliseconds")
    return rendered.replace("+00:00", "Z")


def _embed_payload(embed: Any) -> dict[str, Any]:
    to_dict = getattr(embed, "to_dict", None)
    if callable(to_dict):
        return dict(to_dict())
    if isinstance(embed, Mapping):
        return dict(embed)
    raise NormalizationError("embeds", f"unsupported embed type {type(embed).__name__}")


def _attachment(att: Any) -> AttachmentInfo:
    # discord.py calls it filename; plain payloads use name
    name = getattr(att, "filename", None) or getattr(att, "name", None)
    content_type = getattr(att, "content_type", None)
    if content_type is None:
        content_type = getattr(att, "contentType", None)
    return AttachmentInfo(
        name=_str_or_none(name),
        url=_str_or_none(getattr(att, "url", None)),
        content_type=_str_or_none(content_type),
        size=getattr(att, "size", None),
    )


def normalize_message(message: Any) -> NormalizedRecord:
    """Convert one inbound message into a NormalizedRecord.

    Args:
        message: A ``discord.Message`` or any object exposing the same attributes.

    Returns:
        The normalized record.

    Raises:
        NormalizationError: If the message id, channel id, author id or
            creation time is missing, or any field cannot be represented.
    """
    try:
        return _build_record(message)
    except ValidationError as e:
        errors = e.errors()
        loc = ".".join(str(part) for part in errors[0]["loc"]) if errors and errors[0]["loc"] else "record"
        raise NormalizationError(loc, errors[0]["msg"] if errors else str(e)) from e
    except (TypeError, AttributeError) as e:
        raise NormalizationError("record", f"{type(e).__name__}: {e}") from e


def _build_record(message: Any) -> NormalizedRecord:
    message_id = _required_id(message, "id", "id")
    author = getattr(message, "author", None)
    author_id = _required_id(author, "id", "author.id")
    channel = getattr(message, "channel", None)
    channel_id = _required_id(channel, "id", "channel.id")

    created_at = getattr(message, "created_at", None)
    if not isinstance(created_at, datetime):
        raise NormalizationError("created_at")

    channel_type = getattr(channel, "type", None)
    guild = getattr(message, "guild", None)
    reference = getattr(message, "reference", None)

    return NormalizedRecord(
        content=getattr(message, "content", None) or "",
        author=AuthorInfo(
            id=author_id,
            username=_str_or_none(getattr(author, "name", None)),
            discriminator=_str_or_none(getattr(author, "discriminator", None)),
            bot=bool(getattr(author, "bot", False)),
        ),
        channel=ChannelInfo(
            id=channel_id,
            name=_str_or_none(getattr(channel, "name", None)),
            type=_str_or_none(channel_type),
        ),
        guild=(
            GuildInfo(id=_required_id(guild, "id", "guild.id"), name=_str_or_none(getattr(guild, "name", None)))
            if guild is not None
            else None
        ),
        attachments=tuple(_attachment(att) for att in getattr(message, "attachments", None) or ()),
        embeds=tuple(_embed_payload(embed) for embed in getattr(message, "embeds", None) or ()),
        timestamp=format_timestamp(created_at),
        message_id=message_id,
        reference=(
            ReplyReference(
                message_id=_id_or_none(getattr(reference, "message_id", None)),
                channel_id=_id_or_none(getattr(reference, "channel_id", None)),
                guild_id=_id_or_none(getattr(reference, "guild_id", None)),
            )
            if reference is not None
            else None
        ),
    )
