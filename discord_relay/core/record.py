"""NormalizedRecord model for the relay.

A record is the wire payload unit: one inbound chat message captured as an
immutable, JSON-serializable value. Field names on the wire are camelCase
to match what the downstream automation endpoint already consumes.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class NormalizationError(ValueError):
    """Raised when an inbound message lacks a required field."""

    def __init__(self, field_name: str, detail: str | None = None):
        self.field_name = field_name
        message = f"message is missing required field: {field_name}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class _Frozen(BaseModel):
    model_config = {
        "extra": "forbid",
        "frozen": True,
        "populate_by_name": True,
    }


class AuthorInfo(_Frozen):
    id: str
    username: str | None = None
    discriminator: str | None = None
    bot: bool = False


class ChannelInfo(_Frozen):
    id: str
    name: str | None = None
    type: str | None = None


class GuildInfo(_Frozen):
    id: str
    name: str | None = None


class AttachmentInfo(_Frozen):
    name: str | None = None
    url: str | None = None
    content_type: str | None = Field(default=None, alias="contentType")
    size: int | None = None


class ReplyReference(_Frozen):
    message_id: str | None = Field(default=None, alias="messageId")
    channel_id: str | None = Field(default=None, alias="channelId")
    guild_id: str | None = Field(default=None, alias="guildId")


class NormalizedRecord(_Frozen):
    """Immutable snapshot of one inbound message.

    Records are:
    - Immutable (frozen after creation, sequences stored as tuples)
    - Validated (ids must be non-empty)
    - Serializable (``to_wire()`` returns the camelCase JSON shape)

    Attributes:
        content: Message body text, empty string when absent.
        author: Author identity.
        channel: Origin channel identity.
        guild: Origin guild, or None for ungrouped channels.
        attachments: Attachment descriptors in message order.
        embeds: Rich embeds, passed through unmodified.
        timestamp: Creation time, ISO-8601 UTC with a ``Z`` suffix.
        message_id: Unique message identifier.
        reference: Reply reference, or None.
    """

    content: str = ""
    author: AuthorInfo
    channel: ChannelInfo
    guild: GuildInfo | None = None
    attachments: tuple[AttachmentInfo, ...] = ()
    embeds: tuple[dict[str, Any], ...] = ()
    timestamp: str
    message_id: str = Field(alias="messageId")
    reference: ReplyReference | None = None

    @field_validator("message_id")
    @classmethod
    def validate_message_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("messageId must not be empty")
        return v

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-compatible dict sent to the sink."""
        return self.model_dump(mode="json", by_alias=True)
