"""Tests for the Event Normalizer and the NormalizedRecord wire shape."""

import json
from datetime import UTC, datetime, timedelta, timezone
from types import SimpleNamespace

import pydantic
import pytest
from hypothesis import given
from hypothesis import strategies as st

from discord_relay.core.normalizer import format_timestamp, normalize_message
from discord_relay.core.record import NormalizationError, NormalizedRecord
from tests.conftest import MONITORED_CHANNEL, make_message


class FakeEmbed:
    """Mimics discord.Embed's to_dict()."""

    def __init__(self, data: dict):
        self._data = data

    def to_dict(self) -> dict:
        return dict(self._data)


class TestNormalizeMessage:
    def test_minimal_message(self):
        record = normalize_message(make_message())

        assert record.message_id == "900000000000000001"
        assert record.content == "hello"
        assert record.author.id == "222222222222222222"
        assert record.author.username == "alice"
        assert record.author.bot is False
        assert record.channel.id == MONITORED_CHANNEL
        assert record.channel.type == "text"
        assert record.guild is None
        assert record.attachments == ()
        assert record.embeds == ()
        assert record.reference is None

    def test_numeric_ids_become_strings(self):
        record = normalize_message(make_message(message_id=123, author_id=456, channel_id=789))

        assert record.message_id == "123"
        assert record.author.id == "456"
        assert record.channel.id == "789"

    def test_missing_content_is_empty_string(self):
        record = normalize_message(make_message(content=None))
        assert record.content == ""

    def test_guild_attachments_embeds_and_reference(self):
        message = make_message(
            guild=SimpleNamespace(id=42, name="Guild"),
            attachments=[
                SimpleNamespace(
                    filename="a.png", url="https://cdn.example/a.png", content_type="image/png", size=1024
                ),
                SimpleNamespace(filename="b.txt", url="https://cdn.example/b.txt", content_type=None, size=7),
            ],
            embeds=[FakeEmbed({"title": "T", "fields": [{"name": "n", "value": "v"}]}), {"type": "rich"}],
            reference=SimpleNamespace(message_id=5, channel_id=6, guild_id=None),
        )

        record = normalize_message(message)

        assert record.guild is not None
        assert record.guild.id == "42"
        assert record.guild.name == "Guild"
        assert [a.name for a in record.attachments] == ["a.png", "b.txt"]
        assert record.attachments[0].content_type == "image/png"
        assert record.attachments[1].size == 7
        assert record.embeds[0] == {"title": "T", "fields": [{"name": "n", "value": "v"}]}
        assert record.embeds[1] == {"type": "rich"}
        assert record.reference is not None
        assert record.reference.message_id == "5"
        assert record.reference.channel_id == "6"
        assert record.reference.guild_id is None

    @pytest.mark.parametrize(
        "overrides,field_name",
        [
            ({"message_id": None}, "id"),
            ({"message_id": "   "}, "id"),
            ({"author_id": None}, "author.id"),
            ({"channel_id": None}, "channel.id"),
        ],
    )
    def test_missing_required_ids(self, overrides, field_name):
        with pytest.raises(NormalizationError) as exc_info:
            normalize_message(make_message(**overrides))
        assert exc_info.value.field_name == field_name

    def test_missing_author_object(self):
        message = make_message()
        message.author = None
        with pytest.raises(NormalizationError, match="author.id"):
            normalize_message(message)

    def test_missing_created_at(self):
        message = make_message()
        message.created_at = None
        with pytest.raises(NormalizationError, match="created_at"):
            normalize_message(message)

    def test_unsupported_embed(self):
        with pytest.raises(NormalizationError, match="embeds"):
            normalize_message(make_message(embeds=[object()]))

    def test_invalid_field_type_raises_normalization_error(self):
        attachment = SimpleNamespace(filename="a", url="u", content_type=None, size="big")
        with pytest.raises(NormalizationError) as exc_info:
            normalize_message(make_message(attachments=[attachment]))
        assert exc_info.value.field_name == "size"
        assert isinstance(exc_info.value.__cause__, pydantic.ValidationError)

    def test_non_string_content_raises_normalization_error(self):
        with pytest.raises(NormalizationError) as exc_info:
            normalize_message(make_message(content=12345))
        assert exc_info.value.field_name == "content"

    def test_malformed_attachments_container_raises_normalization_error(self):
        message = make_message()
        message.attachments = 5
        with pytest.raises(NormalizationError) as exc_info:
            normalize_message(message)
        assert isinstance(exc_info.value.__cause__, TypeError)

    def test_normalization_error_is_value_error(self):
        with pytest.raises(ValueError):
            normalize_message(SimpleNamespace())


class TestTimestamp:
    def test_utc_with_milliseconds_and_z(self):
        ts = format_timestamp(datetime(2024, 5, 1, 12, 30, 0, 123456, tzinfo=UTC))
        assert ts == "2024-05-01T12:30:00.123Z"

    def test_converts_other_timezones_to_utc(self):
        tz = timezone(timedelta(hours=2))
        ts = format_timestamp(datetime(2024, 5, 1, 14, 0, 0, tzinfo=tz))
        assert ts == "2024-05-01T12:00:00.000Z"

    def test_naive_is_treated_as_utc(self):
        assert format_timestamp(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05.000Z"


class TestRecordImmutability:
    def test_record_is_frozen(self):
        record = normalize_message(make_message())
        with pytest.raises(pydantic.ValidationError):
            record.content = "changed"

    def test_nested_models_are_frozen(self):
        record = normalize_message(make_message())
        with pytest.raises(pydantic.ValidationError):
            record.author.username = "mallory"

    def test_extra_fields_rejected(self):
        wire = normalize_message(make_message()).to_wire()
        wire["unexpected"] = True
        with pytest.raises(pydantic.ValidationError):
            NormalizedRecord.model_validate(wire)


class TestWireFormat:
    def test_wire_keys_are_camel_case(self):
        message = make_message(
            attachments=[SimpleNamespace(filename="a", url="u", content_type="text/plain", size=1)],
            reference=SimpleNamespace(message_id=1, channel_id=2, guild_id=3),
        )
        wire = normalize_message(message).to_wire()

        assert set(wire) == {
            "content",
            "author",
            "channel",
            "guild",
            "attachments",
            "embeds",
            "timestamp",
            "messageId",
            "reference",
        }
        assert wire["attachments"][0] == {"name": "a", "url": "u", "contentType": "text/plain", "size": 1}
        assert wire["reference"] == {"messageId": "1", "channelId": "2", "guildId": "3"}
        assert wire["guild"] is None
        assert wire["timestamp"] == "2024-05-01T12:30:00.123Z"

    def test_wire_is_json_and_reloads_to_equal_record(self):
        record = normalize_message(make_message(embeds=[{"title": "x"}]))
        reloaded = NormalizedRecord.model_validate(json.loads(json.dumps(record.to_wire())))
        assert reloaded == record

    @given(content=st.text(max_size=200), username=st.text(min_size=1, max_size=32))
    def test_arbitrary_text_survives_normalization(self, content: str, username: str):
        record = normalize_message(make_message(content=content, username=username))
        assert record.content == content
        assert record.author.username == username
        json.dumps(record.to_wire())
