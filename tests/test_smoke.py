"""Smoke tests for package wiring."""

import discord

import discord_relay
from discord_relay.core.lifecycle import LifecycleController
from discord_relay.core.queue import PendingQueue
from discord_relay.relay.client import RelayClient, default_intents
from discord_relay.relay.intake import MessageIntake
from tests.conftest import MONITORED_CHANNEL, make_message


def test_public_api():
    assert discord_relay.__version__ == "0.1.0"
    for name in discord_relay.__all__:
        assert hasattr(discord_relay, name), name


def test_default_intents_include_message_content():
    intents = default_intents()
    assert intents.guilds
    assert intents.guild_messages
    assert intents.message_content
    assert not intents.members


async def test_relay_client_forwards_messages_to_intake():
    queue = PendingQueue()
    intake = MessageIntake(queue, LifecycleController(queue), MONITORED_CHANNEL)
    client = RelayClient(intake)

    assert isinstance(client, discord.Client)
    assert client.intents.message_content

    await client.on_message(make_message())
    await client.on_message(make_message(message_id="2", bot=True))

    assert len(queue) == 1
