"""discord.py client that feeds the message intake."""

import discord

from discord_relay.core.logging import get_logger
from discord_relay.relay.intake import MessageIntake


def default_intents() -> discord.Intents:
    """Guilds, guild messages and message content."""
    intents = discord.Intents.none()
    intents.guilds = True
    intents.guild_messages = True
    intents.message_content = True
    return intents


class RelayClient(discord.Client):
    """Gateway client forwarding every ``on_message`` to a MessageIntake."""

    def __init__(self, intake: MessageIntake, **options) -> None:
        options.setdefault("intents", default_intents())
        super().__init__(**options)
        self.intake = intake
        self._log = get_logger("discord_relay.client")

    async def on_ready(self) -> None:
        self._log.info(
            f"Bot online as {self.user} | Monitoring channel: {self.intake.channel_id}",
            extra={"channel_id": self.intake.channel_id},
        )

    async def on_message(self, message: discord.Message) -> None:
        self.intake.handle(message)
