"""Sink implementations for batch delivery."""

from discord_relay.sinks.base import DeliveryError, Sink
from discord_relay.sinks.webhook import WebhookSink

__all__ = ["DeliveryError", "Sink", "WebhookSink"]
