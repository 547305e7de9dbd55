"""Relay process entry point.

Wires the pieces together:

    chat client -> MessageIntake -> PendingQueue -> BatchDispatcher -> WebhookSink

and runs until SIGINT/SIGTERM, then drains the queue before exiting.

Usage:
    python -m discord_relay.relay.main
"""

import asyncio
import sys
from collections.abc import Callable
from typing import Any

from discord_relay.core.dispatcher import BatchDispatcher
from discord_relay.core.lifecycle import LifecycleController
from discord_relay.core.logging import configure_logging, get_logger
from discord_relay.core.queue import PendingQueue
from discord_relay.relay.client import RelayClient
from discord_relay.relay.config import ConfigError, Settings, load_settings
from discord_relay.relay.intake import MessageIntake
from discord_relay.sinks.base import Sink
from discord_relay.sinks.webhook import WebhookSink

log = get_logger("discord_relay.relay")


async def run_relay(
    settings: Settings,
    client_factory: Callable[[MessageIntake], Any] | None = None,
    sink: Sink | None = None,
    install_signals: bool = True,
) -> int:
    """Run the relay until a drain completes.

    Args:
        settings: Validated settings.
        client_factory: Builds the chat client from the intake. The client
            must offer ``start(token)`` and ``close()``. Defaults to RelayClient.
        sink: Delivery sink. Defaults to a WebhookSink on ``settings.webhook_url``.
        install_signals: Wire SIGINT/SIGTERM to a graceful drain.

    Returns:
        Process exit status: 0 after a completed drain, 1 if the chat client
        stopped on its own before shutdown was requested.
    """
    client_factory = client_factory or RelayClient
    queue = PendingQueue(max_size=settings.queue_max_size)
    if sink is None:
        sink = WebhookSink(settings.webhook_url, timeout=settings.request_timeout)
    dispatcher = BatchDispatcher(
        queue,
        sink,
        interval=settings.processing_interval,
        max_retries=settings.max_retries,
        backoff=settings.backoff_strategy,
        backoff_base=settings.backoff_base,
    )
    client: Any = None

    async def teardown() -> None:
        await dispatcher.aclose()
        if client is not None:
            await client.close()
        await sink.aclose()

    lifecycle = LifecycleController(queue, poll_interval=settings.drain_poll_interval, on_stopped=teardown)
    intake = MessageIntake(queue, lifecycle, settings.channel_id, dedupe_ttl=settings.dedupe_ttl)
    client = client_factory(intake)

    if install_signals:
        lifecycle.install_signal_handlers()

    dispatcher_task = asyncio.create_task(dispatcher.run())
    client_task = asyncio.create_task(client.start(settings.bot_token))
    stopped_task = asyncio.create_task(lifecycle.wait_stopped())

    await asyncio.wait({client_task, stopped_task}, return_when=asyncio.FIRST_COMPLETED)

    if not stopped_task.done() and not lifecycle.is_shutting_down:
        # The chat client ended without a shutdown request (bad token, fatal gateway error)
        error = client_task.exception() if not client_task.cancelled() else None
        log.error(
            f"Chat client stopped unexpectedly: {error}",
            extra={"error": str(error)},
            exc_info=error,
        )
        stopped_task.cancel()
        await dispatcher.aclose()
        await client.close()
        await sink.aclose()
        dispatcher_task.cancel()
        await asyncio.gather(dispatcher_task, stopped_task, return_exceptions=True)
        return 1

    await stopped_task
    # run() may still be sleeping out its interval
    dispatcher_task.cancel()
    await asyncio.gather(dispatcher_task, client_task, return_exceptions=True)
    return 0


def main() -> None:
    """Main entry point for the relay."""
    configure_logging()
    try:
        settings = load_settings()
    except ConfigError as e:
        log.error(f"Missing or invalid configuration: {e}", extra={"problems": e.problems})
        sys.exit(1)

    configure_logging(settings.log_level)
    sys.exit(asyncio.run(run_relay(settings)))


if __name__ == "__main__":
    main()
