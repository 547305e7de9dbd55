"""Lifecycle Controller: graceful drain on termination.

State machine: RUNNING -> DRAINING -> STOPPED.

The controller does not deliver anything itself. While DRAINING it only
polls the queue length; the dispatcher's own schedule keeps flushing until
the queue is empty.
"""

import asyncio
import signal
from collections.abc import Awaitable, Callable, Iterable
from enum import Enum
from typing import Any

from discord_relay.core.logging import get_logger
from discord_relay.core.queue import PendingQueue

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class LifecycleState(Enum):
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class LifecycleController:
    """Owns the shutdown state and blocks stop until the queue drains.

    Args:
        queue: The pending queue to wait on.
        poll_interval: Seconds between queue length checks while draining.
        on_stopped: Optional async teardown run once the queue is empty,
            before the state becomes STOPPED.
        sleep: Awaitable sleep, injectable for tests.
    """

    def __init__(
        self,
        queue: PendingQueue,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        on_stopped: Callable[[], Awaitable[None]] | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.queue = queue
        self.poll_interval = poll_interval
        self._on_stopped = on_stopped
        self._sleep = sleep
        self._log = get_logger("discord_relay.lifecycle")
        self._state = LifecycleState.RUNNING
        self._stopped = asyncio.Event()
        self._drain_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def is_shutting_down(self) -> bool:
        """True from the first termination request for the rest of the process."""
        return self._state is not LifecycleState.RUNNING

    @property
    def accepting_intake(self) -> bool:
        return self._state is LifecycleState.RUNNING

    def request_shutdown(self, reason: str | None = None) -> bool:
        """Begin draining. Idempotent.

        Must be called from within the running event loop (signal handlers
        installed with ``install_signal_handlers`` are).

        Returns:
            True if this call started the drain, False if one was already underway.
        """
        if self._state is not LifecycleState.RUNNING:
            self._log.debug(
                "Shutdown already requested, ignoring",
                extra={"state": self._state.value, "signal": reason},
            )
            return False

        self._state = LifecycleState.DRAINING
        self._log.info(
            "Shutting down... waiting for message queue to clear.",
            extra={"state": self._state.value, "signal": reason, "remaining": len(self.queue)},
        )
        self._drain_task = asyncio.get_running_loop().create_task(self._drain())
        return True

    async def _drain(self) -> None:
        while len(self.queue) > 0:
            self._log.info(
                f"Waiting for {len(self.queue)} messages to be sent...",
                extra={"remaining": len(self.queue)},
            )
            await self._sleep(self.poll_interval)

        self._log.info("Queue is empty. Relay is now offline.", extra={"remaining": 0})
        try:
            if self._on_stopped is not None:
                await self._on_stopped()
        finally:
            self._state = LifecycleState.STOPPED
            self._stopped.set()

    async def wait_stopped(self) -> None:
        """Block until the drain has completed and teardown has run."""
        await self._stopped.wait()
        if self._drain_task is not None and self._drain_task.done() and not self._drain_task.cancelled():
            # Surface teardown failures to the caller
            self._drain_task.result()

    def install_signal_handlers(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        signals: Iterable[signal.Signals] = DEFAULT_SIGNALS,
    ) -> None:
        """Route termination signals to ``request_shutdown``."""
        loop = loop or asyncio.get_running_loop()
        for sig in signals:
            loop.add_signal_handler(sig, self.request_shutdown, sig.name)
