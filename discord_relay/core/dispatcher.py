"""Batch Dispatcher for the relay.

The dispatcher is the only component that removes records from the queue:
- On each tick it snapshots the queue
- Sends the snapshot to the sink as one batch, retrying with backoff
- Removes exactly the snapshot length from the queue on confirmed success

At most one flush is in flight at any time. A tick that finds the dispatch
lock held, or the queue empty, is a no-op.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from discord_relay.core.logging import get_logger
from discord_relay.core.queue import PendingQueue, Snapshot
from discord_relay.sinks.base import DeliveryError

if TYPE_CHECKING:
    from discord_relay.sinks.base import Sink

DEFAULT_INTERVAL = 5.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_BASE = 1.0


class BackoffStrategy(Enum):
    """Delay curve between attempts within one tick.

    LINEAR: attempt * base (1s, 2s, 3s ... with the default base)
    EXPONENTIAL: base * 2 ** (attempt - 1) (1s, 2s, 4s ...)
    """

    LINEAR = "linear"
    EXPONENTIAL = "exponential"


@dataclass
class DispatchStats:
    """Counters from a dispatcher's lifetime."""

    ticks: int = 0
    skipped_ticks: int = 0
    attempts: int = 0
    failed_attempts: int = 0
    batches_delivered: int = 0
    records_delivered: int = 0
    exhausted_ticks: int = 0


def build_batch_payload(snapshot: Snapshot) -> dict[str, Any]:
    """Build the sink body for a snapshot: ``{"batch": [...], "itemCount": n}``."""
    return {
        "batch": [record.to_wire() for record in snapshot.records],
        "itemCount": snapshot.length,
    }


class BatchDispatcher:
    """Periodic batch flusher with bounded retries."""

    def __init__(
        self,
        queue: PendingQueue,
        sink: "Sink",
        interval: float = DEFAULT_INTERVAL,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff: BackoffStrategy = BackoffStrategy.LINEAR,
        backoff_base: float = DEFAULT_BACKOFF_BASE,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        self.queue = queue
        self.sink = sink
        self.interval = interval
        self.max_retries = max_retries
        self.backoff = backoff
        self.backoff_base = backoff_base
        self._sleep = sleep
        self._log = get_logger("discord_relay.dispatcher")
        self._lock = asyncio.Lock()
        self._running = False
        self._stats = DispatchStats()
        self._tick_tasks: set[asyncio.Task[bool]] = set()

    @property
    def is_flushing(self) -> bool:
        """True while a flush (including its retries) is in progress."""
        return self._lock.locked()

    @property
    def running(self) -> bool:
        return self._running

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        if self.backoff == BackoffStrategy.EXPONENTIAL:
            return self.backoff_base * (2 ** (attempt - 1))
        return self.backoff_base * attempt

    def get_stats(self) -> DispatchStats:
        """Return a copy of current statistics."""
        return DispatchStats(**vars(self._stats))

    async def tick(self) -> bool:
        """Run one flush attempt cycle.

        Returns:
            True if a batch was delivered on this tick, False otherwise
            (lock held, queue empty, or all attempts failed).
        """
        self._stats.ticks += 1
        if self._lock.locked() or len(self.queue) == 0:
            self._stats.skipped_ticks += 1
            return False

        async with self._lock:
            snapshot = self.queue.peek_snapshot()
            return await self._flush(snapshot)

    async def _flush(self, snapshot: Snapshot) -> bool:
        payload = build_batch_payload(snapshot)

        for attempt in range(1, self.max_retries + 1):
            self._stats.attempts += 1
            self._log.info(
                f"Attempt {attempt}/{self.max_retries}: sending batch of {snapshot.length} messages",
                extra={"attempt": attempt, "max_attempts": self.max_retries, "item_count": snapshot.length},
            )
            try:
                await self._send(payload)
            except DeliveryError as e:
                self._stats.failed_attempts += 1
                self._log.error(
                    f"Attempt {attempt}/{self.max_retries} failed: {e}",
                    extra={
                        "attempt": attempt,
                        "max_attempts": self.max_retries,
                        "item_count": snapshot.length,
                        "error": str(e),
                        "status_code": e.status_code,
                    },
                )
                if attempt == self.max_retries:
                    break
                await self._sleep(self.backoff_delay(attempt))
                continue

            removed = self.queue.remove_prefix(snapshot.length)
            self._stats.batches_delivered += 1
            self._stats.records_delivered += removed
            self._log.info(
                f"Batch of {snapshot.length} messages sent successfully",
                extra={"item_count": snapshot.length, "attempt": attempt, "remaining": len(self.queue)},
            )
            return True

        self._stats.exhausted_ticks += 1
        self._log.error(
            "All retries failed. The batch will be attempted again later.",
            extra={"item_count": snapshot.length, "remaining": len(self.queue)},
        )
        return False

    async def _send(self, payload: dict[str, Any]) -> None:
        """One attempt; any sink failure surfaces as DeliveryError."""
        try:
            await self.sink.send(payload)
        except DeliveryError:
            raise
        except Exception as e:
            raise DeliveryError(f"{type(e).__name__}: {e}") from e

    def _spawn_tick(self) -> None:
        task = asyncio.get_running_loop().create_task(self._guarded_tick())
        self._tick_tasks.add(task)
        task.add_done_callback(self._tick_tasks.discard)

    async def _guarded_tick(self) -> bool:
        try:
            return await self.tick()
        except Exception as e:
            self._log.error(f"Dispatch tick raised unexpectedly: {e}", extra={"error": str(e)}, exc_info=True)
            return False

    async def run(self) -> DispatchStats:
        """Fire a tick every ``interval`` seconds until ``stop()`` is called.

        Each tick runs as its own task, so a slow flush does not delay the
        schedule; overlapping ticks are turned away by the dispatch lock.
        """
        self._running = True
        self._log.info(
            f"Dispatcher started (interval={self.interval}s, max_retries={self.max_retries})",
            extra={"interval": self.interval, "max_attempts": self.max_retries},
        )
        while self._running:
            await self._sleep(self.interval)
            if not self._running:
                break
            self._spawn_tick()
        return self.get_stats()

    def stop(self) -> None:
        self._running = False

    async def aclose(self) -> None:
        """Stop scheduling and wait for in-flight ticks to finish."""
        self.stop()
        if self._tick_tasks:
            await asyncio.gather(*list(self._tick_tasks), return_exceptions=True)
