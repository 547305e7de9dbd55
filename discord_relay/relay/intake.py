"""Message intake: filter, normalize and queue inbound chat messages."""

from dataclasses import dataclass
from typing import Any

from cachetools import TTLCache

from discord_relay.core.lifecycle import LifecycleController
from discord_relay.core.logging import get_logger
from discord_relay.core.normalizer import normalize_message
from discord_relay.core.queue import PendingQueue, QueueFullError
from discord_relay.core.record import NormalizationError, NormalizedRecord

DEFAULT_DEDUPE_TTL = 600.0
DEDUPE_MAX_ENTRIES = 10_000


@dataclass
class IntakeStats:
    """Outcome counters for handled messages."""

    queued: int = 0
    ignored_shutdown: int = 0
    ignored_bot: int = 0
    ignored_channel: int = 0
    dropped_invalid: int = 0
    dropped_duplicate: int = 0
    dropped_full: int = 0


class MessageIntake:
    """Feeds messages from the monitored channel into the pending queue.

    Messages are ignored when shutdown has begun, when the author is a bot,
    or when they come from any channel other than ``channel_id``. Malformed
    messages are logged and dropped, never partially queued. Intake never
    suspends: ``handle`` is synchronous.

    Args:
        queue: Destination queue.
        lifecycle: Controller whose shutdown state gates intake.
        channel_id: The monitored channel id.
        dedupe_ttl: Seconds a queued message id is remembered to drop
            redeliveries. 0 disables the duplicate filter.
    """

    def __init__(
        self,
        queue: PendingQueue,
        lifecycle: LifecycleController,
        channel_id: str | int,
        dedupe_ttl: float = DEFAULT_DEDUPE_TTL,
    ) -> None:
        self.queue = queue
        self.lifecycle = lifecycle
        self.channel_id = str(channel_id).strip()
        self._log = get_logger("discord_relay.intake")
        self._stats = IntakeStats()
        self._seen: TTLCache[str, bool] | None = (
            TTLCache(maxsize=DEDUPE_MAX_ENTRIES, ttl=dedupe_ttl) if dedupe_ttl > 0 else None
        )

    @property
    def stats(self) -> IntakeStats:
        return IntakeStats(**vars(self._stats))

    def is_relevant(self, message: Any) -> bool:
        """Apply the shutdown, bot and channel filters."""
        if self.lifecycle.is_shutting_down:
            self._stats.ignored_shutdown += 1
            return False

        author = getattr(message, "author", None)
        if author is not None and getattr(author, "bot", False):
            self._stats.ignored_bot += 1
            return False

        channel = getattr(message, "channel", None)
        channel_id = getattr(channel, "id", None)
        if channel_id is None or str(channel_id) != self.channel_id:
            self._stats.ignored_channel += 1
            return False

        return True

    def handle(self, message: Any) -> NormalizedRecord | None:
        """Queue one inbound message if it passes the filters.

        Returns:
            The queued record, or None if the message was ignored or dropped.
        """
        if not self.is_relevant(message):
            return None

        try:
            record = normalize_message(message)
        except NormalizationError as e:
            self._stats.dropped_invalid += 1
            self._log.error(f"Error queueing message: {e}", extra={"error": str(e), "field": e.field_name})
            return None

        if self._seen is not None and record.message_id in self._seen:
            self._stats.dropped_duplicate += 1
            self._log.debug(
                f"Duplicate message {record.message_id} ignored",
                extra={"message_id": record.message_id},
            )
            return None

        try:
            self.queue.append(record)
        except QueueFullError as e:
            self._stats.dropped_full += 1
            self._log.error(
                f"Dropping message {record.message_id}: {e}",
                extra={"message_id": record.message_id, "error": str(e)},
            )
            return None

        if self._seen is not None:
            self._seen[record.message_id] = True
        self._stats.queued += 1
        self._log.info(
            f"Queued message from @{record.author.username} (ID: {record.message_id[:6]}...)",
            extra={"message_id": record.message_id, "remaining": len(self.queue)},
        )
        return record
