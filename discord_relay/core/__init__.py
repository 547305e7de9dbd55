"""Core components of the relay's batching/retry queue processor.

Types:
    NormalizedRecord: Immutable, serializable snapshot of one inbound message.
    PendingQueue: Ordered in-memory buffer of records awaiting delivery.
    Snapshot: Immutable copy of the queue contents and its length.
    BatchDispatcher: Periodic flusher with dispatch lock and bounded retries.
    LifecycleController: RUNNING -> DRAINING -> STOPPED shutdown state machine.

Failure Handling:
    NormalizationError: Raised when an inbound message lacks required fields.
    QueueFullError: Raised by a bounded queue that cannot accept more records.
    BackoffStrategy: Enum for the retry delay curve (LINEAR, EXPONENTIAL).
"""

from discord_relay.core.dispatcher import BackoffStrategy, BatchDispatcher, DispatchStats, build_batch_payload
from discord_relay.core.lifecycle import LifecycleController, LifecycleState
from discord_relay.core.normalizer import normalize_message
from discord_relay.core.queue import PendingQueue, QueueFullError, Snapshot
from discord_relay.core.record import (
    AttachmentInfo,
    AuthorInfo,
    ChannelInfo,
    GuildInfo,
    NormalizationError,
    NormalizedRecord,
    ReplyReference,
)

__all__ = [
    "NormalizedRecord",
    "AuthorInfo",
    "ChannelInfo",
    "GuildInfo",
    "AttachmentInfo",
    "ReplyReference",
    "NormalizationError",
    "normalize_message",
    "PendingQueue",
    "Snapshot",
    "QueueFullError",
    "BatchDispatcher",
    "BackoffStrategy",
    "DispatchStats",
    "build_batch_payload",
    "LifecycleController",
    "LifecycleState",
]
