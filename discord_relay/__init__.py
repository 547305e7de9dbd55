"""discord_relay - batch relay from a monitored chat channel to an HTTP webhook."""

from discord_relay.core import (
    BackoffStrategy,
    BatchDispatcher,
    DispatchStats,
    LifecycleController,
    LifecycleState,
    NormalizationError,
    NormalizedRecord,
    PendingQueue,
    QueueFullError,
    Snapshot,
    normalize_message,
)
from discord_relay.sinks import DeliveryError, Sink, WebhookSink

__version__ = "0.1.0"

__all__ = [
    # Core
    "NormalizedRecord",
    "normalize_message",
    "PendingQueue",
    "Snapshot",
    "BatchDispatcher",
    "DispatchStats",
    "LifecycleController",
    "LifecycleState",
    # Failure handling
    "BackoffStrategy",
    "NormalizationError",
    "QueueFullError",
    "DeliveryError",
    # Sinks
    "Sink",
    "WebhookSink",
    # Meta
    "__version__",
]
