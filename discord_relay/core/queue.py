"""Pending Queue: ordered in-memory buffer of records awaiting delivery."""

from collections import deque
from dataclasses import dataclass

from discord_relay.core.logging import get_logger
from discord_relay.core.record import NormalizedRecord

logger = get_logger("discord_relay.queue")


class QueueFullError(Exception):
    """Raised when a bounded queue is full and cannot accept more records."""

    pass


@dataclass(frozen=True)
class Snapshot:
    """Immutable copy of the queue contents at one instant."""

    records: tuple[NormalizedRecord, ...]

    @property
    def length(self) -> int:
        return len(self.records)

    def __len__(self) -> int:
        return len(self.records)


class PendingQueue:
    """FIFO buffer of NormalizedRecords.

    Insertion order is arrival order is delivery order. Intake only appends;
    only the dispatcher removes, and only the prefix it has confirmed as
    delivered.

    Args:
        max_size: Maximum number of queued records. 0 means unbounded (default).
    """

    def __init__(self, max_size: int = 0) -> None:
        if max_size < 0:
            raise ValueError(f"max_size must be >= 0, got {max_size}")
        self._items: deque[NormalizedRecord] = deque()
        self._max_size = max_size

    @property
    def max_size(self) -> int:
        return self._max_size

    def append(self, record: NormalizedRecord) -> None:
        """Add a record at the tail.

        Raises:
            QueueFullError: If queue is full (when max_size > 0).
        """
        if self._max_size > 0 and len(self._items) >= self._max_size:
            raise QueueFullError(f"Queue full (max_size={self._max_size}), cannot append record")
        self._items.append(record)

    def peek_snapshot(self) -> Snapshot:
        """Return a copy of the current contents without mutating the queue."""
        return Snapshot(records=tuple(self._items))

    def remove_prefix(self, n: int) -> int:
        """Remove exactly the first ``n`` records.

        ``n`` is the length of a snapshot taken earlier. Records appended after
        that snapshot stay queued. If ``n`` exceeds the current length nothing
        is removed and a warning is logged.

        Returns:
            The number of records removed.
        """
        if n < 0:
            raise ValueError(f"n must be >= 0, got {n}")
        if n > len(self._items):
            logger.warning(
                f"Refusing to remove {n} records from a queue of {len(self._items)}",
                extra={"requested": n, "queued": len(self._items)},
            )
            return 0
        for _ in range(n):
            self._items.popleft()
        return n

    def length(self) -> int:
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        """Always truthy so 'queue or default' works correctly."""
        return True
