"""Sink protocol for batch delivery.

A sink is the downstream endpoint that receives delivered batches. The
dispatcher owns batching, retries and queue removal; a sink only performs
one delivery attempt per call.
"""

from typing import Any, Protocol


class DeliveryError(Exception):
    """Raised when a single delivery attempt fails.

    Attributes:
        status_code: HTTP status code when the sink responded, else None.
        body: Response body (truncated) when available.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        self.status_code = status_code
        self.body = body or ""
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is not None:
            return f"{base} (status {self.status_code})"
        return base


class Sink(Protocol):
    """Protocol defining the interface for batch sinks."""

    async def send(self, payload: dict[str, Any]) -> None:
        """Deliver one batch payload.

        Args:
            payload: JSON-compatible body, ``{"batch": [...], "itemCount": n}``.

        Raises:
            DeliveryError: If the attempt failed (unreachable, timeout, non-2xx).
        """
        ...

    async def aclose(self) -> None:
        """Release any resources held by the sink."""
        ...
