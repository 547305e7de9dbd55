"""HTTP webhook sink built on httpx."""

from typing import Any
from urllib.parse import urlparse

import httpx

from discord_relay.core.logging import get_logger
from discord_relay.sinks.base import DeliveryError

logger = get_logger("discord_relay.webhook")

# Response bodies kept on DeliveryError for logging
MAX_ERROR_BODY = 500


def _safe_url(url: str) -> str:
    """Strip path and query from a webhook URL for logging."""
    try:
        parsed = urlparse(url)
        return f"{parsed.scheme}://{parsed.netloc}"
    except Exception:
        return "<url>"


class WebhookSink:
    """POSTs batch payloads as JSON to a webhook URL.

    Any 2xx response is success. Transport errors (connect failures, timeouts)
    and non-2xx responses raise DeliveryError.

    Args:
        url: Webhook endpoint.
        timeout: Per-request timeout in seconds.
        client: Optional shared AsyncClient. A client passed in is not closed
            by ``aclose()``.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def send(self, payload: dict[str, Any]) -> None:
        try:
            response = await self._client.post(self.url, json=payload, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise DeliveryError(f"Webhook request timed out after {self.timeout}s: {e}") from e
        except httpx.HTTPError as e:
            raise DeliveryError(f"Webhook request failed: {e}") from e

        if not response.is_success:
            raise DeliveryError(
                f"Webhook returned {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                body=response.text[:MAX_ERROR_BODY],
            )

        logger.debug(
            f"Webhook accepted batch ({response.status_code})",
            extra={"status_code": response.status_code, "url": _safe_url(self.url)},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
