from __future__ import annotations

import os
from types import TracebackType
from typing import Any, Self

import httpx


class WebhookClientError(Exception):
    """Raised when a webhook request cannot be completed at the transport level."""


class WebhookClient:
    """Async JSON poster for a single downstream webhook URL.

    One instance is shared by all concurrent deliveries in a run; it wraps a
    single ``httpx.AsyncClient`` connection pool.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not url:
            raise WebhookClientError("Webhook URL is required")
        self._url = url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_env(cls) -> WebhookClient:
        """Create a client from WEBHOOK_URL and LEADSORT_WEBHOOK_TIMEOUT."""
        url = os.environ.get("WEBHOOK_URL", "").strip()
        if not url:
            raise WebhookClientError("WEBHOOK_URL is required to deliver leads.")
        timeout = float(os.environ.get("LEADSORT_WEBHOOK_TIMEOUT", "10"))
        return cls(url, timeout=timeout)

    @property
    def url(self) -> str:
        return self._url

    async def post_json(self, payload: dict[str, Any]) -> int:
        """POST ``payload`` as JSON and return the HTTP status code.

        Non-2xx statuses are returned, not raised; interpreting them is the
        caller's job.

        Raises:
            WebhookClientError: On connection errors, timeouts, and other
                transport failures.
        """
        try:
            resp = await self._client.post(self._url, json=payload)
        except httpx.HTTPError as e:
            raise WebhookClientError(f"POST {self._url} failed: {e}") from e
        return resp.status_code

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
