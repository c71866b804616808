from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import loguru
from loguru import logger
from pydantic import BaseModel

from leadsort.infra.clients.webhook import WebhookClient
from leadsort.models.lead import ClassifiedLead

SUCCESS_STATUSES = frozenset({200, 201})


class WebhookPayload(BaseModel):
    """JSON body sent to the webhook for one lead."""

    first_name: str
    last_name: str
    job_title: str
    company: str
    email: str
    phone: str
    persona: str
    processed_at: datetime

    @classmethod
    def from_classified(
        cls, classified: ClassifiedLead, *, processed_at: datetime | None = None
    ) -> WebhookPayload:
        lead = classified.lead
        return cls(
            first_name=lead.first_name,
            last_name=lead.last_name,
            job_title=lead.job_title,
            company=lead.company,
            email=lead.email,
            phone=lead.phone,
            persona=classified.persona.value,
            processed_at=processed_at or datetime.now(UTC),
        )


class DeliveryLogger:
    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance

    def delivered(self, email: str, status: int) -> None:
        self._logger.bind(email=email, status=status).info(
            "Sent {} to webhook (status {})", email, status
        )

    def rejected(self, email: str, status: int) -> None:
        self._logger.bind(email=email, status=status).warning(
            "Webhook returned status {} for {}", status, email
        )

    def failed(self, email: str, error: Exception) -> None:
        self._logger.bind(email=email, error=str(error)).error(
            "Webhook error for {}: {}", email, error
        )


class DeliveryTool:
    """Posts classified leads to the downstream webhook, one call per lead."""

    def __init__(self, webhook: WebhookClient) -> None:
        self._webhook = webhook
        self._logger = DeliveryLogger()

    async def deliver(self, classified: ClassifiedLead) -> bool:
        """Send one lead; True on 200/201, False on any other outcome.

        Failures are logged with the lead's email and never retried.
        """
        email = classified.lead.email
        payload: dict[str, Any] = WebhookPayload.from_classified(classified).model_dump(
            mode="json"
        )

        try:
            status = await self._webhook.post_json(payload)
        except Exception as e:  # noqa: BLE001
            self._logger.failed(email, e)
            return False

        if status in SUCCESS_STATUSES:
            self._logger.delivered(email, status)
            return True

        self._logger.rejected(email, status)
        return False
