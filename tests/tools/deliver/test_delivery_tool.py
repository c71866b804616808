from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from leadsort.infra.clients.webhook import WebhookClientError
from leadsort.models.lead import ClassifiedLead, Persona
from leadsort.tools.deliver.delivery_tool import DeliveryTool, WebhookPayload


def test_webhook_payload_serializes_lead_persona_and_timestamp(make_lead) -> None:
    # input
    classified = ClassifiedLead(lead=make_lead(), persona=Persona.OWNER)
    processed_at = datetime(2024, 5, 1, 12, 30, tzinfo=UTC)

    # act
    payload = WebhookPayload.from_classified(
        classified, processed_at=processed_at
    ).model_dump(mode="json")

    # assert
    assert payload == {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "job_title": "Owner",
        "company": "The Velvet Bar",
        "email": "ada@velvet.example",
        "phone": "555-0100",
        "persona": "Owner",
        "processed_at": "2024-05-01T12:30:00Z",
    }


@pytest.mark.parametrize("status", [200, 201])
def test_deliver_success_statuses(make_lead, fake_webhook, status: int) -> None:
    # input
    webhook = fake_webhook(default=status)
    classified = ClassifiedLead(lead=make_lead(), persona=Persona.OPERATIONS)

    # act
    delivered = asyncio.run(DeliveryTool(webhook).deliver(classified))

    # assert
    assert delivered is True
    assert webhook.payloads[0]["persona"] == "Operations"
    assert webhook.payloads[0]["email"] == "ada@velvet.example"
    assert "processed_at" in webhook.payloads[0]


@pytest.mark.parametrize("status", [202, 204, 301, 400, 500])
def test_deliver_other_statuses_count_as_failure(
    make_lead, fake_webhook, status: int
) -> None:
    webhook = fake_webhook(default=status)

    delivered = asyncio.run(
        DeliveryTool(webhook).deliver(
            ClassifiedLead(lead=make_lead(), persona=Persona.OTHER)
        )
    )

    assert delivered is False


def test_deliver_transport_error_is_absorbed(make_lead, fake_webhook) -> None:
    webhook = fake_webhook({"ada@velvet.example": WebhookClientError("timeout")})

    delivered = asyncio.run(
        DeliveryTool(webhook).deliver(
            ClassifiedLead(lead=make_lead(), persona=Persona.OWNER)
        )
    )

    assert delivered is False
    assert len(webhook.payloads) == 1
