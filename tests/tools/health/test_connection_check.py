from __future__ import annotations

import asyncio

from sqlalchemy.exc import OperationalError

from leadsort.adapters.db.facade import DB
from leadsort.infra.clients.webhook import WebhookClientError
from leadsort.tools.health.connection_check import (
    CheckResult,
    check_classifier,
    check_store,
    check_webhook,
    run_checks,
)


class BrokenDB:
    def count_leads(self) -> int:
        raise OperationalError("SELECT count(*)", {}, Exception("no such table: leads"))


def test_run_checks_reports_all_ok(db: DB, fake_openai, fake_webhook) -> None:
    # input
    webhook = fake_webhook()

    # act
    results = asyncio.run(
        run_checks(db, fake_openai(default="API Working!"), "test-model", webhook)
    )

    # assert
    assert [r.name for r in results] == ["store", "classifier", "webhook"]
    assert all(r.ok for r in results)
    assert results[1].detail == "API Working!"
    assert webhook.payloads[0]["test"] is True
    assert "timestamp" in webhook.payloads[0]


def test_check_store_failure_is_reported() -> None:
    result = asyncio.run(check_store(BrokenDB()))  # type: ignore[arg-type]

    assert result.ok is False
    assert "no such table" in result.detail


def test_check_classifier_failure_is_reported(fake_openai) -> None:
    client = fake_openai(default=RuntimeError("invalid api key"))

    result = asyncio.run(check_classifier(client, "test-model"))

    assert result == CheckResult(name="classifier", ok=False, detail="invalid api key")


def test_check_webhook_rejected_status_is_not_ok(fake_webhook) -> None:
    result = asyncio.run(check_webhook(fake_webhook(default=404)))

    assert result == CheckResult(name="webhook", ok=False, detail="status 404")


def test_check_webhook_transport_error_is_reported() -> None:
    # helper setup
    class FailingWebhook:
        async def post_json(self, payload: dict) -> int:
            raise WebhookClientError("connection refused")

    # act
    result = asyncio.run(check_webhook(FailingWebhook()))  # type: ignore[arg-type]

    # assert
    assert result.ok is False
    assert "connection refused" in result.detail
