"""Smoke checks for the store, the classifier and the webhook."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from leadsort.adapters.db.facade import DB
from leadsort.infra.clients.webhook import WebhookClient
from leadsort.tools.deliver.delivery_tool import SUCCESS_STATUSES


@dataclass(frozen=True, slots=True)
class CheckResult:
    name: str
    ok: bool
    detail: str


async def check_store(db: DB) -> CheckResult:
    try:
        count = await asyncio.to_thread(db.count_leads)
    except Exception as e:  # noqa: BLE001
        return CheckResult(name="store", ok=False, detail=str(e))
    return CheckResult(
        name="store", ok=True, detail=f"leads table ready ({count} rows)"
    )


async def check_classifier(client: Any, model: str) -> CheckResult:
    try:
        resp = await client.responses.create(
            model=model,
            input='Say "API Working!" if you receive this.',
        )
    except Exception as e:  # noqa: BLE001
        return CheckResult(name="classifier", ok=False, detail=str(e))
    text = (getattr(resp, "output_text", None) or "").strip()
    return CheckResult(name="classifier", ok=True, detail=text or "empty reply")


async def check_webhook(webhook: WebhookClient) -> CheckResult:
    payload = {
        "test": True,
        "message": "Testing webhook connection",
        "timestamp": datetime.now(UTC).isoformat(),
    }
    try:
        status = await webhook.post_json(payload)
    except Exception as e:  # noqa: BLE001
        return CheckResult(name="webhook", ok=False, detail=str(e))
    return CheckResult(
        name="webhook", ok=status in SUCCESS_STATUSES, detail=f"status {status}"
    )


async def run_checks(
    db: DB, client: Any, model: str, webhook: WebhookClient
) -> list[CheckResult]:
    """Run every check in sequence; a failed check never raises."""
    return [
        await check_store(db),
        await check_classifier(client, model),
        await check_webhook(webhook),
    ]
