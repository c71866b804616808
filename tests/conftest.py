"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
import re
from types import SimpleNamespace
from typing import Any

import pytest

from leadsort.adapters.db.facade import DB
from leadsort.models.lead import Lead


@pytest.fixture(autouse=True)
def _bundled_prompts_only(monkeypatch: pytest.MonkeyPatch) -> None:
    """Force the bundled prompt files so tests never depend on a prompt store."""

    def raise_runtime_error(prompt_key: str) -> str:
        raise RuntimeError(prompt_key)

    monkeypatch.setattr(
        "leadsort.prompts.loader.promptorium_load_prompt", raise_runtime_error
    )


def create_lead(
    *,
    first_name: str = "Ada",
    last_name: str = "Lovelace",
    job_title: str = "Owner",
    company: str = "The Velvet Bar",
    email: str = "ada@velvet.example",
    phone: str = "555-0100",
) -> Lead:
    return Lead(
        first_name=first_name,
        last_name=last_name,
        job_title=job_title,
        company=company,
        email=email,
        phone=phone,
    )


@pytest.fixture
def make_lead() -> Callable[..., Lead]:
    return create_lead


@pytest.fixture
def db() -> DB:
    """In-memory database with the leads table created."""
    database = DB("sqlite:///:memory:")
    database.create_schema()
    return database


_JOB_TITLE_LINE = re.compile(r"^- Job Title: (.*)$", flags=re.MULTILINE)


class FakeResponses:
    """Stands in for ``AsyncOpenAI().responses``.

    ``replies`` maps the job title rendered into the prompt to either reply
    text or an exception to raise.
    """

    def __init__(
        self,
        replies: dict[str, str | Exception],
        default: str | Exception = "Other",
    ) -> None:
        self._replies = replies
        self._default = default
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        match = _JOB_TITLE_LINE.search(kwargs["input"])
        job_title = match.group(1).strip() if match else ""
        reply = self._replies.get(job_title, self._default)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(output_text=reply)


class FakeOpenAI:
    def __init__(
        self,
        replies: dict[str, str | Exception] | None = None,
        default: str | Exception = "Other",
    ) -> None:
        self.responses = FakeResponses(replies or {}, default=default)
        self.closed = False

    async def close(self) -> None:
        self.closed = True


class FakeWebhook:
    """Stands in for WebhookClient; statuses keyed by lead email."""

    def __init__(
        self,
        statuses: dict[str, int | Exception] | None = None,
        default: int = 200,
    ) -> None:
        self._statuses = statuses or {}
        self._default = default
        self.payloads: list[dict[str, Any]] = []

    async def post_json(self, payload: dict[str, Any]) -> int:
        self.payloads.append(payload)
        status = self._statuses.get(payload.get("email", ""), self._default)
        if isinstance(status, Exception):
            raise status
        return status


@pytest.fixture
def fake_openai() -> Callable[..., FakeOpenAI]:
    return FakeOpenAI


@pytest.fixture
def fake_webhook() -> Callable[..., FakeWebhook]:
    return FakeWebhook
