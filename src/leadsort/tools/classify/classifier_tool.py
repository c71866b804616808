from __future__ import annotations

import os
from typing import Any

import loguru
from loguru import logger
from openai import AsyncOpenAI

from leadsort.models.lead import ClassifiedLead, Lead, Persona
from leadsort.prompts.loader import load_leadsort_prompt, render_prompt

DEFAULT_MODEL = "gpt-4o-mini"


class ClassifierLogger:
    """Handles all logging for the classifier with business logic separated."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance

    def api_call(self, lead: Lead) -> None:
        self._logger.bind(email=lead.email, job_title=lead.job_title).debug(
            "Classifying {} ({})", lead.full_name, lead.job_title
        )

    def classified(self, lead: Lead, persona: Persona) -> None:
        self._logger.bind(email=lead.email, persona=persona.value).info(
            "Classified {} as {}", lead.full_name, persona.value
        )

    def unrecognized_response(self, lead: Lead, response_text: str) -> None:
        """Log a reply that names no persona; distinct from a genuine Other."""
        self._logger.bind(email=lead.email, response=response_text[:200]).warning(
            "Unexpected classification format: {!r}. Defaulting to {}.",
            response_text[:200],
            Persona.OTHER.value,
        )

    def call_failed(self, lead: Lead, error: Exception) -> None:
        self._logger.bind(email=lead.email, error=str(error)).error(
            "Error classifying {}: {}. Defaulting to {}.",
            lead.email,
            error,
            Persona.OTHER.value,
        )


class LeadClassifier:
    """Assigns one persona to a lead via the OpenAI Responses API.

    Never raises for a classification problem: failed calls and unrecognized
    replies resolve to ``Persona.OTHER`` with ``fallback=True``.
    """

    def __init__(
        self,
        *,
        client: AsyncOpenAI | Any | None = None,
        model: str = DEFAULT_MODEL,
        prompt_key: str = "classify-lead",
    ) -> None:
        self._model = model
        self._prompt_key = prompt_key
        self._template: str | None = None
        self._logger = ClassifierLogger()

        if client is None:
            api_key = os.environ.get("OPENAI_API_KEY", "").strip()
            if not api_key:
                raise RuntimeError("OPENAI_API_KEY is required to call OpenAI.")
            client = AsyncOpenAI(api_key=api_key)
        self._client = client

    @property
    def model(self) -> str:
        return self._model

    async def classify(self, lead: Lead) -> ClassifiedLead:
        self._logger.api_call(lead)

        try:
            prompt = self._render_prompt(lead)
            response_text = await self._call_openai_api(prompt)
        except Exception as e:  # noqa: BLE001
            self._logger.call_failed(lead, e)
            return ClassifiedLead(lead=lead, persona=Persona.OTHER, fallback=True)

        persona = Persona.parse(response_text)
        if persona is None:
            self._logger.unrecognized_response(lead, response_text)
            return ClassifiedLead(lead=lead, persona=Persona.OTHER, fallback=True)

        self._logger.classified(lead, persona)
        return ClassifiedLead(lead=lead, persona=persona)

    def _render_prompt(self, lead: Lead) -> str:
        """Load prompt template once and render it with the lead's details."""
        if self._template is None:
            self._template = load_leadsort_prompt(self._prompt_key)
        return render_prompt(
            self._template,
            {
                "LEAD_NAME": lead.full_name,
                "JOB_TITLE": lead.job_title,
                "COMPANY": lead.company,
            },
        )

    async def _call_openai_api(self, prompt: str) -> str:
        resp = await self._client.responses.create(
            model=self._model,
            input=prompt,
        )
        return self._extract_response_text(resp)

    def _extract_response_text(self, resp: object) -> str:
        """Extract text from OpenAI response object."""
        response_text: str | None = getattr(resp, "output_text", None)
        if response_text is None:
            return ""
        return response_text.strip()
