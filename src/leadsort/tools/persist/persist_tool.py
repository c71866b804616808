from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

import loguru
from loguru import logger

from leadsort.adapters.db.facade import DB
from leadsort.adapters.db.models import LeadRow
from leadsort.models.lead import INITIAL_LEAD_STATUS, ClassifiedLead


@dataclass(frozen=True, slots=True)
class PersistOutcome:
    success: bool
    count: int


class PersistLogger:
    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance

    def persistence_start(self, count: int) -> None:
        self._logger.bind(count=count).info("Persisting {} leads to database", count)

    def persisted(self, count: int) -> None:
        self._logger.bind(count=count).info("Added {} leads to database", count)

    def failed(self, count: int, error: Exception) -> None:
        self._logger.bind(count=count, error=str(error)).error(
            "Bulk insert of {} leads failed; none were persisted: {}", count, error
        )


def to_lead_row(classified: ClassifiedLead) -> LeadRow:
    """Map a classified lead to its ``leads`` table row."""
    lead = classified.lead
    return LeadRow(
        first_name=lead.first_name,
        last_name=lead.last_name,
        job_title=lead.job_title,
        company=lead.company,
        email=lead.email,
        phone=lead.phone,
        persona=classified.persona.value,
        lead_status=INITIAL_LEAD_STATUS,
    )


class PersistTool:
    def __init__(self, db: DB) -> None:
        self._db = db
        self._logger = PersistLogger()

    async def persist(self, classified: Sequence[ClassifiedLead]) -> PersistOutcome:
        """
        Insert every classified lead with a single bulk call.

        The insert is all-or-nothing: on any failure, including an email
        uniqueness violation, nothing is stored and the outcome reports
        ``success=False, count=0``.

        Args:
            classified: All classified leads for the run

        Returns:
            PersistOutcome with success flag and number of rows stored
        """
        if not classified:
            return PersistOutcome(success=True, count=0)

        rows = [to_lead_row(item) for item in classified]
        self._logger.persistence_start(len(rows))

        try:
            count = await asyncio.to_thread(self._db.insert_leads, rows)
        except Exception as e:  # noqa: BLE001
            self._logger.failed(len(rows), e)
            return PersistOutcome(success=False, count=0)

        self._logger.persisted(count)
        return PersistOutcome(success=True, count=count)
