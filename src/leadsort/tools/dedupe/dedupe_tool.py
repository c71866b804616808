from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

import loguru
from loguru import logger

from leadsort.adapters.db.facade import DB
from leadsort.models.lead import Lead


@dataclass(frozen=True, slots=True)
class DedupResult:
    new_leads: list[Lead]
    duplicate_count: int


class DedupLogger:
    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance

    def skipped(self, lead: Lead) -> None:
        self._logger.bind(email=lead.email).info(
            "SKIPPED {} - already exists in database", lead.email
        )

    def summary(self, total: int, new_count: int, duplicate_count: int) -> None:
        self._logger.bind(
            total=total, new=new_count, duplicates=duplicate_count
        ).info(
            "Dedup complete: {} new, {} duplicates out of {}",
            new_count,
            duplicate_count,
            total,
        )

    def check_failed(self, total: int, error: Exception) -> None:
        self._logger.bind(total=total, error=str(error)).warning(
            "Duplicate check failed ({}); treating all {} leads as new",
            error,
            total,
        )


class DedupFilter:
    """Splits a batch into unseen leads and duplicates of stored leads."""

    def __init__(self, db: DB) -> None:
        self._db = db
        self._logger = DedupLogger()

    async def partition(self, leads: Sequence[Lead]) -> DedupResult:
        """Drop leads whose email is already stored, keeping input order.

        Issues one existence query for the whole batch. A repeated email
        inside the batch counts as a duplicate after its first occurrence.

        If the existence query fails the filter fails open: every lead is
        returned as new and ``duplicate_count`` is 0.
        """
        lead_list = list(leads)
        emails = [lead.email for lead in lead_list]

        try:
            existing = await asyncio.to_thread(self._db.find_existing_emails, emails)
        except Exception as e:  # noqa: BLE001
            self._logger.check_failed(len(lead_list), e)
            return DedupResult(new_leads=lead_list, duplicate_count=0)

        seen = set(existing)
        new_leads: list[Lead] = []
        for lead in lead_list:
            if lead.email in seen:
                self._logger.skipped(lead)
                continue
            seen.add(lead.email)
            new_leads.append(lead)

        duplicate_count = len(lead_list) - len(new_leads)
        self._logger.summary(len(lead_list), len(new_leads), duplicate_count)
        return DedupResult(new_leads=new_leads, duplicate_count=duplicate_count)
