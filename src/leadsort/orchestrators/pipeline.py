"""Run orchestrator: dedup, classify, persist, deliver, summarize."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path
import time

import loguru
from loguru import logger
from openai import AsyncOpenAI
from sqlalchemy.exc import SQLAlchemyError

from leadsort.adapters.csv.lead_reader import LeadCSVReader
from leadsort.adapters.db.facade import DB
from leadsort.core.config import LeadsortConfig
from leadsort.core.limiter import Scheduler, run_bounded
from leadsort.infra.clients.webhook import WebhookClient
from leadsort.models.lead import Lead, RunSummary
from leadsort.tools.classify.classifier_tool import LeadClassifier
from leadsort.tools.dedupe.dedupe_tool import DedupFilter
from leadsort.tools.deliver.delivery_tool import DeliveryTool
from leadsort.tools.persist.persist_tool import PersistTool


class PipelineLogger:
    """Handles all logging for LeadPipeline with business logic separated."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance

    def run_start(self, total: int, concurrency: int, scheduler: str) -> None:
        self._logger.bind(total=total, concurrency=concurrency).info(
            "Processing {} leads (max concurrency: {}, scheduler: {})",
            total,
            concurrency,
            scheduler,
        )

    def nothing_new(self, total: int) -> None:
        self._logger.bind(total=total).info(
            "No new leads among {}; skipping classification, persistence and delivery",
            total,
        )

    def classification_start(self, count: int) -> None:
        self._logger.bind(count=count).info("Classifying {} new leads", count)

    def delivery_start(self, count: int, persisted: bool) -> None:
        if persisted:
            self._logger.bind(count=count).info("Sending {} leads to webhook", count)
        else:
            self._logger.bind(count=count).warning(
                "Sending {} leads to webhook although persistence failed", count
            )

    def run_complete(self, summary: RunSummary) -> None:
        self._logger.bind(
            total=summary.total,
            persisted=summary.persisted,
            skipped=summary.skipped,
            delivered=summary.delivered,
            delivery_failed=summary.delivery_failed,
            elapsed=round(summary.elapsed_seconds, 2),
        ).info(
            "Run complete: {} persisted, {} skipped, {} delivered, "
            "{} delivery failures in {:.2f}s",
            summary.persisted,
            summary.skipped,
            summary.delivered,
            summary.delivery_failed,
            summary.elapsed_seconds,
        )


class LeadPipeline:
    """
    Drives one batch through dedup, classification, persistence and delivery.

    Classification and delivery fan out under the same concurrency bound.
    Every stage failure short of an unreadable record source is absorbed and
    shows up only in the returned RunSummary.
    """

    def __init__(
        self,
        dedup: DedupFilter,
        classifier: LeadClassifier,
        persist: PersistTool,
        delivery: DeliveryTool,
        *,
        concurrency: int = 5,
        pacing_seconds: float = 0.0,
        scheduler: Scheduler = "chunked",
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            dedup: Filter that removes leads already in the store
            classifier: Per-lead persona classifier
            persist: Bulk writer for classified leads
            delivery: Per-lead webhook dispatcher
            concurrency: Maximum in-flight classifications or deliveries
            pacing_seconds: Delay between limiter groups, to ease rate limits
            scheduler: Limiter strategy, "chunked" or "sliding"
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self._dedup = dedup
        self._classifier = classifier
        self._persist = persist
        self._delivery = delivery
        self._concurrency = concurrency
        self._pacing_seconds = pacing_seconds
        self._scheduler = scheduler
        self._logger = PipelineLogger()

    async def run(self, leads: Sequence[Lead]) -> RunSummary:
        start = time.monotonic()
        summary = RunSummary(total=len(leads))
        self._logger.run_start(len(leads), self._concurrency, self._scheduler)

        if not leads:
            return self._finish(summary, start)

        dedup_result = await self._dedup.partition(leads)
        summary.skipped = dedup_result.duplicate_count
        new_leads = dedup_result.new_leads

        if not new_leads:
            self._logger.nothing_new(len(leads))
            return self._finish(summary, start)

        self._logger.classification_start(len(new_leads))
        classified = await run_bounded(
            new_leads,
            self._classifier.classify,
            limit=self._concurrency,
            pacing_seconds=self._pacing_seconds,
            scheduler=self._scheduler,
        )
        for item in classified:
            summary.record_classification(item)

        outcome = await self._persist.persist(classified)
        summary.persisted = outcome.count
        if not outcome.success:
            summary.persist_failed = len(classified)

        self._logger.delivery_start(len(classified), outcome.success)
        deliveries = await run_bounded(
            classified,
            self._delivery.deliver,
            limit=self._concurrency,
            pacing_seconds=self._pacing_seconds,
            scheduler=self._scheduler,
        )
        for delivered in deliveries:
            summary.record_delivery(delivered)

        return self._finish(summary, start)

    async def run_csv(self, csv_path: Path | str) -> RunSummary:
        """Read the batch from a CSV file, then run it.

        Raises:
            LeadSourceError: If the file cannot be read or is malformed.
        """
        leads = LeadCSVReader(csv_path).read()
        return await self.run(leads)

    def _finish(self, summary: RunSummary, start: float) -> RunSummary:
        summary.elapsed_seconds = time.monotonic() - start
        self._logger.run_complete(summary)
        return summary


async def run_from_config(
    config: LeadsortConfig, *, csv_path: Path | str | None = None
) -> RunSummary:
    """Build the shared clients once, run the CSV batch, and close them.

    Raises:
        ArgumentError: If ``config.database_url`` is not a usable database URL.
        LeadSourceError: If the CSV batch cannot be read.
    """
    db = DB(config.database_url)
    try:
        await _ensure_schema(db)
        openai_client = AsyncOpenAI(api_key=config.openai_api_key)
        try:
            async with WebhookClient(
                config.webhook_url, timeout=config.webhook_timeout
            ) as webhook:
                pipeline = LeadPipeline(
                    DedupFilter(db),
                    LeadClassifier(client=openai_client, model=config.model),
                    PersistTool(db),
                    DeliveryTool(webhook),
                    concurrency=config.concurrency,
                    pacing_seconds=config.pacing_seconds,
                    scheduler=config.scheduler,
                )
                return await pipeline.run_csv(csv_path or config.csv_path)
        finally:
            await openai_client.close()
    finally:
        db.close()


async def _ensure_schema(db: DB) -> None:
    """Create the leads table when possible; an unreachable store is not fatal."""
    try:
        await asyncio.to_thread(db.create_schema)
    except SQLAlchemyError as e:
        logger.bind(error=str(e)).warning(
            "Could not verify leads schema ({}); continuing", e
        )
