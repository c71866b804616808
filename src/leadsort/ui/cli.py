from __future__ import annotations

import asyncio
from dataclasses import replace
import os

from dotenv import load_dotenv
from loguru import logger
from openai import AsyncOpenAI
from rich.console import Console
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
import typer

from leadsort.adapters.csv.lead_reader import LeadSourceError
from leadsort.adapters.db.facade import DB
from leadsort.core.config import (
    DEFAULT_DATABASE_URL,
    LeadsortConfig,
    load_config_from_env,
)
from leadsort.core.logging import configure_logging
from leadsort.infra.clients.webhook import WebhookClient
from leadsort.orchestrators.pipeline import run_from_config
from leadsort.tools.health.connection_check import CheckResult, run_checks
from leadsort.ui.summary_renderer import SummaryRenderer

# Load environment variables from .env
load_dotenv()

app = typer.Typer(
    help="leadsort: classify, store and forward lead batches.",
    no_args_is_help=True,
)

console = Console()


def _load_config() -> LeadsortConfig:
    try:
        return load_config_from_env()
    except ValueError as e:
        configure_logging()
        logger.error("Invalid configuration: {}", e)
        raise typer.Exit(code=1) from e


@app.command("run")
def run_cmd(
    csv: str | None = typer.Option(
        None, help="Lead CSV file (default: LEADSORT_CSV_PATH)"
    ),
    concurrency: int | None = typer.Option(
        None, min=1, help="Max concurrent classifications/deliveries"
    ),
    log_level: str | None = typer.Option(
        None, help="Log level (default: LEADSORT_LOG_LEVEL)"
    ),
) -> None:
    """Deduplicate, classify, persist and deliver every lead in a CSV file."""
    config = _load_config()
    if concurrency is not None:
        config = replace(config, concurrency=concurrency)
    configure_logging(log_level or config.log_level)

    try:
        summary = asyncio.run(run_from_config(config, csv_path=csv))
    except (LeadSourceError, ArgumentError) as e:
        logger.error("FATAL: {}", e)
        raise typer.Exit(code=1) from e

    SummaryRenderer(console).render(summary)


@app.command("check")
def check_cmd() -> None:
    """Check connectivity to the store, the classifier and the webhook."""
    config = _load_config()
    configure_logging(config.log_level)
    try:
        results = asyncio.run(_run_checks(config))
    except ArgumentError as e:
        logger.error("FATAL: {}", e)
        raise typer.Exit(code=1) from e
    for result in results:
        mark = "[green]✓[/green]" if result.ok else "[red]✗[/red]"
        console.print(f"{mark} {result.name}: {result.detail}")


async def _run_checks(config: LeadsortConfig) -> list[CheckResult]:
    db = DB(config.database_url)
    client = AsyncOpenAI(api_key=config.openai_api_key)
    try:
        async with WebhookClient(
            config.webhook_url, timeout=config.webhook_timeout
        ) as webhook:
            return await run_checks(db, client, config.model, webhook)
    finally:
        await client.close()
        db.close()


@app.command("init-db")
def init_db(
    url: str | None = typer.Option(None, help="Database URL (default: DATABASE_URL)"),
) -> None:
    """Create the leads table if it does not exist."""
    db_url = url or os.environ.get("DATABASE_URL", "").strip() or DEFAULT_DATABASE_URL
    try:
        db = DB(db_url)
        try:
            db.create_schema()
        finally:
            db.close()
    except SQLAlchemyError as e:
        configure_logging()
        logger.error("FATAL: {}", e)
        raise typer.Exit(code=1) from e
    console.print(f"leads table ready at {db_url}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
