from __future__ import annotations

from dataclasses import dataclass
import os
from typing import get_args

from leadsort.core.limiter import Scheduler

DEFAULT_DATABASE_URL = "sqlite:///leadsort.db"
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_CSV_PATH = "./sample_leads.csv"


@dataclass(frozen=True, slots=True)
class LeadsortConfig:
    """Run configuration loaded at process startup."""

    database_url: str
    openai_api_key: str
    model: str
    webhook_url: str
    csv_path: str = DEFAULT_CSV_PATH
    concurrency: int = 5
    pacing_seconds: float = 0.5
    scheduler: Scheduler = "chunked"
    webhook_timeout: float = 10.0
    log_level: str = "INFO"


def _require_env(name: str) -> str:
    value = os.environ.get(name, "").strip()
    if not value:
        raise ValueError(f"Missing required environment variable: {name}")
    return value


def _int_env(name: str, default: int, *, minimum: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _float_env(
    name: str, default: float, *, minimum: float, strict: bool = False
) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e
    if value < minimum or (strict and value == minimum):
        bound = ">" if strict else ">="
        raise ValueError(f"{name} must be {bound} {minimum}, got {value}")
    return value


def load_config_from_env() -> LeadsortConfig:
    """Load run config from env and validate startup requirements."""
    scheduler = os.environ.get("LEADSORT_SCHEDULER", "chunked").strip()
    if scheduler not in get_args(Scheduler):
        raise ValueError("LEADSORT_SCHEDULER must be one of: chunked, sliding")

    # Fail fast on missing credentials and endpoints.
    openai_api_key = _require_env("OPENAI_API_KEY")
    webhook_url = _require_env("WEBHOOK_URL")

    return LeadsortConfig(
        database_url=os.environ.get("DATABASE_URL", "").strip() or DEFAULT_DATABASE_URL,
        openai_api_key=openai_api_key,
        model=os.environ.get("LEADSORT_MODEL", "").strip() or DEFAULT_MODEL,
        webhook_url=webhook_url,
        csv_path=os.environ.get("LEADSORT_CSV_PATH", "").strip() or DEFAULT_CSV_PATH,
        concurrency=_int_env("LEADSORT_CONCURRENCY", 5, minimum=1),
        pacing_seconds=_float_env("LEADSORT_PACING_SECONDS", 0.5, minimum=0.0),
        scheduler=scheduler,  # type: ignore[arg-type]
        webhook_timeout=_float_env(
            "LEADSORT_WEBHOOK_TIMEOUT", 10.0, minimum=0.0, strict=True
        ),
        log_level=os.environ.get("LEADSORT_LOG_LEVEL", "").strip().upper() or "INFO",
    )
