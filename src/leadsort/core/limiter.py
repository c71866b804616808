"""Bounded-concurrency driver for per-item async operations."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Literal, TypeVar

T = TypeVar("T")
R = TypeVar("R")

Scheduler = Literal["chunked", "sliding"]


async def run_bounded(
    items: Sequence[T],
    operation: Callable[[T], Awaitable[R]],
    *,
    limit: int,
    pacing_seconds: float = 0.0,
    scheduler: Scheduler = "chunked",
) -> list[R]:
    """Apply ``operation`` to every item with at most ``limit`` in flight.

    Results are returned in input order regardless of completion order.

    ``chunked`` launches consecutive groups of ``limit`` items and waits for
    the whole group before starting the next, so one slow item holds back the
    next group. ``sliding`` starts a new item as soon as any slot frees.

    ``operation`` is expected to handle its own failures and return a result
    value. If it raises anyway, the remaining operations of the current group
    still run to completion and the first exception is then re-raised.

    Args:
        items: Inputs, in the order results should come back
        operation: Async callable applied to each item
        limit: Maximum number of concurrent operations (>= 1)
        pacing_seconds: Optional delay between groups (chunked), or before a
            freed slot is reused while items are still waiting (sliding)
        scheduler: "chunked" or "sliding"

    Returns:
        One result per input item, same order
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")
    if pacing_seconds < 0:
        raise ValueError(f"pacing_seconds must be >= 0, got {pacing_seconds}")

    if scheduler == "chunked":
        return await _run_chunked(items, operation, limit, pacing_seconds)
    if scheduler == "sliding":
        return await _run_sliding(items, operation, limit, pacing_seconds)
    raise ValueError(f"Unknown scheduler: {scheduler!r}")


async def _run_chunked(
    items: Sequence[T],
    operation: Callable[[T], Awaitable[R]],
    limit: int,
    pacing_seconds: float,
) -> list[R]:
    chunks = [items[i : i + limit] for i in range(0, len(items), limit)]
    results: list[R] = []

    for idx, chunk in enumerate(chunks):
        outcomes = await asyncio.gather(
            *(operation(item) for item in chunk), return_exceptions=True
        )
        results.extend(_unwrap(outcomes))

        if pacing_seconds and idx < len(chunks) - 1:
            await asyncio.sleep(pacing_seconds)

    return results


async def _run_sliding(
    items: Sequence[T],
    operation: Callable[[T], Awaitable[R]],
    limit: int,
    pacing_seconds: float,
) -> list[R]:
    semaphore = asyncio.Semaphore(limit)
    not_started = len(items)

    async def _guarded(item: T) -> R:
        nonlocal not_started
        async with semaphore:
            not_started -= 1
            result = await operation(item)
            # pace only while an item still waits for a slot
            if pacing_seconds and not_started > 0:
                await asyncio.sleep(pacing_seconds)
            return result

    outcomes = await asyncio.gather(
        *(_guarded(item) for item in items), return_exceptions=True
    )
    return _unwrap(outcomes)


def _unwrap(outcomes: list[R | BaseException]) -> list[R]:
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
    return outcomes  # type: ignore[return-value]
