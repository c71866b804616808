from __future__ import annotations

from rich.console import Console

from leadsort.models.lead import Persona, RunSummary
from leadsort.ui.summary_renderer import SummaryRenderer


def _summary() -> RunSummary:
    summary = RunSummary(
        total=10,
        skipped=2,
        processed=8,
        persisted=8,
        delivered=7,
        delivery_failed=1,
        fallback_classified=1,
        elapsed_seconds=1.234,
    )
    summary.by_persona[Persona.OWNER] = 3
    summary.by_persona[Persona.OTHER] = 5
    return summary


def test_render_prints_counts_breakdown_and_elapsed() -> None:
    # input
    console = Console(record=True, width=100)

    # act
    SummaryRenderer(console).render(_summary())

    # assert
    output = console.export_text()
    assert "Outcomes" in output
    assert "Classification breakdown" in output
    assert "Skipped (duplicates)" in output
    assert "Operations (beverage ops)" in output
    assert "Elapsed: 1.23s" in output


def test_build_persona_table_lists_every_persona() -> None:
    table = SummaryRenderer(Console()).build_persona_table(_summary())

    assert table.row_count == len(Persona)


def test_build_counts_table_has_one_row_per_metric() -> None:
    table = SummaryRenderer(Console()).build_counts_table(_summary())

    assert table.row_count == 8
