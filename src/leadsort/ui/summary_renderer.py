from __future__ import annotations

from rich.console import Console
from rich.table import Table

from leadsort.models.lead import Persona, RunSummary

PERSONA_LABELS: dict[Persona, str] = {
    Persona.OWNER: "Owner",
    Persona.OPERATIONS: "Operations (beverage ops)",
    Persona.PROCUREMENT: "Procurement",
    Persona.OTHER: "Other staff",
}


class SummaryRenderer:
    """Prints a RunSummary as two tables: outcome counts and persona breakdown."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def render(self, summary: RunSummary) -> None:
        self._console.rule("Lead run summary")
        self._console.print(self.build_counts_table(summary))
        self._console.print(self.build_persona_table(summary))
        self._console.print(f"Elapsed: {summary.elapsed_seconds:.2f}s")

    def build_counts_table(self, summary: RunSummary) -> Table:
        table = Table(title="Outcomes", show_header=True)
        table.add_column("Metric")
        table.add_column("Count", justify="right")

        rows = [
            ("Total leads in source", summary.total),
            ("Skipped (duplicates)", summary.skipped),
            ("Classified", summary.processed),
            ("Fallback-classified as Other", summary.fallback_classified),
            ("Persisted", summary.persisted),
            ("Persist failed", summary.persist_failed),
            ("Delivered to webhook", summary.delivered),
            ("Delivery failed", summary.delivery_failed),
        ]
        for label, count in rows:
            table.add_row(label, str(count))
        return table

    def build_persona_table(self, summary: RunSummary) -> Table:
        table = Table(title="Classification breakdown", show_header=True)
        table.add_column("Persona")
        table.add_column("Count", justify="right")
        for persona in Persona:
            table.add_row(PERSONA_LABELS[persona], str(summary.by_persona[persona]))
        return table
