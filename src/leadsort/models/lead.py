"""Domain types shared by every pipeline stage."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import enum
import re

# CSV header -> Lead attribute
LEAD_COLUMNS: dict[str, str] = {
    "First Name": "first_name",
    "Last Name": "last_name",
    "Job Title": "job_title",
    "Company": "company",
    "Email": "email",
    "Phone": "phone",
}

INITIAL_LEAD_STATUS = "Not Contacted"


class Persona(enum.Enum):
    """Closed set of lead categories."""

    OWNER = "Owner"
    OPERATIONS = "Operations"
    PROCUREMENT = "Procurement"
    OTHER = "Other"

    @classmethod
    def parse(cls, text: str | None) -> Persona | None:
        """Map a free-text classifier reply to exactly one persona.

        Accepts the persona names ("Owner", "Operations", ...) and the legacy
        numbered form ("Persona 1".."Persona 4"), case-insensitively. Returns
        None when the reply is empty, names no persona, or names more than one.
        """
        if not text:
            return None

        found: set[Persona] = set()
        for match in _LEGACY_TOKEN.finditer(text):
            found.add(_LEGACY_ORDER[int(match.group(1)) - 1])
        for persona in cls:
            pattern = rf"\b{re.escape(persona.value)}\b"
            if re.search(pattern, text, flags=re.IGNORECASE):
                found.add(persona)

        if len(found) != 1:
            return None
        return found.pop()


_LEGACY_TOKEN = re.compile(r"\bPersona\s+([1-4])\b", flags=re.IGNORECASE)
_LEGACY_ORDER = (Persona.OWNER, Persona.OPERATIONS, Persona.PROCUREMENT, Persona.OTHER)


@dataclass(frozen=True, slots=True)
class Lead:
    """One contact row from the record source."""

    first_name: str
    last_name: str
    job_title: str
    company: str
    email: str
    phone: str

    @classmethod
    def from_row(cls, row: Mapping[str, str | None]) -> Lead:
        """Build a Lead from a CSV row keyed by the source column names."""
        values = {
            attr: (row.get(column) or "").strip()
            for column, attr in LEAD_COLUMNS.items()
        }
        return cls(**values)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True, slots=True)
class ClassifiedLead:
    """A lead paired with the persona it was assigned.

    ``fallback`` is True when the persona is OTHER because the classifier
    failed or replied with something unrecognizable, as opposed to a genuine
    OTHER verdict.
    """

    lead: Lead
    persona: Persona
    fallback: bool = False


def _empty_persona_counts() -> dict[Persona, int]:
    return {persona: 0 for persona in Persona}


@dataclass
class RunSummary:
    """Counters for a single pipeline run."""

    total: int = 0
    skipped: int = 0
    processed: int = 0
    persisted: int = 0
    persist_failed: int = 0
    delivered: int = 0
    delivery_failed: int = 0
    fallback_classified: int = 0
    by_persona: dict[Persona, int] = field(default_factory=_empty_persona_counts)
    elapsed_seconds: float = 0.0

    def record_classification(self, classified: ClassifiedLead) -> None:
        self.processed += 1
        self.by_persona[classified.persona] += 1
        if classified.fallback:
            self.fallback_classified += 1

    def record_delivery(self, success: bool) -> None:
        if success:
            self.delivered += 1
        else:
            self.delivery_failed += 1
