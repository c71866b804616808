"""CSV record source for lead batches."""

from __future__ import annotations

import csv
from pathlib import Path

from loguru import logger

from leadsort.models.lead import LEAD_COLUMNS, Lead


class LeadSourceError(Exception):
    """Raised when the lead CSV cannot be read or is malformed."""


class LeadCSVReader:
    """Loads leads from a CSV export with a header row."""

    def __init__(self, csv_path: Path | str) -> None:
        """Initialize reader with the CSV path.

        Args:
            csv_path: File with columns First Name, Last Name, Job Title,
                Company, Email, Phone
        """
        self._csv_path = Path(csv_path)

    def read(self) -> list[Lead]:
        """Read every non-blank row as a Lead, in file order.

        Raises:
            LeadSourceError: If the file is unreadable, a required column is
                missing, or a row has no email.
        """
        try:
            with open(self._csv_path, encoding="utf-8-sig", newline="") as f:
                reader = csv.DictReader(f)
                header = [name.strip() for name in reader.fieldnames or []]
                missing = [col for col in LEAD_COLUMNS if col not in header]
                if missing:
                    raise LeadSourceError(
                        f"{self._csv_path} is missing column(s): {', '.join(missing)}"
                    )
                reader.fieldnames = header

                leads: list[Lead] = []
                for line_no, row in enumerate(reader, start=2):
                    lead = Lead.from_row(row)
                    if not any(getattr(lead, attr) for attr in LEAD_COLUMNS.values()):
                        continue
                    if not lead.email:
                        raise LeadSourceError(
                            f"{self._csv_path}:{line_no} has no Email value"
                        )
                    leads.append(lead)
        except OSError as e:
            raise LeadSourceError(f"Cannot read {self._csv_path}: {e}") from e
        except (csv.Error, UnicodeDecodeError) as e:
            raise LeadSourceError(f"Malformed CSV {self._csv_path}: {e}") from e

        logger.bind(path=str(self._csv_path), count=len(leads)).info(
            "Read {} leads from {}", len(leads), self._csv_path
        )
        return leads
