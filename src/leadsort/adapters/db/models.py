from __future__ import annotations

from datetime import datetime
from typing import TypedDict

from sqlalchemy import (
    TIMESTAMP,
    Integer,
    String,
    text,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
)

from leadsort.models.lead import INITIAL_LEAD_STATUS


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


class LeadRecord(Base):
    """Persisted lead, one row per unique email."""

    __tablename__ = "leads"

    lead_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str | None] = mapped_column(String, nullable=True)
    last_name: Mapped[str | None] = mapped_column(String, nullable=True)
    job_title: Mapped[str | None] = mapped_column(String, nullable=True)
    company: Mapped[str | None] = mapped_column(String, nullable=True)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    persona: Mapped[str] = mapped_column(String, nullable=False)
    lead_status: Mapped[str] = mapped_column(
        String, nullable=False, server_default=text(f"'{INITIAL_LEAD_STATUS}'")
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP, nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )


class LeadRow(TypedDict):
    """Insert payload for a single ``leads`` row."""

    first_name: str
    last_name: str
    job_title: str
    company: str
    email: str
    phone: str
    persona: str
    lead_status: str
