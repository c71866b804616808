from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager

from sqlalchemy import (
    create_engine,
    func,
    insert,
    make_url,
    select,
)
from sqlalchemy.orm import (
    Session,
    sessionmaker,
)
from sqlalchemy.pool import StaticPool

from leadsort.adapters.db.models import Base, LeadRecord, LeadRow


class DB:
    """Database service layer for the ``leads`` table."""

    def __init__(self, url: str) -> None:
        """Initialize database connection.

        Args:
            url: Database URL (e.g., "sqlite:///leadsort.db")
        """
        self._url = url
        if _is_sqlite_memory(url):
            # One shared connection so worker threads see the same database
            self._engine = create_engine(
                url,
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self._engine = create_engine(url, echo=False)
        self._session_factory = sessionmaker(bind=self._engine, class_=Session)

    @property
    def url(self) -> str:
        return self._url

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Context manager for database sessions."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_schema(self) -> None:
        """Create the ``leads`` table if it does not exist."""
        Base.metadata.create_all(self._engine)

    def find_existing_emails(self, emails: Iterable[str]) -> set[str]:
        """Return the subset of ``emails`` already present in the store.

        Issues a single ``SELECT ... WHERE email IN (...)`` query.
        """
        email_list = list(dict.fromkeys(emails))
        if not email_list:
            return set()

        with self.session() as session:  # type: Session
            stmt = select(LeadRecord.email).where(LeadRecord.email.in_(email_list))
            return set(session.execute(stmt).scalars().all())

    def insert_leads(self, rows: Sequence[LeadRow]) -> int:
        """Insert all rows in one transaction.

        Either every row is committed or none is; a uniqueness violation on
        ``email`` rolls back the whole batch and re-raises.

        Returns:
            Number of rows inserted
        """
        if not rows:
            return 0

        with self.session() as session:  # type: Session
            session.execute(insert(LeadRecord), [dict(row) for row in rows])
        return len(rows)

    def count_leads(self) -> int:
        with self.session() as session:  # type: Session
            stmt = select(func.count(LeadRecord.lead_id))
            return int(session.execute(stmt).scalar_one())

    def fetch_leads(self) -> list[LeadRecord]:
        """Return all stored leads ordered by insertion."""
        with self.session() as session:  # type: Session
            records = list(
                session.execute(select(LeadRecord).order_by(LeadRecord.lead_id))
                .scalars()
                .all()
            )
            for record in records:
                session.expunge(record)
            return records

    def close(self) -> None:
        """Release every pooled connection held by the engine."""
        self._engine.dispose()


def _is_sqlite_memory(url: str) -> bool:
    """True for ``sqlite://`` and ``sqlite:///:memory:`` style URLs."""
    parsed = make_url(url)
    return parsed.get_backend_name() == "sqlite" and parsed.database in (
        None,
        "",
        ":memory:",
    )
