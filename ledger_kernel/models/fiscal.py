"""
Module: ledger_kernel.models.fiscal
Responsibility: ORM persistence for the fiscal calendar -- fiscal years and
    the periods that partition them.  Controls which dates accept entries.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Period code and sequence number are unique within a fiscal year.
    - start_date <= end_date (CHECK constraint on both tables).
    - Non-overlap of years per tenant and of periods per year, and period
      containment in its year, are enforced by FiscalCalendarService at
      creation time.

Failure modes:
    - IntegrityError on duplicate period code or sequence within a year.

Audit relevance:
    A locked period or closed year freezes the books for that range: no
    entry may be drafted, edited, or posted into it.  Already-posted entries
    stay queryable.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TenantScopedMixin, TrackedBase, UTCDateTime, UUIDString


class FiscalYear(TenantScopedMixin, TrackedBase):
    """
    Fiscal year for a tenant.

    Contract:
        Years of one tenant never overlap.  Once closed, the year accepts no
        new drafts, edits, or postings.
    """

    __tablename__ = "fiscal_years"

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_fiscal_year_dates"),
        Index("idx_fiscal_year_tenant_dates", "tenant_id", "start_date", "end_date"),
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    start_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    end_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    is_closed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    closed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    closed_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    periods: Mapped[list["FiscalPeriod"]] = relationship(
        back_populates="fiscal_year",
        order_by="FiscalPeriod.sequence_number",
    )

    def __repr__(self) -> str:
        return f"<FiscalYear {self.name} {self.start_date}..{self.end_date}>"

    def contains_date(self, check_date: date) -> bool:
        return self.start_date <= check_date <= self.end_date

    def close(self, actor_id: UUID, closed_at: datetime) -> None:
        """Close the year.

        Preconditions: Year is not already closed.
        Postconditions: is_closed is True, closed_at and closed_by_id are set.
        Raises: ValueError if already closed.

        Note: closed_at comes from the injected clock; this method does NOT
        call datetime.now().
        """
        if self.is_closed:
            raise ValueError(f"Fiscal year {self.name} is already closed")
        self.is_closed = True
        self.closed_at = closed_at
        self.closed_by_id = actor_id


class FiscalPeriod(TenantScopedMixin, TrackedBase):
    """
    Fiscal period within a year.

    Contract:
        A locked period refuses new entries, edits, and postings.  Locking is
        one-way and idempotent.

    Guarantees:
        - (fiscal_year_id, code) and (fiscal_year_id, sequence_number) are
          unique.

    Non-goals:
        - Does NOT enforce non-overlapping date ranges; that is checked by
          FiscalCalendarService at creation time.
    """

    __tablename__ = "fiscal_periods"

    __table_args__ = (
        UniqueConstraint("fiscal_year_id", "code", name="uq_period_year_code"),
        UniqueConstraint(
            "fiscal_year_id", "sequence_number", name="uq_period_year_sequence"
        ),
        CheckConstraint("start_date <= end_date", name="ck_fiscal_period_dates"),
        Index("idx_period_tenant_dates", "tenant_id", "start_date", "end_date"),
    )

    fiscal_year_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("fiscal_years.id"),
        nullable=False,
    )

    # e.g. "Jan 2025"
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # e.g. "2025-01"
    code: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    sequence_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    start_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    end_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    is_locked: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    locked_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    locked_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    fiscal_year: Mapped["FiscalYear"] = relationship(back_populates="periods")

    def __repr__(self) -> str:
        state = "locked" if self.is_locked else "open"
        return f"<FiscalPeriod {self.code}: {state}>"

    def contains_date(self, check_date: date) -> bool:
        """Check if a date falls within this period (inclusive)."""
        return self.start_date <= check_date <= self.end_date

    def lock(self, actor_id: UUID, locked_at: datetime) -> None:
        """Lock the period.

        Postconditions: is_locked is True, locked_at and locked_by_id are set.
        Raises: ValueError if the period is already locked.
        """
        if self.is_locked:
            raise ValueError(f"Period {self.code} is already locked")
        self.is_locked = True
        self.locked_at = locked_at
        self.locked_by_id = actor_id
