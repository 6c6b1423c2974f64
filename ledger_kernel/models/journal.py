"""
Module: ledger_kernel.models.journal
Responsibility: ORM persistence for journal entries and their lines -- the
    single source of financial truth in the ledger.
Architecture position: Kernel > Models.  May import from db/ and pure
    domain modules only.  MUST NOT import from services/ or selectors/.

Invariants enforced:
    - entry_number is unique per tenant (uq_journal_tenant_number).
    - debit >= 0 and credit >= 0 per line (CHECK constraints); "exactly one
      side positive" and balance are enforced by JournalEntryService at draft
      save and again at post.
    - Immutability once posted: ORM listeners in db/immutability.py block
      UPDATE/DELETE of posted entries and any write to their lines.

Failure modes:
    - IntegrityError on duplicate (tenant_id, entry_number).
    - ImmutabilityViolationError on UPDATE/DELETE of a posted entry or line.

Audit relevance:
    Posted JournalEntry and JournalEntryLine rows are the ledger.  Every
    balance and report is derived from them; nothing else is a source of
    truth.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TenantScopedMixin, TrackedBase, UTCDateTime, UUIDString
from ledger_kernel.db.types import RateNumeric
from ledger_kernel.domain.references import EntryReference, reference_from_columns
from ledger_kernel.domain.values import EntryStatus

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account
    from ledger_kernel.models.currency import Currency
    from ledger_kernel.models.fiscal import FiscalPeriod


class JournalEntry(TenantScopedMixin, TrackedBase):
    """
    Journal entry header -- the aggregate root of double-entry accounting.

    Contract:
        Created as draft, transitions once to posted.  Only posted entries
        contribute to balances and reports.  A posted entry and its lines
        never change again; correction is a new reversing entry.

    Guarantees:
        - Lines are owned exclusively and deleted with the entry (legal only
          while draft).
        - lines are loaded ordered by line_number.

    Non-goals:
        - This model does NOT enforce balance; JournalEntryService does.  The
          total_* properties are read-side conveniences.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        UniqueConstraint("tenant_id", "entry_number", name="uq_journal_tenant_number"),
        Index("idx_journal_tenant_status_date", "tenant_id", "status", "entry_date"),
        Index("idx_journal_period", "fiscal_period_id"),
        Index("idx_journal_reference", "reference_type", "reference_id"),
    )

    entry_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    fiscal_year_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("fiscal_years.id"),
        nullable=False,
    )

    fiscal_period_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("fiscal_periods.id"),
        nullable=False,
    )

    entry_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    reference_type: Mapped[str | None] = mapped_column(
        String(30),
        nullable=True,
    )

    reference_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    description: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    status: Mapped[EntryStatus] = mapped_column(
        String(10),
        default=EntryStatus.DRAFT,
        nullable=False,
    )

    posted_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    posted_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    lines: Mapped[list["JournalEntryLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="JournalEntryLine.line_number",
    )

    fiscal_period: Mapped["FiscalPeriod"] = relationship()

    def __repr__(self) -> str:
        return f"<JournalEntry {self.entry_number} status={self.status}>"

    @property
    def is_posted(self) -> bool:
        return self.status == EntryStatus.POSTED

    @property
    def is_draft(self) -> bool:
        return self.status == EntryStatus.DRAFT

    @property
    def reference(self) -> EntryReference | None:
        return reference_from_columns(self.reference_type, self.reference_id)

    @property
    def total_debits(self) -> Decimal:
        """Sum of debit lines in base currency."""
        return sum(
            (line.amount_base for line in self.lines if line.is_debit),
            Decimal("0"),
        )

    @property
    def total_credits(self) -> Decimal:
        """Sum of credit lines in base currency."""
        return sum(
            (line.amount_base for line in self.lines if line.is_credit),
            Decimal("0"),
        )


class JournalEntryLine(TenantScopedMixin, TrackedBase):
    """
    Individual debit or credit line within a journal entry.

    Contract:
        Exactly one of debit / credit is strictly positive; the other is
        zero.  amount_base is the positive magnitude in the tenant's base
        currency, on the same side as the original amount.

    Guarantees:
        - exchange_rate records the rate used for amount_base.
        - line_number gives deterministic ordering within the entry.

    Non-goals:
        - Does not validate account or currency activity; that happens in
          JournalEntryService.
    """

    __tablename__ = "journal_entry_lines"

    __table_args__ = (
        CheckConstraint("debit >= 0", name="ck_line_debit_non_negative"),
        CheckConstraint("credit >= 0", name="ck_line_credit_non_negative"),
        CheckConstraint("amount_base >= 0", name="ck_line_amount_base_non_negative"),
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_tenant_account", "tenant_id", "account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    currency_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("currencies.id"),
        nullable=False,
    )

    debit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        default=Decimal("0"),
        nullable=False,
    )

    credit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        default=Decimal("0"),
        nullable=False,
    )

    exchange_rate: Mapped[Decimal] = mapped_column(
        RateNumeric,
        default=Decimal("1"),
        nullable=False,
    )

    amount_base: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    line_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    entry: Mapped["JournalEntry"] = relationship(back_populates="lines")

    account: Mapped["Account"] = relationship(back_populates="journal_lines")

    currency: Mapped["Currency"] = relationship()

    def __repr__(self) -> str:
        return f"<JournalEntryLine #{self.line_number} Dr {self.debit} Cr {self.credit}>"

    @property
    def is_debit(self) -> bool:
        return self.debit > 0

    @property
    def is_credit(self) -> bool:
        return self.credit > 0

    @property
    def amount(self) -> Decimal:
        """Magnitude in the line's own currency."""
        return self.debit if self.is_debit else self.credit

    @property
    def signed_amount_base(self) -> Decimal:
        """Debits positive, credits negative, in base currency."""
        return self.amount_base if self.is_debit else -self.amount_base
