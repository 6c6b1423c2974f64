"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that cross the service boundary:
    inputs (LineInput, DraftPatch) and read-side snapshots (AccountInfo,
    CurrencyInfo, FiscalYearInfo, FiscalPeriodInfo, JournalLineRecord,
    JournalEntryRecord).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods are boundary converters invoked only from
    the service layer, never from domain logic.

Invariants enforced:
    - Services accept and return DTOs, never ORM entities.
    - Amounts are Decimal; ints and numeric strings are coerced on input,
      floats are rejected.

Failure modes:
    - TypeError on a float amount in LineInput.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Final
from uuid import UUID

from ledger_kernel.domain.references import EntryReference, reference_from_columns
from ledger_kernel.domain.values import AccountType, EntryStatus, NormalBalance, normal_balance_for

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account as AccountModel
    from ledger_kernel.models.currency import Currency as CurrencyModel
    from ledger_kernel.models.fiscal import FiscalPeriod as FiscalPeriodModel
    from ledger_kernel.models.fiscal import FiscalYear as FiscalYearModel
    from ledger_kernel.models.journal import JournalEntry as JournalEntryModel
    from ledger_kernel.models.journal import JournalEntryLine as JournalEntryLineModel


def _to_decimal(value: Any, field_name: str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        raise TypeError(f"{field_name} must be Decimal, int or str, not float")
    return Decimal(str(value))


class _Unset:
    """Marker for DraftPatch fields that were not supplied."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()


# =============================================================================
# Inputs
# =============================================================================


@dataclass(frozen=True)
class LineInput:
    """
    One requested journal line.

    Exactly one of debit / credit must be positive; that rule is checked by
    the journal service (with the line's index), not here, so that a bad
    line yields UnbalancedLineError rather than a constructor failure.
    currency_id None means the tenant base currency.
    """

    account_id: UUID
    debit: Decimal = Decimal("0")
    credit: Decimal = Decimal("0")
    currency_id: UUID | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "debit", _to_decimal(self.debit, "debit"))
        object.__setattr__(self, "credit", _to_decimal(self.credit, "credit"))


@dataclass(frozen=True)
class DraftPatch:
    """
    Changes to apply to a draft entry.

    Fields left UNSET keep their current value.  ``lines``, when given,
    replaces the whole line set.  fiscal_period_id=None asks for the period
    to be re-resolved from the (possibly new) entry date.
    """

    entry_date: date | _Unset = UNSET
    description: str | None | _Unset = UNSET
    fiscal_period_id: UUID | None | _Unset = UNSET
    reference: EntryReference | None | _Unset = UNSET
    lines: tuple[LineInput, ...] | list[LineInput] | _Unset = UNSET

    @property
    def is_empty(self) -> bool:
        return all(
            getattr(self, name) is UNSET
            for name in ("entry_date", "description", "fiscal_period_id", "reference", "lines")
        )


# =============================================================================
# Read-side snapshots
# =============================================================================


@dataclass(frozen=True)
class AccountInfo:
    """Immutable snapshot of an account."""

    id: UUID
    tenant_id: UUID
    code: str
    name: str
    account_type: AccountType
    parent_id: UUID | None
    display_order: int
    is_active: bool
    description: str | None = None

    @property
    def normal_balance(self) -> NormalBalance:
        return normal_balance_for(self.account_type)

    @classmethod
    def from_model(cls, model: AccountModel) -> AccountInfo:
        return cls(
            id=model.id,
            tenant_id=model.tenant_id,
            code=model.code,
            name=model.name,
            account_type=AccountType(model.account_type),
            parent_id=model.parent_id,
            display_order=model.display_order,
            is_active=model.is_active,
            description=model.description,
        )


@dataclass(frozen=True)
class CurrencyInfo:
    """Immutable snapshot of a tenant currency."""

    id: UUID
    tenant_id: UUID
    code: str
    name: str
    symbol: str | None
    decimal_places: int
    is_base_currency: bool
    is_active: bool

    @classmethod
    def from_model(cls, model: CurrencyModel) -> CurrencyInfo:
        return cls(
            id=model.id,
            tenant_id=model.tenant_id,
            code=model.code,
            name=model.name,
            symbol=model.symbol,
            decimal_places=model.decimal_places,
            is_base_currency=model.is_base_currency,
            is_active=model.is_active,
        )


@dataclass(frozen=True)
class FiscalYearInfo:
    """Immutable snapshot of a fiscal year."""

    id: UUID
    tenant_id: UUID
    name: str
    start_date: date
    end_date: date
    is_active: bool
    is_closed: bool

    def contains_date(self, check_date: date) -> bool:
        return self.start_date <= check_date <= self.end_date

    @classmethod
    def from_model(cls, model: FiscalYearModel) -> FiscalYearInfo:
        return cls(
            id=model.id,
            tenant_id=model.tenant_id,
            name=model.name,
            start_date=model.start_date,
            end_date=model.end_date,
            is_active=model.is_active,
            is_closed=model.is_closed,
        )


@dataclass(frozen=True)
class FiscalPeriodInfo:
    """
    Immutable snapshot of a fiscal period.

    Used by resolve_period() and reporting to reason about periods without
    ORM access.
    """

    id: UUID
    tenant_id: UUID
    fiscal_year_id: UUID
    name: str
    code: str
    sequence_number: int
    start_date: date
    end_date: date
    is_active: bool
    is_locked: bool

    def contains_date(self, check_date: date) -> bool:
        """Check if a date falls within this period."""
        return self.start_date <= check_date <= self.end_date

    @classmethod
    def from_model(cls, model: FiscalPeriodModel) -> FiscalPeriodInfo:
        return cls(
            id=model.id,
            tenant_id=model.tenant_id,
            fiscal_year_id=model.fiscal_year_id,
            name=model.name,
            code=model.code,
            sequence_number=model.sequence_number,
            start_date=model.start_date,
            end_date=model.end_date,
            is_active=model.is_active,
            is_locked=model.is_locked,
        )


@dataclass(frozen=True)
class JournalLineRecord:
    """Immutable snapshot of a persisted journal line."""

    id: UUID
    line_number: int
    account_id: UUID
    currency_id: UUID
    debit: Decimal
    credit: Decimal
    exchange_rate: Decimal
    amount_base: Decimal
    description: str | None

    @property
    def is_debit(self) -> bool:
        return self.debit > 0

    @classmethod
    def from_model(cls, model: JournalEntryLineModel) -> JournalLineRecord:
        return cls(
            id=model.id,
            line_number=model.line_number,
            account_id=model.account_id,
            currency_id=model.currency_id,
            debit=model.debit,
            credit=model.credit,
            exchange_rate=model.exchange_rate,
            amount_base=model.amount_base,
            description=model.description,
        )


@dataclass(frozen=True)
class JournalEntryRecord:
    """
    Immutable snapshot of a journal entry and its lines.

    Contract:
        Returned by every JournalEntryService operation.  total_debits and
        total_credits are in base currency, recomputed from the lines.
    """

    id: UUID
    tenant_id: UUID
    entry_number: str
    fiscal_year_id: UUID
    fiscal_period_id: UUID
    entry_date: date
    reference: EntryReference | None
    description: str | None
    status: EntryStatus
    created_by_id: UUID
    posted_by_id: UUID | None
    posted_at: datetime | None
    lines: tuple[JournalLineRecord, ...]

    @property
    def is_posted(self) -> bool:
        return self.status == EntryStatus.POSTED

    @property
    def total_debits(self) -> Decimal:
        return sum((line.amount_base for line in self.lines if line.is_debit), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum(
            (line.amount_base for line in self.lines if not line.is_debit), Decimal("0")
        )

    @classmethod
    def from_model(cls, model: JournalEntryModel) -> JournalEntryRecord:
        return cls(
            id=model.id,
            tenant_id=model.tenant_id,
            entry_number=model.entry_number,
            fiscal_year_id=model.fiscal_year_id,
            fiscal_period_id=model.fiscal_period_id,
            entry_date=model.entry_date,
            reference=reference_from_columns(model.reference_type, model.reference_id),
            description=model.description,
            status=EntryStatus(model.status),
            created_by_id=model.created_by_id,
            posted_by_id=model.posted_by_id,
            posted_at=model.posted_at,
            lines=tuple(
                JournalLineRecord.from_model(line)
                for line in sorted(model.lines, key=lambda ln: ln.line_number)
            ),
        )
