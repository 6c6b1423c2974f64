"""
Module: ledger_kernel.selectors.ledger_selector
Responsibility: Read-only ledger queries over posted journal lines: account
    totals (trial balance input), opening balances, the general ledger
    stream with running balances, and the per-entry balance check used by
    integrity verification.  The ledger is a derived view; there are no
    stored balances anywhere.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.  MUST NOT import from services/ or outer
    layers.

Invariants enforced:
    - Drafts are invisible: every query filters status == posted.  This is
      a hard filter, not a parameter.
    - Every query is scoped to one tenant_id.
    - Amounts are base currency (amount_base), summed in SQL and quantized
      to the base currency's precision.

Failure modes:
    - InvalidDateRangeError when date_from > date_to.
    - AccountNotFoundError / CrossTenantReferenceError for a general ledger
      request on a missing or foreign account.
    - Otherwise returns empty results or zero totals.

Audit relevance:
    LedgerSelector is the authoritative read path for every report.  Each
    figure can be recomputed from posted lines at any time.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import round_money
from ledger_kernel.domain.dtos import CurrencyInfo
from ledger_kernel.domain.values import AccountType, EntryStatus, signed_balance
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    CrossTenantReferenceError,
    InvalidDateRangeError,
)
from ledger_kernel.models.account import Account
from ledger_kernel.models.currency import Currency
from ledger_kernel.models.journal import JournalEntry, JournalEntryLine
from ledger_kernel.selectors.base import BaseSelector

_ZERO = Decimal("0")

DEFAULT_BATCH_SIZE = 500


@dataclass(frozen=True)
class AccountTotals:
    """Posted base-currency debit and credit totals of one account."""

    account_id: UUID
    account_code: str
    account_name: str
    account_type: AccountType
    parent_id: UUID | None
    is_active: bool
    debit_total: Decimal
    credit_total: Decimal

    @property
    def balance(self) -> Decimal:
        """Net balance on the account's natural side."""
        return signed_balance(self.account_type, self.debit_total, self.credit_total)


@dataclass(frozen=True)
class LedgerLine:
    """One posted line of a general ledger, with the running balance after it."""

    entry_id: UUID
    entry_number: str
    entry_date: date
    line_id: UUID
    line_number: int
    description: str | None
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


@dataclass(frozen=True)
class EntryTotals:
    entry_id: UUID
    entry_number: str
    total_debits: Decimal
    total_credits: Decimal


def check_date_range(date_from: date | None, date_to: date | None) -> None:
    if date_from is not None and date_to is not None and date_from > date_to:
        raise InvalidDateRangeError(start_date=date_from, end_date=date_to)


class GeneralLedger:
    """
    Lazy, restartable general ledger of one account.

    Contract:
        Each iteration runs a fresh streamed query (``yield_per``) and
        yields LedgerLine rows ordered by entry date, then entry number,
        then line number.  Nothing is cached between iterations, so
        iterating again starts from the opening balance and reflects the
        ledger as it is at that moment.

    Non-goals:
        - Not thread-safe: it shares the caller's Session.
    """

    def __init__(
        self,
        session: Session,
        tenant_id: UUID,
        account: AccountTotals,
        date_from: date | None,
        date_to: date | None,
        opening_balance: Decimal,
        base_places: int = 2,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        self._session = session
        self.tenant_id = tenant_id
        self.account = account
        self.date_from = date_from
        self.date_to = date_to
        self.opening_balance = opening_balance
        self._base_places = base_places
        self._batch_size = batch_size

    def __repr__(self) -> str:
        return (
            f"<GeneralLedger {self.account.account_code} "
            f"{self.date_from or '...'} to {self.date_to or '...'}>"
        )

    def _statement(self):
        stmt = (
            select(
                JournalEntry.id,
                JournalEntry.entry_number,
                JournalEntry.entry_date,
                JournalEntry.description,
                JournalEntryLine.id,
                JournalEntryLine.line_number,
                JournalEntryLine.description,
                JournalEntryLine.debit,
                JournalEntryLine.amount_base,
            )
            .select_from(JournalEntryLine)
            .join(JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id)
            .where(
                JournalEntry.tenant_id == self.tenant_id,
                JournalEntry.status == EntryStatus.POSTED.value,
                JournalEntryLine.account_id == self.account.account_id,
            )
        )
        if self.date_from is not None:
            stmt = stmt.where(JournalEntry.entry_date >= self.date_from)
        if self.date_to is not None:
            stmt = stmt.where(JournalEntry.entry_date <= self.date_to)
        return stmt.order_by(
            JournalEntry.entry_date,
            JournalEntry.entry_number,
            JournalEntryLine.line_number,
        ).execution_options(yield_per=self._batch_size)

    def __iter__(self) -> Iterator[LedgerLine]:
        running = self.opening_balance
        result = self._session.execute(self._statement())
        try:
            for (
                entry_id,
                entry_number,
                entry_date,
                entry_description,
                line_id,
                line_number,
                line_description,
                debit,
                amount_base,
            ) in result:
                amount = round_money(Decimal(amount_base), self._base_places)
                is_debit = debit > 0
                debit_amount = amount if is_debit else _ZERO
                credit_amount = _ZERO if is_debit else amount
                running += signed_balance(
                    self.account.account_type, debit_amount, credit_amount
                )
                yield LedgerLine(
                    entry_id=entry_id,
                    entry_number=entry_number,
                    entry_date=entry_date,
                    line_id=line_id,
                    line_number=line_number,
                    description=line_description or entry_description,
                    debit=debit_amount,
                    credit=credit_amount,
                    running_balance=running,
                )
        finally:
            result.close()


class LedgerSelector(BaseSelector):
    """
    Selector for ledger queries.

    Contract:
        All queries read posted lines of one tenant, optionally bounded by
        entry date.  Totals are Decimal, quantized to the base currency's
        decimal places passed by the caller.

    Guarantees:
        - No stored balances.  Every figure is computed at query time.
        - account_totals() returns one row per account of the tenant,
          including accounts with no activity (zero totals).
    """

    def base_currencies(self, tenant_id: UUID) -> list[CurrencyInfo]:
        """Currencies flagged as base for the tenant (normally exactly one)."""
        rows = self.session.execute(
            select(Currency).where(
                Currency.tenant_id == tenant_id, Currency.is_base_currency.is_(True)
            )
        ).scalars()
        return [CurrencyInfo.from_model(c) for c in rows]

    def account_totals(
        self,
        tenant_id: UUID,
        as_of_date: date | None = None,
        date_from: date | None = None,
        base_places: int = 2,
        account_id: UUID | None = None,
    ) -> list[AccountTotals]:
        """
        Posted debit and credit totals per account.

        Args:
            as_of_date: Include lines with entry_date <= as_of_date.
            date_from: Include lines with entry_date >= date_from.
            account_id: Restrict to one account.

        Returns:
            AccountTotals ordered by account code.

        Raises:
            InvalidDateRangeError: date_from after as_of_date.
        """
        check_date_range(date_from, as_of_date)

        debit_sum = func.sum(
            case((JournalEntryLine.debit > 0, JournalEntryLine.amount_base), else_=_ZERO)
        ).label("debit_total")
        credit_sum = func.sum(
            case((JournalEntryLine.debit > 0, _ZERO), else_=JournalEntryLine.amount_base)
        ).label("credit_total")

        totals_stmt = (
            select(JournalEntryLine.account_id, debit_sum, credit_sum)
            .join(JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id)
            .where(
                JournalEntry.tenant_id == tenant_id,
                JournalEntry.status == EntryStatus.POSTED.value,
            )
            .group_by(JournalEntryLine.account_id)
        )
        if as_of_date is not None:
            totals_stmt = totals_stmt.where(JournalEntry.entry_date <= as_of_date)
        if date_from is not None:
            totals_stmt = totals_stmt.where(JournalEntry.entry_date >= date_from)
        if account_id is not None:
            totals_stmt = totals_stmt.where(JournalEntryLine.account_id == account_id)

        sums = {
            row.account_id: (row.debit_total, row.credit_total)
            for row in self.session.execute(totals_stmt)
        }

        accounts_stmt = select(Account).where(Account.tenant_id == tenant_id)
        if account_id is not None:
            accounts_stmt = accounts_stmt.where(Account.id == account_id)
        accounts_stmt = accounts_stmt.order_by(Account.code)

        results = []
        for account in self.session.execute(accounts_stmt).scalars():
            debit_total, credit_total = sums.get(account.id, (_ZERO, _ZERO))
            results.append(
                AccountTotals(
                    account_id=account.id,
                    account_code=account.code,
                    account_name=account.name,
                    account_type=AccountType(account.account_type),
                    parent_id=account.parent_id,
                    is_active=account.is_active,
                    debit_total=round_money(Decimal(debit_total or _ZERO), base_places),
                    credit_total=round_money(Decimal(credit_total or _ZERO), base_places),
                )
            )
        return results

    def account_totals_for(
        self,
        tenant_id: UUID,
        account_id: UUID,
        as_of_date: date | None = None,
        date_from: date | None = None,
        base_places: int = 2,
    ) -> AccountTotals:
        """
        Totals of a single account of the tenant.

        Raises:
            AccountNotFoundError / CrossTenantReferenceError.
        """
        owner = self.session.execute(
            select(Account.tenant_id).where(Account.id == account_id)
        ).scalar_one_or_none()
        if owner is None:
            raise AccountNotFoundError(str(account_id))
        if owner != tenant_id:
            raise CrossTenantReferenceError("Account", str(account_id), str(tenant_id))
        (totals,) = self.account_totals(
            tenant_id,
            as_of_date=as_of_date,
            date_from=date_from,
            base_places=base_places,
            account_id=account_id,
        )
        return totals

    def general_ledger(
        self,
        tenant_id: UUID,
        account_id: UUID,
        date_from: date | None = None,
        date_to: date | None = None,
        base_places: int = 2,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> GeneralLedger:
        """
        Build the general ledger view of one account.

        The opening balance is the account's natural balance of every
        posted line dated before date_from (zero without date_from).  No
        line query runs until the view is iterated.
        """
        check_date_range(date_from, date_to)
        if date_from is not None:
            account = self.account_totals_for(
                tenant_id,
                account_id,
                as_of_date=date_from - timedelta(days=1),
                base_places=base_places,
            )
            opening = account.balance
        else:
            # Account identity only; nothing is dated before date.min.
            account = self.account_totals_for(
                tenant_id, account_id, as_of_date=date.min, base_places=base_places
            )
            opening = _ZERO
        return GeneralLedger(
            session=self.session,
            tenant_id=tenant_id,
            account=account,
            date_from=date_from,
            date_to=date_to,
            opening_balance=opening,
            base_places=base_places,
            batch_size=batch_size,
        )

    def posted_entry_totals(self, tenant_id: UUID, base_places: int = 2) -> list[EntryTotals]:
        """Base-currency debit and credit totals of every posted entry."""
        debit_sum = func.sum(
            case((JournalEntryLine.debit > 0, JournalEntryLine.amount_base), else_=_ZERO)
        )
        credit_sum = func.sum(
            case((JournalEntryLine.debit > 0, _ZERO), else_=JournalEntryLine.amount_base)
        )
        stmt = (
            select(JournalEntry.id, JournalEntry.entry_number, debit_sum, credit_sum)
            .join(JournalEntryLine, JournalEntryLine.journal_entry_id == JournalEntry.id)
            .where(
                JournalEntry.tenant_id == tenant_id,
                JournalEntry.status == EntryStatus.POSTED.value,
            )
            .group_by(JournalEntry.id, JournalEntry.entry_number)
            .order_by(JournalEntry.entry_number)
        )
        return [
            EntryTotals(
                entry_id=entry_id,
                entry_number=entry_number,
                total_debits=round_money(Decimal(debits or _ZERO), base_places),
                total_credits=round_money(Decimal(credits or _ZERO), base_places),
            )
            for entry_id, entry_number, debits, credits in self.session.execute(stmt)
        ]

