"""
JournalEntryService -- the journal entry state machine.

Responsibility:
    Creates, edits, deletes, posts, and reverses journal entries.  Every
    write re-runs the full validation pipeline against the line set being
    persisted; posting re-validates against freshly read lines under a row
    lock and publishes JournalEntryPosted after commit.

Architecture position:
    Kernel > Services -- imperative shell.  Consumes FiscalCalendarService
    and CurrencyService for resolution, an EntryNumberAllocator, a
    RateProvider, an EventPublisher, and a Clock.

States:
    draft --post()--> posted   (terminal; correction is a new reversing entry)

Validation pipeline (draft save, in order):
    (a) Period: resolve by date when not supplied; the date must lie in the
        period; the period must not be locked; the year must not be closed.
    (b) Lines: at least two; each exactly one of debit/credit > 0.
    (c) Balance: lines converted to base currency at the entry-date rate;
        |debits - credits| within the base-currency tolerance.  An accepted
        difference is added to the amount_base of the largest line on the
        short side, so saved base totals are exactly equal.  Currencies are
        checked for tenant ownership and activity before conversion.
    (d) References: every account exists, is active, and belongs to the
        tenant.

Invariants enforced:
    - Posted entries are never updated or deleted (EntryAlreadyPostedError
      here; ImmutabilityViolationError from the ORM listeners as backstop).
    - post() locks the entry FOR UPDATE and re-reads its status inside the
      lock, so two concurrent posts cannot both succeed.
    - post() holds FOR SHARE on the period row, so a concurrent
      lock_period() either completes first (post fails PeriodLockedError)
      or waits for the post to finish.
    - A failed post leaves the entry a draft: the status flip runs in a
      savepoint and nothing is published before it succeeds.

Failure modes:
    - Validation: InsufficientLinesError, UnbalancedLineError,
      ImbalancedEntryError, NoPeriodFoundError, PeriodOutOfRangeError,
      CrossTenantReferenceError, AccountInactiveError,
      CurrencyInactiveError, *NotFoundError.
    - State: EntryAlreadyPostedError, PeriodLockedError,
      FiscalYearClosedError, EntryNotPostedError, EntryAlreadyReversedError.
    - External: RateUnavailableError, NumberingError.  Never retried here;
      no partial entry is persisted.

Audit relevance:
    Every transition is logged with tenant_id, entry_id, entry_number and
    actor_id bound through LogContext.  Rejections are logged at WARNING
    with the error code before being re-raised.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.balance import (
    assert_balanced,
    compute_amount_base,
    rounding_residual,
    validate_entry_lines,
    validate_line_count,
    validate_line_sides,
)
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import (
    UNSET,
    CurrencyInfo,
    DraftPatch,
    JournalEntryRecord,
    LineInput,
)
from ledger_kernel.domain.events import JournalEntryPosted
from ledger_kernel.domain.references import (
    EntryReference,
    ReferenceKind,
    ReversalRef,
    reference_to_columns,
)
from ledger_kernel.domain.resolution import resolve_line_currency
from ledger_kernel.domain.values import EntryStatus
from ledger_kernel.exceptions import (
    AccountInactiveError,
    AccountNotFoundError,
    CrossTenantReferenceError,
    CurrencyInactiveError,
    CurrencyNotFoundError,
    EntryAlreadyPostedError,
    EntryAlreadyReversedError,
    EntryNotPostedError,
    FiscalPeriodNotFoundError,
    FiscalYearClosedError,
    JournalEntryNotFoundError,
    LedgerKernelError,
    PeriodLockedError,
    PeriodOutOfRangeError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.currency import Currency
from ledger_kernel.models.fiscal import FiscalPeriod, FiscalYear
from ledger_kernel.models.journal import JournalEntry, JournalEntryLine
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.currency_service import CurrencyService
from ledger_kernel.services.event_publisher import (
    EventBus,
    EventPublisher,
    TransactionalEventPublisher,
)
from ledger_kernel.services.fiscal_calendar_service import FiscalCalendarService
from ledger_kernel.services.rate_service import ExchangeRateTableProvider, RateProvider
from ledger_kernel.services.sequence_service import (
    EntryNumberAllocator,
    SequenceEntryNumberAllocator,
)

logger = get_logger("services.journal")


@dataclass(frozen=True)
class _PricedLine:
    """A validated line with its base-currency amount."""

    account_id: UUID
    currency_id: UUID
    debit: Decimal
    credit: Decimal
    exchange_rate: Decimal
    amount_base: Decimal
    description: str | None


class JournalEntryService(BaseService[JournalEntry]):
    """
    Journal entry state machine.

    Contract:
        Every operation takes an explicit tenant_id, never touches another
        tenant's rows, and returns a frozen JournalEntryRecord.  Flush-only:
        the caller commits.  JournalEntryPosted is delivered by the
        publisher when the caller's transaction commits.

    Guarantees:
        - Balance is recomputed from the lines being saved or posted; no
          cached balanced flag exists.
        - create_draft() calls the numbering allocator exactly once.

    Non-goals:
        - No authorization: the caller has already checked permissions.
        - No automatic retry of external failures.
    """

    def __init__(
        self,
        session: Session,
        numbering: EntryNumberAllocator | None = None,
        rate_provider: RateProvider | None = None,
        publisher: EventPublisher | None = None,
        clock: Clock | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._numbering = numbering or SequenceEntryNumberAllocator(session)
        self._rates = rate_provider or ExchangeRateTableProvider(session)
        self._publisher = publisher or TransactionalEventPublisher(session, EventBus())
        self._calendar = FiscalCalendarService(session, self._clock)
        self._currencies = CurrencyService(session)

    # =========================================================================
    # Commands
    # =========================================================================

    def create_draft(
        self,
        tenant_id: UUID,
        entry_date: date,
        lines: Sequence[LineInput],
        actor_id: UUID,
        description: str | None = None,
        fiscal_period_id: UUID | None = None,
        reference: EntryReference | None = None,
    ) -> JournalEntryRecord:
        """
        Validate and persist a new draft entry.

        Preconditions:
            - lines is an ordered sequence of LineInput; line numbers are
              assigned from 1 in the order given.

        Postconditions:
            - A draft entry exists with a freshly allocated entry number and
              every line's amount_base computed at the entry_date rate.
            - No balance impact: drafts are invisible to reports.

        Raises:
            See the module docstring for the validation order.
        """
        with LogContext.bind(tenant_id=tenant_id, actor_id=actor_id):
            try:
                return self._create(
                    tenant_id=tenant_id,
                    entry_date=entry_date,
                    lines=lines,
                    actor_id=actor_id,
                    description=description,
                    fiscal_period_id=fiscal_period_id,
                    reference=reference,
                )
            except LedgerKernelError as exc:
                self._log_rejection("create", exc)
                raise

    def update_draft(
        self,
        tenant_id: UUID,
        entry_id: UUID,
        patch: DraftPatch,
        actor_id: UUID,
    ) -> JournalEntryRecord:
        """
        Apply a patch to a draft entry and re-run the full validation.

        A patch that supplies ``lines`` replaces every line of the entry,
        priced at the current rates.  Otherwise the existing lines keep
        their stored rates, unless the entry date moves, in which case they
        are re-priced at the new date.  A reversal draft keeps the rates of
        the entry it reverses even when its date moves.

        Raises:
            EntryAlreadyPostedError: The entry is posted.
            PeriodLockedError: The entry's current or target period is locked.
            Any draft validation error.
        """
        with LogContext.bind(tenant_id=tenant_id, entry_id=entry_id, actor_id=actor_id):
            try:
                return self._update(tenant_id, entry_id, patch, actor_id)
            except LedgerKernelError as exc:
                self._log_rejection("update", exc)
                raise

    def post(self, tenant_id: UUID, entry_id: UUID, actor_id: UUID) -> JournalEntryRecord:
        """
        Post a draft entry, making it a permanent ledger fact.

        Steps:
            1. Lock the entry row FOR UPDATE and re-read its status.
            2. Lock the period row FOR SHARE; check lock, year close, and
               date containment.
            3. Re-read the lines and re-validate count, sides and balance.
            4. In a savepoint: flip status, stamp posted_by_id/posted_at.
            5. Publish JournalEntryPosted (delivered on commit).

        Postconditions:
            - status is posted; posted_at never changes again.
            - On any failure the entry is still a draft and no event is
              pending.

        Raises:
            EntryAlreadyPostedError: Already posted (never a silent success).
            PeriodLockedError, FiscalYearClosedError, PeriodOutOfRangeError.
            InsufficientLinesError, UnbalancedLineError, ImbalancedEntryError.
        """
        with LogContext.bind(tenant_id=tenant_id, entry_id=entry_id, actor_id=actor_id):
            try:
                return self._post(tenant_id, entry_id, actor_id)
            except LedgerKernelError as exc:
                self._log_rejection("post", exc)
                raise

    def delete(self, tenant_id: UUID, entry_id: UUID, actor_id: UUID) -> None:
        """
        Delete a draft entry and its lines.

        Raises:
            EntryAlreadyPostedError: Posted entries can never be deleted.
            PeriodLockedError: The draft sits in a locked period.
        """
        with LogContext.bind(tenant_id=tenant_id, entry_id=entry_id, actor_id=actor_id):
            try:
                entry = self._lock_entry(tenant_id, entry_id)
                if entry.is_posted:
                    raise EntryAlreadyPostedError(str(entry.id), entry.entry_number, "delete")
                period = self.session.get(FiscalPeriod, entry.fiscal_period_id)
                if period is not None and period.is_locked:
                    raise PeriodLockedError(str(period.id), period.code, "delete entries")

                entry_number = entry.entry_number
                self.session.delete(entry)
                self.session.flush()
            except LedgerKernelError as exc:
                self._log_rejection("delete", exc)
                raise

            logger.info("journal_entry_deleted", extra={"entry_number": entry_number})

    def reverse(
        self,
        tenant_id: UUID,
        entry_id: UUID,
        reversal_date: date,
        actor_id: UUID,
        description: str | None = None,
    ) -> JournalEntryRecord:
        """
        Create a draft that reverses a posted entry.

        Every line's debit and credit are swapped.  The reversal converts
        at the original lines' rates, so it cancels the original exactly in
        base currency.  It references the original (ReversalRef) and stays
        a draft until posted.

        Raises:
            EntryNotPostedError: The original is a draft.
            EntryAlreadyReversedError: A reversal referencing it exists.
            Any draft validation error for reversal_date.
        """
        with LogContext.bind(tenant_id=tenant_id, entry_id=entry_id, actor_id=actor_id):
            try:
                original = self._lock_entry(tenant_id, entry_id)
                if not original.is_posted:
                    raise EntryNotPostedError(str(original.id), str(original.status))

                existing = self.session.execute(
                    select(JournalEntry.id).where(
                        JournalEntry.tenant_id == tenant_id,
                        JournalEntry.reference_type == ReferenceKind.REVERSAL.value,
                        JournalEntry.reference_id == original.id,
                    )
                ).scalar_one_or_none()
                if existing is not None:
                    raise EntryAlreadyReversedError(str(original.id), str(existing))

                source_lines = sorted(original.lines, key=lambda ln: ln.line_number)
                record = self._create(
                    tenant_id=tenant_id,
                    entry_date=reversal_date,
                    lines=[
                        LineInput(
                            account_id=line.account_id,
                            debit=line.credit,
                            credit=line.debit,
                            currency_id=line.currency_id,
                            description=line.description,
                        )
                        for line in source_lines
                    ],
                    actor_id=actor_id,
                    description=description or f"Reversal of {original.entry_number}",
                    fiscal_period_id=None,
                    reference=ReversalRef(original.id),
                    fixed_rates=[line.exchange_rate for line in source_lines],
                )
            except LedgerKernelError as exc:
                self._log_rejection("reverse", exc)
                raise

            logger.info(
                "journal_entry_reversal_drafted",
                extra={
                    "original_entry_number": original.entry_number,
                    "reversal_entry_number": record.entry_number,
                },
            )
            return record

    # =========================================================================
    # Queries
    # =========================================================================

    def get_entry(self, tenant_id: UUID, entry_id: UUID) -> JournalEntryRecord:
        entry = self._get_owned(JournalEntry, tenant_id, entry_id, JournalEntryNotFoundError)
        return JournalEntryRecord.from_model(entry)

    def list_entries(
        self,
        tenant_id: UUID,
        status: EntryStatus | None = None,
        fiscal_period_id: UUID | None = None,
    ) -> list[JournalEntryRecord]:
        stmt = select(JournalEntry).where(JournalEntry.tenant_id == tenant_id)
        if status is not None:
            stmt = stmt.where(JournalEntry.status == EntryStatus(status).value)
        if fiscal_period_id is not None:
            stmt = stmt.where(JournalEntry.fiscal_period_id == fiscal_period_id)
        stmt = stmt.order_by(JournalEntry.entry_date, JournalEntry.entry_number)
        return [JournalEntryRecord.from_model(e) for e in self.session.execute(stmt).scalars()]

    # =========================================================================
    # Internals: commands
    # =========================================================================

    def _create(
        self,
        tenant_id: UUID,
        entry_date: date,
        lines: Sequence[LineInput],
        actor_id: UUID,
        description: str | None,
        fiscal_period_id: UUID | None,
        reference: EntryReference | None,
        fixed_rates: Sequence[Decimal] | None = None,
    ) -> JournalEntryRecord:
        period, year = self._target_period(tenant_id, entry_date, fiscal_period_id, "create entries")
        priced = self._validate_lines(tenant_id, entry_date, list(lines), fixed_rates)
        reference_type, reference_id = reference_to_columns(reference)

        with self.session.begin_nested():
            entry_number = self._numbering.allocate_entry_number(tenant_id)
            entry = JournalEntry(
                tenant_id=tenant_id,
                entry_number=entry_number,
                fiscal_year_id=year.id,
                fiscal_period_id=period.id,
                entry_date=entry_date,
                reference_type=reference_type,
                reference_id=reference_id,
                description=description,
                status=EntryStatus.DRAFT,
                created_by_id=actor_id,
            )
            entry.lines.extend(self._line_rows(tenant_id, actor_id, priced))
            self.session.add(entry)
            self.session.flush()

        logger.info(
            "journal_entry_drafted",
            extra={
                "entry_id": str(entry.id),
                "entry_number": entry_number,
                "entry_date": str(entry_date),
                "period_code": period.code,
                "line_count": len(priced),
                "reference_type": reference_type,
            },
        )
        return JournalEntryRecord.from_model(entry)

    def _update(
        self,
        tenant_id: UUID,
        entry_id: UUID,
        patch: DraftPatch,
        actor_id: UUID,
    ) -> JournalEntryRecord:
        entry = self._lock_entry(tenant_id, entry_id)
        if entry.is_posted:
            raise EntryAlreadyPostedError(str(entry.id), entry.entry_number, "update")

        current_period = self.session.get(FiscalPeriod, entry.fiscal_period_id)
        if current_period is not None and current_period.is_locked:
            raise PeriodLockedError(str(current_period.id), current_period.code, "edit entries")

        new_date = entry.entry_date if patch.entry_date is UNSET else patch.entry_date
        if patch.fiscal_period_id is not UNSET:
            period_id = patch.fiscal_period_id
        elif new_date != entry.entry_date:
            period_id = None
        else:
            period_id = entry.fiscal_period_id
        period, year = self._target_period(tenant_id, new_date, period_id, "edit entries")

        replace_lines = patch.lines is not UNSET
        fixed_rates = None
        if replace_lines:
            inputs = list(patch.lines)
        else:
            current_lines = sorted(entry.lines, key=lambda ln: ln.line_number)
            inputs = [
                LineInput(
                    account_id=line.account_id,
                    debit=line.debit,
                    credit=line.credit,
                    currency_id=line.currency_id,
                    description=line.description,
                )
                for line in current_lines
            ]
            # Kept lines keep their rates unless the date moves; a reversal
            # always keeps the rates of the entry it cancels.
            is_reversal = entry.reference_type == ReferenceKind.REVERSAL.value
            if new_date == entry.entry_date or is_reversal:
                fixed_rates = [line.exchange_rate for line in current_lines]
        priced = self._validate_lines(tenant_id, new_date, inputs, fixed_rates)

        with self.session.begin_nested():
            entry.entry_date = new_date
            entry.fiscal_period_id = period.id
            entry.fiscal_year_id = year.id
            if patch.description is not UNSET:
                entry.description = patch.description
            if patch.reference is not UNSET:
                entry.reference_type, entry.reference_id = reference_to_columns(patch.reference)
            entry.updated_by_id = actor_id

            if replace_lines:
                entry.lines.clear()
                self.session.flush()
                entry.lines.extend(self._line_rows(tenant_id, actor_id, priced))
            else:
                for line, fresh in zip(
                    sorted(entry.lines, key=lambda ln: ln.line_number), priced
                ):
                    line.exchange_rate = fresh.exchange_rate
                    line.amount_base = fresh.amount_base
            self.session.flush()

        logger.info(
            "journal_entry_updated",
            extra={
                "entry_number": entry.entry_number,
                "lines_replaced": replace_lines,
                "line_count": len(priced),
            },
        )
        return JournalEntryRecord.from_model(entry)

    def _post(self, tenant_id: UUID, entry_id: UUID, actor_id: UUID) -> JournalEntryRecord:
        entry = self._lock_entry(tenant_id, entry_id)
        if entry.is_posted:
            raise EntryAlreadyPostedError(str(entry.id), entry.entry_number, "post")

        period = self.session.execute(
            select(FiscalPeriod)
            .where(FiscalPeriod.id == entry.fiscal_period_id)
            .with_for_update(read=True)
            .execution_options(populate_existing=True)
        ).scalar_one()
        year = self.session.execute(
            select(FiscalYear)
            .where(FiscalYear.id == period.fiscal_year_id)
            .execution_options(populate_existing=True)
        ).scalar_one()
        self._check_period_open(period, year, entry.entry_date, "post")

        fresh_lines = self.session.execute(
            select(JournalEntryLine)
            .where(JournalEntryLine.journal_entry_id == entry.id)
            .order_by(JournalEntryLine.line_number)
            .execution_options(populate_existing=True)
        ).scalars().all()
        base = self._currencies.resolve_base_currency(tenant_id)
        total_debits, total_credits = validate_entry_lines(
            fresh_lines, base.decimal_places, entry_id=str(entry.id)
        )

        posted_at = self._clock.now()
        with self.session.begin_nested():
            entry.status = EntryStatus.POSTED
            entry.posted_by_id = actor_id
            entry.posted_at = posted_at
            entry.updated_by_id = actor_id
            self.session.flush()

        self._publisher.publish(
            JournalEntryPosted(
                entry_id=entry.id,
                tenant_id=tenant_id,
                entry_number=entry.entry_number,
                entry_date=entry.entry_date,
                posted_at=posted_at,
                posted_by_id=actor_id,
            )
        )

        logger.info(
            "journal_entry_posted",
            extra={
                "entry_number": entry.entry_number,
                "period_code": period.code,
                "total_debits": total_debits,
                "total_credits": total_credits,
                "posted_at": posted_at,
            },
        )
        return JournalEntryRecord.from_model(entry)

    # =========================================================================
    # Internals: validation
    # =========================================================================

    def _lock_entry(self, tenant_id: UUID, entry_id: UUID) -> JournalEntry:
        return self._get_owned(
            JournalEntry, tenant_id, entry_id, JournalEntryNotFoundError, for_update=True
        )

    def _target_period(
        self,
        tenant_id: UUID,
        entry_date: date,
        fiscal_period_id: UUID | None,
        operation: str,
    ) -> tuple[FiscalPeriod, FiscalYear]:
        """Step (a): resolve or load the period, then check it is open."""
        if fiscal_period_id is None:
            info = self._calendar.resolve_period(tenant_id, entry_date)
            period = self.session.get(FiscalPeriod, info.id)
        else:
            period = self._get_owned(
                FiscalPeriod, tenant_id, fiscal_period_id, FiscalPeriodNotFoundError
            )
        year = self.session.get(FiscalYear, period.fiscal_year_id)
        self._check_period_open(period, year, entry_date, operation)
        return period, year

    @staticmethod
    def _check_period_open(
        period: FiscalPeriod,
        year: FiscalYear,
        entry_date: date,
        operation: str,
    ) -> None:
        if period.is_locked:
            raise PeriodLockedError(str(period.id), period.code, operation)
        if year.is_closed:
            raise FiscalYearClosedError(str(year.id), year.name, operation)
        if not period.contains_date(entry_date):
            raise PeriodOutOfRangeError(
                subject="Entry date",
                start_date=entry_date,
                end_date=entry_date,
                bounds_start=period.start_date,
                bounds_end=period.end_date,
            )

    def _validate_lines(
        self,
        tenant_id: UUID,
        entry_date: date,
        inputs: list[LineInput],
        fixed_rates: Sequence[Decimal] | None,
    ) -> list[_PricedLine]:
        """Steps (b) through (d)."""
        validate_line_count(inputs)
        validate_line_sides(inputs)

        base = self._currencies.resolve_base_currency(tenant_id)
        priced = self._price_lines(tenant_id, entry_date, inputs, base, fixed_rates)
        assert_balanced(priced, base.decimal_places)

        index, residual = rounding_residual(priced)
        if index is not None:
            line = priced[index]
            priced[index] = replace(line, amount_base=line.amount_base + residual)
            logger.debug(
                "rounding_residual_booked",
                extra={"line_number": index + 1, "residual": residual},
            )

        self._check_accounts(tenant_id, {line.account_id for line in priced})
        return priced

    def _price_lines(
        self,
        tenant_id: UUID,
        entry_date: date,
        inputs: list[LineInput],
        base: CurrencyInfo,
        fixed_rates: Sequence[Decimal] | None,
    ) -> list[_PricedLine]:
        currency_ids = [resolve_line_currency(line.currency_id, base) for line in inputs]
        self._check_currencies(tenant_id, set(currency_ids))

        rate_cache: dict[UUID, Decimal] = {base.id: Decimal("1")}
        priced: list[_PricedLine] = []
        for index, (line, currency_id) in enumerate(zip(inputs, currency_ids)):
            if fixed_rates is not None:
                rate = fixed_rates[index]
            else:
                if currency_id not in rate_cache:
                    rate_cache[currency_id] = Decimal(
                        self._rates.rate_at(currency_id, entry_date)
                    )
                rate = rate_cache[currency_id]
            amount = line.debit if line.debit > 0 else line.credit
            priced.append(
                _PricedLine(
                    account_id=line.account_id,
                    currency_id=currency_id,
                    debit=line.debit,
                    credit=line.credit,
                    exchange_rate=rate,
                    amount_base=compute_amount_base(amount, rate, base.decimal_places),
                    description=line.description,
                )
            )
        return priced

    def _check_currencies(self, tenant_id: UUID, currency_ids: set[UUID]) -> None:
        found = {
            c.id: c
            for c in self.session.execute(
                select(Currency).where(Currency.id.in_(currency_ids))
            ).scalars()
        }
        for currency_id in sorted(currency_ids, key=str):
            currency = found.get(currency_id)
            if currency is None:
                raise CurrencyNotFoundError(str(currency_id))
            if currency.tenant_id != tenant_id:
                raise CrossTenantReferenceError("Currency", str(currency_id), str(tenant_id))
            if not currency.is_active:
                raise CurrencyInactiveError(str(currency_id), currency.code)

    def _check_accounts(self, tenant_id: UUID, account_ids: set[UUID]) -> None:
        """Step (d): every account exists, belongs to the tenant, and is active."""
        found = {
            a.id: a
            for a in self.session.execute(
                select(Account).where(Account.id.in_(account_ids))
            ).scalars()
        }
        for account_id in sorted(account_ids, key=str):
            account = found.get(account_id)
            if account is None:
                raise AccountNotFoundError(str(account_id))
            if account.tenant_id != tenant_id:
                raise CrossTenantReferenceError("Account", str(account_id), str(tenant_id))
            if not account.is_active:
                raise AccountInactiveError(str(account_id), account.code)

    @staticmethod
    def _line_rows(
        tenant_id: UUID,
        actor_id: UUID,
        priced: Iterable[_PricedLine],
    ) -> list[JournalEntryLine]:
        return [
            JournalEntryLine(
                tenant_id=tenant_id,
                account_id=line.account_id,
                currency_id=line.currency_id,
                debit=line.debit,
                credit=line.credit,
                exchange_rate=line.exchange_rate,
                amount_base=line.amount_base,
                description=line.description,
                line_number=number,
                created_by_id=actor_id,
            )
            for number, line in enumerate(priced, start=1)
        ]

    @staticmethod
    def _log_rejection(operation: str, exc: LedgerKernelError) -> None:
        logger.warning(
            "journal_entry_rejected",
            extra={
                "operation": operation,
                "error_code": exc.code,
                "error": str(exc),
            },
        )
