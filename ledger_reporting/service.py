"""
Reporting Service (``ledger_reporting.service``).

Responsibility
--------------
Orchestrates report generation -- trial balance, period trial balance,
general ledger, profit and loss, balance sheet, account balance -- and
ledger integrity verification, by bridging ``LedgerSelector`` to the pure
transformation functions in ``statements.py``.  This is a **read-only**
service: nothing is written.

Architecture position
---------------------
**Reporting layer** -- thin glue above the kernel selectors.
Constructor: ``session`` + ``clock`` + ``config``.

Invariants enforced
-------------------
* Read-only -- no mutations to the journal.
* Drafts are invisible: every figure comes from posted lines only.
* All amounts are ``Decimal`` in the tenant base currency.

Failure modes
-------------
* ``InvalidDateRangeError`` -- a range whose start is after its end.  The
  only business error a report raises on valid references.
* ``FiscalPeriodNotFoundError`` / ``AccountNotFoundError`` /
  ``CrossTenantReferenceError`` -- unknown or foreign identifiers.
* ``LedgerOutOfBalanceError`` -- raised by ``verify_ledger_integrity`` only.

Audit relevance
---------------
Structured log events are emitted for every report, carrying the tenant,
report type and parameters.  Reports are derived from the immutable
journal and can always be recomputed.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_kernel.domain.balance import balance_tolerance
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.resolution import resolve_base_currency
from ledger_kernel.exceptions import (
    CrossTenantReferenceError,
    FiscalPeriodNotFoundError,
    LedgerOutOfBalanceError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.fiscal import FiscalPeriod, FiscalYear
from ledger_kernel.selectors.ledger_selector import (
    DEFAULT_BATCH_SIZE,
    GeneralLedger,
    LedgerSelector,
    check_date_range,
)
from ledger_reporting.config import ReportingConfig
from ledger_reporting.models import (
    AccountBalanceReport,
    BalanceSheetReport,
    PeriodTrialBalanceReport,
    ProfitAndLossReport,
    ReportMetadata,
    ReportType,
    TrialBalanceReport,
)
from ledger_reporting.statements import (
    build_balance_sheet,
    build_period_trial_balance,
    build_profit_and_loss,
    build_trial_balance,
)

logger = get_logger("reporting.service")


class ReportingService:
    """
    Ledger report generation service.

    Contract
    --------
    * Every public method takes an explicit tenant_id and returns a typed
      report DTO, except ``general_ledger`` which returns a lazy
      ``GeneralLedger`` view.
    * All methods are **read-only**.

    Guarantees
    ----------
    * Report generation delegates to pure transformation functions in
      ``statements.py``; no financial logic lives in this class.
    * Clock is injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT enforce fiscal-period locks (read-only service).
    * Does NOT convert between currencies; every figure is base currency.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()
        self._ledger = LedgerSelector(session)

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _base_currency(self, tenant_id: UUID) -> tuple[str, int]:
        """Return (code, decimal places) of the tenant base currency.

        A tenant with no base currency yet cannot have posted anything, so
        its reports fall back to the configured default currency.
        """
        candidates = self._ledger.base_currencies(tenant_id)
        if not candidates:
            return self._config.default_currency, 2
        base = resolve_base_currency(tenant_id, candidates)
        return base.code, base.decimal_places

    def _build_metadata(
        self,
        report_type: ReportType,
        tenant_id: UUID,
        currency: str,
        as_of_date: date,
        period_start: date | None = None,
        period_end: date | None = None,
    ) -> ReportMetadata:
        """Build report metadata with injected clock timestamp."""
        return ReportMetadata(
            report_type=report_type,
            tenant_id=tenant_id,
            entity_name=self._config.entity_name,
            currency=currency,
            as_of_date=as_of_date,
            generated_at=self._clock.now().isoformat(),
            period_start=period_start,
            period_end=period_end,
        )

    def _load_period(
        self, tenant_id: UUID, fiscal_period_id: UUID
    ) -> tuple[FiscalPeriod, FiscalYear]:
        period = self._session.get(FiscalPeriod, fiscal_period_id)
        if period is None:
            raise FiscalPeriodNotFoundError(str(fiscal_period_id))
        if period.tenant_id != tenant_id:
            raise CrossTenantReferenceError(
                "FiscalPeriod", str(fiscal_period_id), str(tenant_id)
            )
        return period, self._session.get(FiscalYear, period.fiscal_year_id)

    # =========================================================================
    # Public API
    # =========================================================================

    def trial_balance(self, tenant_id: UUID, as_of_date: date) -> TrialBalanceReport:
        """
        Generate a trial balance of every account as of a date.

        Sums posted lines with entry_date <= as_of_date, presented with
        sign per the account's normal balance.
        """
        currency, places = self._base_currency(tenant_id)
        totals = self._ledger.account_totals(
            tenant_id, as_of_date=as_of_date, base_places=places
        )
        metadata = self._build_metadata(
            ReportType.TRIAL_BALANCE, tenant_id, currency, as_of_date
        )
        report = build_trial_balance(
            totals, self._config, metadata, balance_tolerance(places)
        )

        logger.info(
            "trial_balance_generated",
            extra={
                "tenant_id": str(tenant_id),
                "as_of_date": as_of_date.isoformat(),
                "currency": currency,
                "line_count": len(report.lines),
                "is_balanced": report.is_balanced,
            },
        )
        return report

    def period_trial_balance(
        self, tenant_id: UUID, fiscal_period_id: UUID
    ) -> PeriodTrialBalanceReport:
        """
        Generate opening, activity and ending balances for one period.

        Revenue and expense openings count from the fiscal-year start.
        """
        period, year = self._load_period(tenant_id, fiscal_period_id)
        currency, places = self._base_currency(tenant_id)
        day_before = period.start_date - timedelta(days=1)

        cumulative_opening = self._ledger.account_totals(
            tenant_id, as_of_date=day_before, base_places=places
        )
        if period.start_date > year.start_date:
            year_opening = self._ledger.account_totals(
                tenant_id,
                as_of_date=day_before,
                date_from=year.start_date,
                base_places=places,
            )
        else:
            year_opening = []
        activity = self._ledger.account_totals(
            tenant_id,
            as_of_date=period.end_date,
            date_from=period.start_date,
            base_places=places,
        )

        metadata = self._build_metadata(
            ReportType.PERIOD_TRIAL_BALANCE,
            tenant_id,
            currency,
            period.end_date,
            period_start=period.start_date,
            period_end=period.end_date,
        )
        report = build_period_trial_balance(
            cumulative_opening,
            year_opening,
            activity,
            self._config,
            metadata,
            period.id,
            period.code,
            balance_tolerance(places),
        )

        logger.info(
            "period_trial_balance_generated",
            extra={
                "tenant_id": str(tenant_id),
                "period_code": period.code,
                "line_count": len(report.lines),
                "is_balanced": report.is_balanced,
            },
        )
        return report

    def general_ledger(
        self,
        tenant_id: UUID,
        account_id: UUID,
        date_from: date | None = None,
        date_to: date | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> GeneralLedger:
        """
        Return the lazy general ledger of one account.

        Lines are read only while the returned view is iterated; iterating
        it again restarts from the opening balance.

        Raises:
            InvalidDateRangeError: date_from after date_to.
        """
        _, places = self._base_currency(tenant_id)
        ledger = self._ledger.general_ledger(
            tenant_id,
            account_id,
            date_from=date_from,
            date_to=date_to,
            base_places=places,
            batch_size=batch_size,
        )
        logger.info(
            "general_ledger_requested",
            extra={
                "tenant_id": str(tenant_id),
                "account_code": ledger.account.account_code,
                "date_from": date_from.isoformat() if date_from else None,
                "date_to": date_to.isoformat() if date_to else None,
            },
        )
        return ledger

    def profit_and_loss(
        self,
        tenant_id: UUID,
        fiscal_period_id: UUID,
        include_previous_periods: bool = False,
    ) -> ProfitAndLossReport:
        """
        Generate the profit and loss of a fiscal period.

        With include_previous_periods the range starts at the fiscal-year
        start (year to date) instead of the period start.
        """
        period, year = self._load_period(tenant_id, fiscal_period_id)
        start = year.start_date if include_previous_periods else period.start_date
        return self.profit_and_loss_for_range(tenant_id, start, period.end_date)

    def profit_and_loss_for_range(
        self,
        tenant_id: UUID,
        date_from: date,
        date_to: date,
    ) -> ProfitAndLossReport:
        """
        Generate a profit and loss over an arbitrary date range.

        Raises:
            InvalidDateRangeError: date_from after date_to.
        """
        check_date_range(date_from, date_to)
        currency, places = self._base_currency(tenant_id)
        totals = self._ledger.account_totals(
            tenant_id, as_of_date=date_to, date_from=date_from, base_places=places
        )
        metadata = self._build_metadata(
            ReportType.PROFIT_AND_LOSS,
            tenant_id,
            currency,
            date_to,
            period_start=date_from,
            period_end=date_to,
        )
        report = build_profit_and_loss(totals, self._config, metadata)

        logger.info(
            "profit_and_loss_generated",
            extra={
                "tenant_id": str(tenant_id),
                "period_start": date_from.isoformat(),
                "period_end": date_to.isoformat(),
                "currency": currency,
                "net_income": str(report.net_income),
            },
        )
        return report

    def balance_sheet(self, tenant_id: UUID, as_of_date: date) -> BalanceSheetReport:
        """
        Generate a balance sheet as of a date.

        Returns:
            BalanceSheetReport with A = L + E verification.
        """
        currency, places = self._base_currency(tenant_id)
        totals = self._ledger.account_totals(
            tenant_id, as_of_date=as_of_date, base_places=places
        )
        metadata = self._build_metadata(
            ReportType.BALANCE_SHEET, tenant_id, currency, as_of_date
        )
        report = build_balance_sheet(
            totals, self._config, metadata, balance_tolerance(places)
        )

        logger.info(
            "balance_sheet_generated",
            extra={
                "tenant_id": str(tenant_id),
                "as_of_date": as_of_date.isoformat(),
                "currency": currency,
                "total_assets": str(report.total_assets),
                "total_l_and_e": str(report.total_liabilities_and_equity),
                "is_balanced": report.is_balanced,
            },
        )
        return report

    def account_balance(
        self,
        tenant_id: UUID,
        account_id: UUID,
        as_of_date: date | None = None,
    ) -> AccountBalanceReport:
        """Natural-side balance of one account (all posted lines without a date)."""
        currency, places = self._base_currency(tenant_id)
        totals = self._ledger.account_totals_for(
            tenant_id, account_id, as_of_date=as_of_date, base_places=places
        )
        metadata = self._build_metadata(
            ReportType.ACCOUNT_BALANCE,
            tenant_id,
            currency,
            as_of_date or self._clock.now().date(),
        )
        return AccountBalanceReport(
            metadata=metadata,
            account_id=totals.account_id,
            account_code=totals.account_code,
            account_name=totals.account_name,
            account_type=totals.account_type.value,
            debit_total=totals.debit_total,
            credit_total=totals.credit_total,
            balance=totals.balance,
        )

    def verify_ledger_integrity(self, tenant_id: UUID) -> int:
        """
        Check every posted entry of the tenant balances within tolerance.

        Returns:
            The number of posted entries checked.

        Raises:
            LedgerOutOfBalanceError: Listing every offending entry number.
        """
        _, places = self._base_currency(tenant_id)
        tolerance = balance_tolerance(places)
        entries = self._ledger.posted_entry_totals(tenant_id, places)
        offending = [
            e.entry_number
            for e in entries
            if abs(e.total_debits - e.total_credits) > tolerance
        ]
        if offending:
            logger.critical(
                "ledger_out_of_balance",
                extra={
                    "tenant_id": str(tenant_id),
                    "entry_numbers": offending,
                    "tolerance": str(tolerance),
                },
            )
            raise LedgerOutOfBalanceError(str(tenant_id), offending)

        logger.info(
            "ledger_integrity_verified",
            extra={"tenant_id": str(tenant_id), "entries_checked": len(entries)},
        )
        return len(entries)
