"""
FiscalCalendarService -- fiscal years, periods, and period resolution.

Responsibility:
    Creates fiscal years and the periods that partition them, locks
    periods, closes years, and resolves the period containing a date.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by JournalEntryService to resolve and check the period of every
    draft, and by setup code to build the calendar.

Invariants enforced:
    - Fiscal years of one tenant never overlap.
    - Periods lie within their year and never overlap each other.
    - Locking is one-way and idempotent; the lock takes a row lock
      (FOR UPDATE) so it serializes against in-flight postings, which
      hold FOR SHARE on the same row.
    - Returns frozen DTOs, never ORM entities.  Flush-only.

Failure modes:
    - InvalidDateRangeError: start after end.
    - PeriodOverlapError, PeriodOutOfRangeError, DuplicateCodeError.
    - FiscalYearClosedError: adding periods to a closed year.
    - NoPeriodFoundError / AmbiguousPeriodError from resolve_period().

Audit relevance:
    Year creation, period creation, lock, and close are logged with
    tenant_id, codes, and actor_id.
"""

from calendar import monthrange
from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import FiscalPeriodInfo, FiscalYearInfo
from ledger_kernel.domain.resolution import resolve_period as _resolve_period
from ledger_kernel.exceptions import (
    DuplicateCodeError,
    FiscalPeriodNotFoundError,
    FiscalYearClosedError,
    FiscalYearNotFoundError,
    InvalidDateRangeError,
    PeriodOutOfRangeError,
    PeriodOverlapError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.fiscal import FiscalPeriod, FiscalYear
from ledger_kernel.services.base import BaseService

logger = get_logger("services.fiscal_calendar")


def _month_end(day: date) -> date:
    return day.replace(day=monthrange(day.year, day.month)[1])


class FiscalCalendarService(BaseService[FiscalPeriod]):
    """
    Service for the fiscal calendar of each tenant.

    Contract:
        Every method takes an explicit tenant_id and never reads or writes
        another tenant's years or periods.

    Guarantees:
        - Overlap checks run before insert, so the caller sees a typed
          error rather than a database constraint failure.
        - lock_period() called twice returns the same locked snapshot.

    Non-goals:
        - Does NOT decide whether an entry may be posted; JournalEntryService
          applies the locked/closed rules using the snapshots returned here.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    # =========================================================================
    # Fiscal years
    # =========================================================================

    def create_fiscal_year(
        self,
        tenant_id: UUID,
        name: str,
        start_date: date,
        end_date: date,
        actor_id: UUID,
    ) -> FiscalYearInfo:
        """
        Create a fiscal year.

        Raises:
            InvalidDateRangeError: start_date > end_date.
            PeriodOverlapError: Overlaps another year of the tenant.
        """
        if start_date > end_date:
            raise InvalidDateRangeError(start_date, end_date)

        overlapping = self.session.execute(
            select(FiscalYear)
            .where(
                FiscalYear.tenant_id == tenant_id,
                FiscalYear.start_date <= end_date,
                FiscalYear.end_date >= start_date,
            )
            .limit(1)
        ).scalar_one_or_none()
        if overlapping is not None:
            raise PeriodOverlapError(
                new_name=name,
                existing_name=overlapping.name,
                overlap_start=max(start_date, overlapping.start_date),
                overlap_end=min(end_date, overlapping.end_date),
            )

        year = FiscalYear(
            tenant_id=tenant_id,
            name=name,
            start_date=start_date,
            end_date=end_date,
            created_by_id=actor_id,
        )
        self.session.add(year)
        self.session.flush()

        logger.info(
            "fiscal_year_created",
            extra={
                "tenant_id": str(tenant_id),
                "fiscal_year": name,
                "start_date": str(start_date),
                "end_date": str(end_date),
            },
        )
        return FiscalYearInfo.from_model(year)

    def close_fiscal_year(
        self,
        tenant_id: UUID,
        fiscal_year_id: UUID,
        actor_id: UUID,
    ) -> FiscalYearInfo:
        """
        Close a fiscal year.

        Postconditions:
            - No draft may be created, edited, or posted with a date in the
              year (FiscalYearClosedError).
            - Calling again on a closed year is a no-op.
        """
        year = self._get_owned(
            FiscalYear, tenant_id, fiscal_year_id, FiscalYearNotFoundError, for_update=True
        )
        if year.is_closed:
            logger.info(
                "fiscal_year_already_closed",
                extra={"tenant_id": str(tenant_id), "fiscal_year": year.name},
            )
            return FiscalYearInfo.from_model(year)

        year.close(actor_id=actor_id, closed_at=self._clock.now())
        year.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "fiscal_year_closed",
            extra={
                "tenant_id": str(tenant_id),
                "fiscal_year": year.name,
                "actor_id": str(actor_id),
            },
        )
        return FiscalYearInfo.from_model(year)

    def get_fiscal_year(self, tenant_id: UUID, fiscal_year_id: UUID) -> FiscalYearInfo:
        year = self._get_owned(FiscalYear, tenant_id, fiscal_year_id, FiscalYearNotFoundError)
        return FiscalYearInfo.from_model(year)

    def fiscal_year_for_date(self, tenant_id: UUID, on_date: date) -> FiscalYearInfo | None:
        year = self.session.execute(
            select(FiscalYear).where(
                FiscalYear.tenant_id == tenant_id,
                FiscalYear.start_date <= on_date,
                FiscalYear.end_date >= on_date,
            )
        ).scalar_one_or_none()
        return FiscalYearInfo.from_model(year) if year is not None else None

    # =========================================================================
    # Periods
    # =========================================================================

    def create_fiscal_period(
        self,
        tenant_id: UUID,
        fiscal_year_id: UUID,
        name: str,
        code: str,
        start_date: date,
        end_date: date,
        sequence_number: int,
        actor_id: UUID,
    ) -> FiscalPeriodInfo:
        """
        Create a period within a fiscal year.

        Two ranges overlap if: start1 <= end2 AND start2 <= end1.

        Raises:
            InvalidDateRangeError: start_date > end_date.
            PeriodOutOfRangeError: Range not inside the fiscal year.
            PeriodOverlapError: Range overlaps another period of the year.
            DuplicateCodeError: code or sequence_number already used in the year.
            FiscalYearClosedError: The year is closed.
        """
        if start_date > end_date:
            raise InvalidDateRangeError(start_date, end_date)

        year = self._get_owned(FiscalYear, tenant_id, fiscal_year_id, FiscalYearNotFoundError)
        if year.is_closed:
            raise FiscalYearClosedError(str(year.id), year.name, "add periods")

        if start_date < year.start_date or end_date > year.end_date:
            raise PeriodOutOfRangeError(
                subject=f"Period {code}",
                start_date=start_date,
                end_date=end_date,
                bounds_start=year.start_date,
                bounds_end=year.end_date,
            )

        siblings = self.session.execute(
            select(FiscalPeriod).where(FiscalPeriod.fiscal_year_id == fiscal_year_id)
        ).scalars().all()

        for existing in siblings:
            if existing.code == code:
                raise DuplicateCodeError("FiscalPeriod", code, str(tenant_id))
            if existing.sequence_number == sequence_number:
                raise DuplicateCodeError(
                    "FiscalPeriod sequence", str(sequence_number), str(tenant_id)
                )
            if existing.start_date <= end_date and start_date <= existing.end_date:
                raise PeriodOverlapError(
                    new_name=code,
                    existing_name=existing.code,
                    overlap_start=max(start_date, existing.start_date),
                    overlap_end=min(end_date, existing.end_date),
                )

        period = FiscalPeriod(
            tenant_id=tenant_id,
            fiscal_year_id=fiscal_year_id,
            name=name,
            code=code,
            sequence_number=sequence_number,
            start_date=start_date,
            end_date=end_date,
            created_by_id=actor_id,
        )
        self.session.add(period)
        self.session.flush()

        logger.info(
            "period_created",
            extra={
                "tenant_id": str(tenant_id),
                "period_code": code,
                "start_date": str(start_date),
                "end_date": str(end_date),
            },
        )
        return FiscalPeriodInfo.from_model(period)

    def generate_monthly_periods(
        self,
        tenant_id: UUID,
        fiscal_year_id: UUID,
        actor_id: UUID,
    ) -> list[FiscalPeriodInfo]:
        """
        Partition a fiscal year into contiguous calendar-month periods.

        The first and last periods are clipped to the year bounds, so a year
        starting mid-month still gets a gap-free partition.  Codes are
        "YYYY-MM" of the period start.
        """
        year = self._get_owned(FiscalYear, tenant_id, fiscal_year_id, FiscalYearNotFoundError)

        created: list[FiscalPeriodInfo] = []
        cursor = year.start_date
        sequence = 1
        while cursor <= year.end_date:
            period_end = min(_month_end(cursor), year.end_date)
            created.append(
                self.create_fiscal_period(
                    tenant_id=tenant_id,
                    fiscal_year_id=fiscal_year_id,
                    name=cursor.strftime("%b %Y"),
                    code=cursor.strftime("%Y-%m"),
                    start_date=cursor,
                    end_date=period_end,
                    sequence_number=sequence,
                    actor_id=actor_id,
                )
            )
            cursor = period_end + timedelta(days=1)
            sequence += 1
        return created

    def lock_period(
        self,
        tenant_id: UUID,
        period_id: UUID,
        actor_id: UUID,
    ) -> FiscalPeriodInfo:
        """
        Lock a fiscal period.  Idempotent.

        Takes FOR UPDATE on the period row: a post() holding FOR SHARE on
        the same row either finishes first (and the lock follows) or waits
        and then sees the period locked.

        Postconditions:
            - period.is_locked is True.
            - New drafts, edits, and postings in the period fail with
              PeriodLockedError; posted entries stay queryable.
        """
        period = self._get_owned(
            FiscalPeriod, tenant_id, period_id, FiscalPeriodNotFoundError, for_update=True
        )

        if period.is_locked:
            logger.info(
                "period_already_locked",
                extra={"tenant_id": str(tenant_id), "period_code": period.code},
            )
            return FiscalPeriodInfo.from_model(period)

        period.lock(actor_id=actor_id, locked_at=self._clock.now())
        period.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "period_locked",
            extra={
                "tenant_id": str(tenant_id),
                "period_code": period.code,
                "actor_id": str(actor_id),
            },
        )
        return FiscalPeriodInfo.from_model(period)

    def get_period(self, tenant_id: UUID, period_id: UUID) -> FiscalPeriodInfo:
        period = self._get_owned(FiscalPeriod, tenant_id, period_id, FiscalPeriodNotFoundError)
        return FiscalPeriodInfo.from_model(period)

    def list_periods(
        self,
        tenant_id: UUID,
        fiscal_year_id: UUID | None = None,
    ) -> list[FiscalPeriodInfo]:
        stmt = select(FiscalPeriod).where(FiscalPeriod.tenant_id == tenant_id)
        if fiscal_year_id is not None:
            stmt = stmt.where(FiscalPeriod.fiscal_year_id == fiscal_year_id)
        stmt = stmt.order_by(FiscalPeriod.start_date)
        return [FiscalPeriodInfo.from_model(p) for p in self.session.execute(stmt).scalars()]

    def resolve_period(self, tenant_id: UUID, on_date: date) -> FiscalPeriodInfo:
        """
        Return the period containing ``on_date``.

        Raises:
            NoPeriodFoundError: No active period contains the date.
            AmbiguousPeriodError: More than one does.
        """
        candidates = self.session.execute(
            select(FiscalPeriod).where(
                FiscalPeriod.tenant_id == tenant_id,
                FiscalPeriod.start_date <= on_date,
                FiscalPeriod.end_date >= on_date,
            )
        ).scalars()
        return _resolve_period(
            tenant_id,
            on_date,
            (FiscalPeriodInfo.from_model(p) for p in candidates),
        )
