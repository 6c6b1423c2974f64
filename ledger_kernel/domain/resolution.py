"""
Resolution -- explicit defaulting rules.

Responsibility:
    Pure functions that infer values a caller may omit: the fiscal period
    containing an entry date, the tenant base currency, and a line's
    currency.  Kept out of request preparation so each rule is testable on
    its own.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Services load the
    candidate snapshots and call these functions.

Invariants enforced:
    - A date resolves to exactly one active period, or fails.
    - A tenant resolves to exactly one base currency, or fails.

Failure modes:
    - NoPeriodFoundError when no active period contains the date.
    - AmbiguousPeriodError when more than one does (overlap bug).
    - NoBaseCurrencyError / MultipleBaseCurrenciesError.
"""

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from ledger_kernel.domain.dtos import CurrencyInfo, FiscalPeriodInfo
from ledger_kernel.exceptions import (
    AmbiguousPeriodError,
    MultipleBaseCurrenciesError,
    NoBaseCurrencyError,
    NoPeriodFoundError,
)


def resolve_period(
    tenant_id: UUID,
    on_date: date,
    periods: Iterable[FiscalPeriodInfo],
) -> FiscalPeriodInfo:
    """
    Return the tenant's active period containing ``on_date``.

    Locked periods are still returned; refusing them is the caller's
    decision (reports may target them, postings may not).

    Raises:
        NoPeriodFoundError: No active period contains the date.
        AmbiguousPeriodError: More than one active period contains it.
    """
    matches = [
        p
        for p in periods
        if p.tenant_id == tenant_id and p.is_active and p.contains_date(on_date)
    ]
    if not matches:
        raise NoPeriodFoundError(tenant_id=str(tenant_id), entry_date=on_date)
    if len(matches) > 1:
        raise AmbiguousPeriodError(
            entry_date=on_date,
            period_codes=sorted(p.code for p in matches),
        )
    return matches[0]


def resolve_base_currency(
    tenant_id: UUID,
    currencies: Iterable[CurrencyInfo],
) -> CurrencyInfo:
    """
    Return the tenant's single base currency.

    Raises:
        NoBaseCurrencyError: None flagged.
        MultipleBaseCurrenciesError: More than one flagged.
    """
    bases = [c for c in currencies if c.tenant_id == tenant_id and c.is_base_currency]
    if not bases:
        raise NoBaseCurrencyError(tenant_id=str(tenant_id))
    if len(bases) > 1:
        raise MultipleBaseCurrenciesError(
            tenant_id=str(tenant_id),
            currency_codes=sorted(c.code for c in bases),
        )
    return bases[0]


def resolve_line_currency(currency_id: UUID | None, base_currency: CurrencyInfo) -> UUID:
    """A line without a currency is in the base currency."""
    return currency_id if currency_id is not None else base_currency.id
