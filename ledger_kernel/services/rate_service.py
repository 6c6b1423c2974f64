"""
Rate lookup -- the currency rate collaborator of the journal engine.

Responsibility:
    Defines the RateProvider port (``rate_at(currency_id, on_date)``) that
    JournalEntryService calls to compute each line's base amount, and a
    default implementation backed by the exchange_rates table.

Architecture position:
    Kernel > Services.  Any object with a matching ``rate_at`` method can be
    injected instead (e.g. a market-data client).

Invariants enforced:
    - The rate returned is the latest one effective on or before the date.
    - Missing rates raise RateUnavailableError; they are never defaulted.

Failure modes:
    - RateUnavailableError: No rate on or before the date.
"""

from datetime import date
from decimal import Decimal
from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.exceptions import RateUnavailableError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.currency import Currency, ExchangeRate

logger = get_logger("services.rate")


@runtime_checkable
class RateProvider(Protocol):
    """Converts a currency to its tenant's base currency on a date."""

    def rate_at(self, currency_id: UUID, on_date: date) -> Decimal:
        """Units of base currency per unit of ``currency_id`` on ``on_date``.

        Raises:
            RateUnavailableError: No rate is known.
        """
        ...


class ExchangeRateTableProvider:
    """
    RateProvider reading the exchange_rates table.

    Contract:
        The base currency always converts at 1.  Other currencies use the
        latest ExchangeRate with effective_date <= on_date.
    """

    def __init__(self, session: Session):
        self._session = session

    def rate_at(self, currency_id: UUID, on_date: date) -> Decimal:
        currency = self._session.get(Currency, currency_id)
        if currency is not None and currency.is_base_currency:
            return Decimal("1")

        rate = self._session.execute(
            select(ExchangeRate.rate)
            .where(
                ExchangeRate.currency_id == currency_id,
                ExchangeRate.effective_date <= on_date,
            )
            .order_by(ExchangeRate.effective_date.desc())
            .limit(1)
        ).scalar_one_or_none()

        if rate is None:
            code = currency.code if currency is not None else None
            logger.warning(
                "exchange_rate_unavailable",
                extra={"currency_id": str(currency_id), "on_date": str(on_date)},
            )
            raise RateUnavailableError(str(currency_id), on_date, currency_code=code)
        return Decimal(rate)
