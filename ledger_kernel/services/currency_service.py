"""
CurrencyService -- tenant currencies, the base currency, and dated rates.

Responsibility:
    Registers ISO 4217 currencies per tenant, designates the single base
    currency, records exchange rates against base, and resolves the base
    currency for the journal engine.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Exactly one base currency per tenant once designated.  Switching base
      demotes the old one and promotes the new one under row locks in the
      same transaction; the base currency cannot be deactivated.
    - Currency codes are valid ISO 4217 and unique per tenant.
    - Rates are positive; one per currency per date.

Failure modes:
    - InvalidCurrencyError, DuplicateCodeError, BaseCurrencyRequiredError,
      NoBaseCurrencyError, MultipleBaseCurrenciesError.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.db.types import MAX_CURRENCY_DECIMAL_PLACES, validate_currency
from ledger_kernel.domain.dtos import CurrencyInfo
from ledger_kernel.domain.resolution import resolve_base_currency as _resolve_base_currency
from ledger_kernel.exceptions import (
    BaseCurrencyRequiredError,
    CurrencyNotFoundError,
    DuplicateCodeError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.currency import Currency, ExchangeRate
from ledger_kernel.services.base import BaseService

logger = get_logger("services.currency")


class CurrencyService(BaseService[Currency]):
    """
    Service for tenant currencies.

    Contract:
        Every method takes an explicit tenant_id and returns CurrencyInfo
        DTOs.  Flush-only.
    """

    def create_currency(
        self,
        tenant_id: UUID,
        code: str,
        name: str,
        actor_id: UUID,
        symbol: str | None = None,
        decimal_places: int = 2,
        is_base_currency: bool = False,
    ) -> CurrencyInfo:
        """
        Register a currency for a tenant.

        When is_base_currency is True the previous base (if any) is demoted.

        Raises:
            InvalidCurrencyError: Not an ISO 4217 code.
            DuplicateCodeError: Code already registered for the tenant.
            ValueError: decimal_places outside 0..8.
        """
        code = validate_currency(code)
        if not 0 <= decimal_places <= MAX_CURRENCY_DECIMAL_PLACES:
            raise ValueError(
                f"decimal_places must be between 0 and {MAX_CURRENCY_DECIMAL_PLACES}"
            )

        clash = self.session.execute(
            select(Currency.id).where(Currency.tenant_id == tenant_id, Currency.code == code)
        ).first()
        if clash is not None:
            raise DuplicateCodeError("Currency", code, str(tenant_id))

        currency = Currency(
            tenant_id=tenant_id,
            code=code,
            name=name,
            symbol=symbol,
            decimal_places=decimal_places,
            is_base_currency=False,
            created_by_id=actor_id,
        )
        self.session.add(currency)
        self.session.flush()

        logger.info(
            "currency_created",
            extra={"tenant_id": str(tenant_id), "currency_code": code},
        )

        if is_base_currency:
            return self.set_base_currency(tenant_id, currency.id, actor_id)
        return CurrencyInfo.from_model(currency)

    def set_base_currency(
        self,
        tenant_id: UUID,
        currency_id: UUID,
        actor_id: UUID,
    ) -> CurrencyInfo:
        """
        Make a currency the tenant's base, demoting the current base.

        The demotion is flushed before the promotion so the one-base-per-
        tenant unique index never sees two base rows.
        """
        currency = self._get_owned(
            Currency, tenant_id, currency_id, CurrencyNotFoundError, for_update=True
        )
        if currency.is_base_currency:
            return CurrencyInfo.from_model(currency)

        current_bases = self.session.execute(
            select(Currency)
            .where(Currency.tenant_id == tenant_id, Currency.is_base_currency.is_(True))
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()
        for old in current_bases:
            old.is_base_currency = False
            old.updated_by_id = actor_id
        self.session.flush()

        currency.is_base_currency = True
        currency.is_active = True
        currency.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "base_currency_set",
            extra={
                "tenant_id": str(tenant_id),
                "currency_code": currency.code,
                "previous": [c.code for c in current_bases],
            },
        )
        return CurrencyInfo.from_model(currency)

    def deactivate_currency(
        self,
        tenant_id: UUID,
        currency_id: UUID,
        actor_id: UUID,
    ) -> CurrencyInfo:
        """
        Deactivate a currency.

        Raises:
            BaseCurrencyRequiredError: The currency is the tenant base.
        """
        currency = self._get_owned(Currency, tenant_id, currency_id, CurrencyNotFoundError)
        if currency.is_base_currency:
            raise BaseCurrencyRequiredError(str(currency_id), "deactivate")
        if currency.is_active:
            currency.is_active = False
            currency.updated_by_id = actor_id
            self.session.flush()
            logger.info(
                "currency_deactivated",
                extra={"tenant_id": str(tenant_id), "currency_code": currency.code},
            )
        return CurrencyInfo.from_model(currency)

    def record_exchange_rate(
        self,
        tenant_id: UUID,
        currency_id: UUID,
        effective_date: date,
        rate: Decimal,
        actor_id: UUID,
        source: str | None = None,
    ) -> None:
        """
        Record the rate to base effective from ``effective_date``.

        A second rate for the same date replaces the first.

        Raises:
            ValueError: rate <= 0, or the currency is the base currency.
        """
        rate = Decimal(str(rate))
        if rate <= 0:
            raise ValueError(f"Exchange rate must be positive, got {rate}")

        currency = self._get_owned(Currency, tenant_id, currency_id, CurrencyNotFoundError)
        if currency.is_base_currency:
            raise ValueError("The base currency has a fixed rate of 1")

        existing = self.session.execute(
            select(ExchangeRate).where(
                ExchangeRate.currency_id == currency_id,
                ExchangeRate.effective_date == effective_date,
            )
        ).scalar_one_or_none()
        if existing is not None:
            existing.rate = rate
            existing.source = source
            existing.updated_by_id = actor_id
        else:
            self.session.add(
                ExchangeRate(
                    tenant_id=tenant_id,
                    currency_id=currency_id,
                    effective_date=effective_date,
                    rate=rate,
                    source=source,
                    created_by_id=actor_id,
                )
            )
        self.session.flush()

        logger.info(
            "exchange_rate_recorded",
            extra={
                "tenant_id": str(tenant_id),
                "currency_code": currency.code,
                "effective_date": str(effective_date),
                "rate": str(rate),
            },
        )

    def get_currency(self, tenant_id: UUID, currency_id: UUID) -> CurrencyInfo:
        return CurrencyInfo.from_model(
            self._get_owned(Currency, tenant_id, currency_id, CurrencyNotFoundError)
        )

    def get_currency_by_code(self, tenant_id: UUID, code: str) -> CurrencyInfo:
        currency = self.session.execute(
            select(Currency).where(
                Currency.tenant_id == tenant_id, Currency.code == code.upper()
            )
        ).scalar_one_or_none()
        if currency is None:
            raise CurrencyNotFoundError(code)
        return CurrencyInfo.from_model(currency)

    def list_currencies(self, tenant_id: UUID) -> list[CurrencyInfo]:
        rows = self.session.execute(
            select(Currency).where(Currency.tenant_id == tenant_id).order_by(Currency.code)
        ).scalars()
        return [CurrencyInfo.from_model(c) for c in rows]

    def resolve_base_currency(self, tenant_id: UUID) -> CurrencyInfo:
        """
        Return the tenant's base currency.

        Raises:
            NoBaseCurrencyError / MultipleBaseCurrenciesError.
        """
        rows = self.session.execute(
            select(Currency).where(
                Currency.tenant_id == tenant_id, Currency.is_base_currency.is_(True)
            )
        ).scalars()
        return _resolve_base_currency(tenant_id, (CurrencyInfo.from_model(c) for c in rows))
