"""
Currency and exchange rate tests.

Verifies:
- One base currency per tenant; promoting a new one demotes the old
- The base currency cannot be deactivated
- Rate lookup returns the latest rate effective on or before a date
- Missing rates raise RateUnavailableError rather than defaulting
- A currency's rates load in date order and are removed with it
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.exceptions import (
    BaseCurrencyRequiredError,
    CrossTenantReferenceError,
    CurrencyNotFoundError,
    DuplicateCodeError,
    InvalidCurrencyError,
    NoBaseCurrencyError,
    RateUnavailableError,
)
from ledger_kernel.models.currency import Currency, ExchangeRate
from ledger_kernel.services.rate_service import ExchangeRateTableProvider, RateProvider


class TestCreateCurrency:
    def test_create_currency(self, currency_service, tenant_id, test_actor_id):
        info = currency_service.create_currency(tenant_id, "eur", "Euro", test_actor_id, symbol="€")
        assert info.code == "EUR"
        assert info.decimal_places == 2
        assert not info.is_base_currency
        assert info.is_active

    def test_invalid_iso_code_rejected(self, currency_service, tenant_id, test_actor_id):
        with pytest.raises(InvalidCurrencyError):
            currency_service.create_currency(tenant_id, "XYZ", "Nope", test_actor_id)

    def test_duplicate_code_rejected(self, currency_service, tenant_id, test_actor_id):
        currency_service.create_currency(tenant_id, "EUR", "Euro", test_actor_id)
        with pytest.raises(DuplicateCodeError):
            currency_service.create_currency(tenant_id, "EUR", "Euro", test_actor_id)

    def test_decimal_places_bounded(self, currency_service, tenant_id, test_actor_id):
        with pytest.raises(ValueError):
            currency_service.create_currency(
                tenant_id, "JPY", "Yen", test_actor_id, decimal_places=9
            )


class TestBaseCurrency:
    def test_no_base_currency(self, currency_service, tenant_id, test_actor_id):
        currency_service.create_currency(tenant_id, "EUR", "Euro", test_actor_id)
        with pytest.raises(NoBaseCurrencyError):
            currency_service.resolve_base_currency(tenant_id)

    def test_create_as_base(self, currency_service, tenant_id, test_actor_id):
        usd = currency_service.create_currency(
            tenant_id, "USD", "US Dollar", test_actor_id, is_base_currency=True
        )
        assert usd.is_base_currency
        assert currency_service.resolve_base_currency(tenant_id).id == usd.id

    def test_promoting_demotes_previous_base(self, currency_service, tenant_id, test_actor_id):
        usd = currency_service.create_currency(
            tenant_id, "USD", "US Dollar", test_actor_id, is_base_currency=True
        )
        eur = currency_service.create_currency(tenant_id, "EUR", "Euro", test_actor_id)
        currency_service.set_base_currency(tenant_id, eur.id, test_actor_id)

        assert currency_service.resolve_base_currency(tenant_id).id == eur.id
        assert not currency_service.get_currency(tenant_id, usd.id).is_base_currency

    def test_base_is_per_tenant(self, currency_service, tenant_id, test_actor_id):
        other = uuid4()
        currency_service.create_currency(tenant_id, "USD", "US Dollar", test_actor_id, is_base_currency=True)
        gbp = currency_service.create_currency(other, "GBP", "Pound", test_actor_id, is_base_currency=True)
        assert currency_service.resolve_base_currency(other).id == gbp.id

    def test_base_cannot_be_deactivated(self, currency_service, tenant_id, test_actor_id):
        usd = currency_service.create_currency(
            tenant_id, "USD", "US Dollar", test_actor_id, is_base_currency=True
        )
        with pytest.raises(BaseCurrencyRequiredError):
            currency_service.deactivate_currency(tenant_id, usd.id, test_actor_id)

    def test_deactivate_foreign_currency(self, currency_service, tenant_id, test_actor_id):
        eur = currency_service.create_currency(tenant_id, "EUR", "Euro", test_actor_id)
        assert not currency_service.deactivate_currency(tenant_id, eur.id, test_actor_id).is_active

    def test_other_tenant_currency_not_visible(self, currency_service, tenant_id, test_actor_id):
        foreign = currency_service.create_currency(uuid4(), "EUR", "Euro", test_actor_id)
        with pytest.raises(CrossTenantReferenceError):
            currency_service.get_currency(tenant_id, foreign.id)
        with pytest.raises(CurrencyNotFoundError):
            currency_service.get_currency_by_code(tenant_id, "EUR")


class TestExchangeRates:
    @pytest.fixture
    def currencies(self, currency_service, tenant_id, test_actor_id):
        usd = currency_service.create_currency(
            tenant_id, "USD", "US Dollar", test_actor_id, is_base_currency=True
        )
        eur = currency_service.create_currency(tenant_id, "EUR", "Euro", test_actor_id)
        return usd, eur

    def test_latest_rate_on_or_before_date(
        self, session, currency_service, currencies, tenant_id, test_actor_id
    ):
        _, eur = currencies
        currency_service.record_exchange_rate(tenant_id, eur.id, date(2025, 1, 1), Decimal("1.10"), test_actor_id)
        currency_service.record_exchange_rate(tenant_id, eur.id, date(2025, 2, 1), Decimal("1.20"), test_actor_id)
        provider = ExchangeRateTableProvider(session)

        assert provider.rate_at(eur.id, date(2025, 1, 31)) == Decimal("1.10")
        assert provider.rate_at(eur.id, date(2025, 2, 1)) == Decimal("1.20")
        assert provider.rate_at(eur.id, date(2025, 12, 31)) == Decimal("1.20")

    def test_base_currency_converts_at_one(self, session, currencies):
        usd, _ = currencies
        assert ExchangeRateTableProvider(session).rate_at(usd.id, date(2025, 1, 1)) == Decimal("1")

    def test_missing_rate_raises(self, session, currency_service, currencies, tenant_id, test_actor_id):
        _, eur = currencies
        currency_service.record_exchange_rate(tenant_id, eur.id, date(2025, 6, 1), Decimal("1.10"), test_actor_id)
        with pytest.raises(RateUnavailableError) as exc_info:
            ExchangeRateTableProvider(session).rate_at(eur.id, date(2025, 5, 31))
        assert exc_info.value.currency_code == "EUR"

    def test_same_date_rate_replaced(
        self, session, currency_service, currencies, tenant_id, test_actor_id
    ):
        _, eur = currencies
        currency_service.record_exchange_rate(tenant_id, eur.id, date(2025, 1, 1), Decimal("1.10"), test_actor_id)
        currency_service.record_exchange_rate(tenant_id, eur.id, date(2025, 1, 1), Decimal("1.15"), test_actor_id)
        assert ExchangeRateTableProvider(session).rate_at(eur.id, date(2025, 1, 1)) == Decimal("1.15")

    @pytest.mark.parametrize("rate", [Decimal("0"), Decimal("-1.5")])
    def test_non_positive_rate_rejected(self, currency_service, currencies, tenant_id, test_actor_id, rate):
        _, eur = currencies
        with pytest.raises(ValueError, match="positive"):
            currency_service.record_exchange_rate(tenant_id, eur.id, date(2025, 1, 1), rate, test_actor_id)

    def test_rate_for_base_rejected(self, currency_service, currencies, tenant_id, test_actor_id):
        usd, _ = currencies
        with pytest.raises(ValueError, match="fixed rate"):
            currency_service.record_exchange_rate(tenant_id, usd.id, date(2025, 1, 1), Decimal("1"), test_actor_id)

    def test_table_provider_satisfies_port(self, session):
        assert isinstance(ExchangeRateTableProvider(session), RateProvider)

    def test_rates_collection_in_date_order(
        self, session, currency_service, currencies, tenant_id, test_actor_id
    ):
        _, eur = currencies
        currency_service.record_exchange_rate(tenant_id, eur.id, date(2025, 3, 1), Decimal("1.30"), test_actor_id)
        currency_service.record_exchange_rate(tenant_id, eur.id, date(2025, 1, 1), Decimal("1.10"), test_actor_id)
        session.expire_all()

        rates = session.get(Currency, eur.id).rates
        assert [r.effective_date for r in rates] == [date(2025, 1, 1), date(2025, 3, 1)]

    def test_deleting_currency_removes_its_rates(
        self, session, currency_service, currencies, tenant_id, test_actor_id
    ):
        _, eur = currencies
        currency_service.record_exchange_rate(tenant_id, eur.id, date(2025, 1, 1), Decimal("1.10"), test_actor_id)
        currency_service.record_exchange_rate(tenant_id, eur.id, date(2025, 2, 1), Decimal("1.20"), test_actor_id)

        session.delete(session.get(Currency, eur.id))
        session.flush()

        remaining = session.query(ExchangeRate).filter(ExchangeRate.currency_id == eur.id).count()
        assert remaining == 0
