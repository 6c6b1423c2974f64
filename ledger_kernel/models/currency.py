"""
Module: ledger_kernel.models.currency
Responsibility: ORM persistence for tenant currencies and their dated
    exchange rates against the tenant base currency.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - code is unique per tenant and a valid ISO 4217 code (validated by
      CurrencyService before insert).
    - At most one base currency per tenant: partial unique index
      uq_currency_one_base_per_tenant.  "Exactly one" is enforced by
      CurrencyService (the base cannot be deactivated or demoted without a
      replacement).
    - One exchange rate per currency per effective date; rate > 0.

Failure modes:
    - IntegrityError on a second base currency or duplicate rate date.

Audit relevance:
    Journal lines copy the rate they used (JournalEntryLine.exchange_rate),
    so later rate corrections never rewrite historical base amounts.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TenantScopedMixin, TrackedBase, UUIDString
from ledger_kernel.db.types import RateNumeric


class Currency(TenantScopedMixin, TrackedBase):
    """
    Currency configured for a tenant.

    Contract:
        Exactly one active currency per tenant carries is_base_currency=True
        once the tenant is set up.  All journal balances are compared in the
        base currency.

    Guarantees:
        - decimal_places is between 0 and 8.
    """

    __tablename__ = "currencies"

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_currency_tenant_code"),
        CheckConstraint(
            "decimal_places >= 0 AND decimal_places <= 8",
            name="ck_currency_decimal_places",
        ),
        Index(
            "uq_currency_one_base_per_tenant",
            "tenant_id",
            unique=True,
            postgresql_where=text("is_base_currency"),
            sqlite_where=text("is_base_currency = 1"),
        ),
    )

    code: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    symbol: Mapped[str | None] = mapped_column(
        String(10),
        nullable=True,
    )

    decimal_places: Mapped[int] = mapped_column(
        Integer,
        default=2,
        nullable=False,
    )

    is_base_currency: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    rates: Mapped[list["ExchangeRate"]] = relationship(
        back_populates="currency",
        order_by="ExchangeRate.effective_date",
        cascade="all, delete-orphan",
        lazy="select",
    )

    def __repr__(self) -> str:
        flag = " base" if self.is_base_currency else ""
        return f"<Currency {self.code}{flag}>"


class ExchangeRate(TenantScopedMixin, TrackedBase):
    """
    Dated conversion factor from a currency to its tenant's base currency.

    Contract:
        amount_in_currency * rate = amount_in_base.  The rate effective on a
        date is the latest row with effective_date <= that date.

    Non-goals:
        - No cross rates or triangulation; every rate is against base.
    """

    __tablename__ = "exchange_rates"

    __table_args__ = (
        UniqueConstraint(
            "currency_id", "effective_date", name="uq_exchange_rate_currency_date"
        ),
        CheckConstraint("rate > 0", name="ck_exchange_rate_positive"),
        Index("idx_exchange_rate_lookup", "currency_id", "effective_date"),
    )

    currency_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("currencies.id"),
        nullable=False,
    )

    effective_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    rate: Mapped[Decimal] = mapped_column(
        RateNumeric,
        nullable=False,
    )

    source: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    currency: Mapped["Currency"] = relationship(back_populates="rates")

    def __repr__(self) -> str:
        return f"<ExchangeRate {self.currency_id} {self.effective_date} = {self.rate}>"

    def convert(self, amount: Decimal) -> Decimal:
        """Convert an amount to base.  Does NOT round; callers use round_money()."""
        return amount * self.rate
