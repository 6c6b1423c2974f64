"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts, the target of
    every journal line.
Architecture position: Kernel > Models.  May import from db/ and the pure
    domain enums only.

Invariants enforced:
    - code is unique per tenant (uq_account_tenant_code).
    - parent_id references an account of the same tenant, without cycles
      (enforced by AccountService; the FK only guarantees existence).
    - Accounts referenced by any journal line are never hard-deleted
      (service guard plus the before_flush listener in db/immutability.py).

Failure modes:
    - IntegrityError on duplicate (tenant_id, code).

Audit relevance:
    Account rows define the structure of the general ledger.  Balances are
    derived from posted lines and never stored here.
"""

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TenantScopedMixin, TrackedBase, UUIDString
from ledger_kernel.domain.values import AccountType, NormalBalance, normal_balance_for

if TYPE_CHECKING:
    from ledger_kernel.models.journal import JournalEntryLine


class Account(TenantScopedMixin, TrackedBase):
    """
    Chart of accounts entry.

    Contract:
        Account.code is unique within a tenant.  account_type fixes the
        normal balance side used to sign reported balances.

    Guarantees:
        - account_type is one of asset, liability, equity, revenue, expense.
        - is_active=False accounts stay in the catalog and in reports but
          cannot receive new lines.

    Non-goals:
        - Does not store balances.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_account_tenant_code"),
        Index("idx_account_tenant_type", "tenant_id", "account_type"),
        Index("idx_account_parent", "parent_id"),
    )

    code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    account_type: Mapped[AccountType] = mapped_column(
        String(20),
        nullable=False,
    )

    parent_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=True,
    )

    display_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    parent: Mapped["Account | None"] = relationship(
        remote_side="Account.id",
        back_populates="children",
    )

    children: Mapped[list["Account"]] = relationship(
        back_populates="parent",
        order_by="Account.display_order",
    )

    journal_lines: Mapped[list["JournalEntryLine"]] = relationship(
        back_populates="account",
        lazy="select",
    )

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"

    @property
    def normal_balance(self) -> NormalBalance:
        return normal_balance_for(self.account_type)

    @property
    def is_debit_normal(self) -> bool:
        return self.normal_balance == NormalBalance.DEBIT

    @property
    def is_credit_normal(self) -> bool:
        return self.normal_balance == NormalBalance.CREDIT
