"""
AccountService -- the chart of accounts.

Responsibility:
    Creates and maintains the hierarchical account catalog of each tenant:
    creation, renaming, re-parenting, activation flags, guarded deletion,
    and idempotent seeding from a template.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - code is unique per tenant.
    - A parent belongs to the same tenant and the parent chain never loops.
    - Accounts referenced by any journal line (draft or posted) are never
      hard-deleted; deactivate them instead.

Failure modes:
    - DuplicateCodeError, InvalidHierarchyError, AccountReferencedError,
      AccountNotFoundError, CrossTenantReferenceError.
"""

from collections.abc import Iterable
from typing import Protocol
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.domain.dtos import AccountInfo
from ledger_kernel.domain.values import AccountType
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    AccountReferencedError,
    DuplicateCodeError,
    InvalidHierarchyError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntryLine
from ledger_kernel.services.base import BaseService

logger = get_logger("services.account")


class AccountSeed(Protocol):
    """Shape of a chart-of-accounts template row."""

    code: str
    name: str
    account_type: AccountType
    parent_code: str | None
    description: str | None
    display_order: int


class AccountService(BaseService[Account]):
    """
    Service for the chart of accounts.

    Contract:
        Every method takes an explicit tenant_id.  Returns AccountInfo DTOs.

    Non-goals:
        - Does NOT compute balances; see LedgerSelector.
    """

    def create_account(
        self,
        tenant_id: UUID,
        code: str,
        name: str,
        account_type: AccountType | str,
        actor_id: UUID,
        parent_id: UUID | None = None,
        display_order: int = 0,
        description: str | None = None,
    ) -> AccountInfo:
        """
        Create an account.

        Raises:
            DuplicateCodeError: code already exists for the tenant.
            InvalidHierarchyError: parent belongs to another tenant.
            AccountNotFoundError: parent does not exist.
            ValueError: Unknown account_type.
        """
        code = code.strip()
        account_type = AccountType(account_type)
        self._ensure_code_free(tenant_id, code)

        if parent_id is not None:
            self._load_parent(tenant_id, parent_id, account_id=None)

        account = Account(
            tenant_id=tenant_id,
            code=code,
            name=name,
            account_type=account_type,
            parent_id=parent_id,
            display_order=display_order,
            description=description,
            created_by_id=actor_id,
        )
        self.session.add(account)
        self.session.flush()

        logger.info(
            "account_created",
            extra={
                "tenant_id": str(tenant_id),
                "account_code": code,
                "account_type": account_type.value,
            },
        )
        return AccountInfo.from_model(account)

    def update_account(
        self,
        tenant_id: UUID,
        account_id: UUID,
        actor_id: UUID,
        *,
        code: str | None = None,
        name: str | None = None,
        description: str | None = None,
        display_order: int | None = None,
    ) -> AccountInfo:
        """
        Update descriptive fields of an account.

        account_type is deliberately not updatable: it fixes the sign of
        every historical line on the account.
        """
        account = self._get_owned(Account, tenant_id, account_id, AccountNotFoundError)

        if code is not None and code.strip() != account.code:
            self._ensure_code_free(tenant_id, code.strip())
            account.code = code.strip()
        if name is not None:
            account.name = name
        if description is not None:
            account.description = description
        if display_order is not None:
            account.display_order = display_order
        account.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "account_updated",
            extra={"tenant_id": str(tenant_id), "account_code": account.code},
        )
        return AccountInfo.from_model(account)

    def move_account(
        self,
        tenant_id: UUID,
        account_id: UUID,
        new_parent_id: UUID | None,
        actor_id: UUID,
    ) -> AccountInfo:
        """
        Re-parent an account (None makes it a root).

        Raises:
            InvalidHierarchyError: New parent is the account itself, one of
                its descendants, or belongs to another tenant.
        """
        account = self._get_owned(Account, tenant_id, account_id, AccountNotFoundError)

        if new_parent_id is not None:
            self._load_parent(tenant_id, new_parent_id, account_id=account_id)

        account.parent_id = new_parent_id
        account.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "account_moved",
            extra={
                "tenant_id": str(tenant_id),
                "account_code": account.code,
                "new_parent_id": str(new_parent_id) if new_parent_id else None,
            },
        )
        return AccountInfo.from_model(account)

    def deactivate_account(self, tenant_id: UUID, account_id: UUID, actor_id: UUID) -> AccountInfo:
        return self._set_active(tenant_id, account_id, actor_id, active=False)

    def reactivate_account(self, tenant_id: UUID, account_id: UUID, actor_id: UUID) -> AccountInfo:
        return self._set_active(tenant_id, account_id, actor_id, active=True)

    def delete_account(self, tenant_id: UUID, account_id: UUID) -> None:
        """
        Hard-delete an account that no journal line has ever referenced.

        Raises:
            AccountReferencedError: Any line (draft or posted) references it.
            InvalidHierarchyError: The account still has children.
        """
        account = self._get_owned(Account, tenant_id, account_id, AccountNotFoundError)

        if self.is_referenced(account_id):
            logger.warning(
                "account_delete_refused",
                extra={"tenant_id": str(tenant_id), "account_code": account.code},
            )
            raise AccountReferencedError(account_id=str(account_id))

        has_children = self.session.execute(
            select(Account.id).where(Account.parent_id == account_id).limit(1)
        ).first()
        if has_children is not None:
            raise InvalidHierarchyError(
                str(account_id), str(account_id), "account still has child accounts"
            )

        self.session.delete(account)
        self.session.flush()
        logger.info(
            "account_deleted",
            extra={"tenant_id": str(tenant_id), "account_code": account.code},
        )

    def is_referenced(self, account_id: UUID) -> bool:
        return (
            self.session.execute(
                select(JournalEntryLine.id)
                .where(JournalEntryLine.account_id == account_id)
                .limit(1)
            ).first()
            is not None
        )

    def get_account(self, tenant_id: UUID, account_id: UUID) -> AccountInfo:
        return AccountInfo.from_model(
            self._get_owned(Account, tenant_id, account_id, AccountNotFoundError)
        )

    def get_account_by_code(self, tenant_id: UUID, code: str) -> AccountInfo:
        account = self.session.execute(
            select(Account).where(Account.tenant_id == tenant_id, Account.code == code)
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(code)
        return AccountInfo.from_model(account)

    def list_accounts(self, tenant_id: UUID, include_inactive: bool = True) -> list[AccountInfo]:
        stmt = select(Account).where(Account.tenant_id == tenant_id)
        if not include_inactive:
            stmt = stmt.where(Account.is_active.is_(True))
        stmt = stmt.order_by(Account.display_order, Account.code)
        return [AccountInfo.from_model(a) for a in self.session.execute(stmt).scalars()]

    def seed_chart_of_accounts(
        self,
        tenant_id: UUID,
        templates: Iterable[AccountSeed],
        actor_id: UUID,
    ) -> list[AccountInfo]:
        """
        Create the accounts of a template that do not exist yet.

        Idempotent: codes already present are skipped.  Templates must list
        parents before children.

        Returns:
            Only the accounts created by this call.
        """
        existing = {
            a.code: a.id
            for a in self.session.execute(
                select(Account).where(Account.tenant_id == tenant_id)
            ).scalars()
        }

        created: list[AccountInfo] = []
        for template in templates:
            if template.code in existing:
                continue
            parent_id = None
            if template.parent_code is not None:
                if template.parent_code not in existing:
                    raise AccountNotFoundError(template.parent_code)
                parent_id = existing[template.parent_code]
            info = self.create_account(
                tenant_id=tenant_id,
                code=template.code,
                name=template.name,
                account_type=template.account_type,
                actor_id=actor_id,
                parent_id=parent_id,
                display_order=template.display_order,
                description=template.description,
            )
            existing[info.code] = info.id
            created.append(info)

        logger.info(
            "chart_of_accounts_seeded",
            extra={"tenant_id": str(tenant_id), "created_count": len(created)},
        )
        return created

    # =========================================================================
    # Internals
    # =========================================================================

    def _ensure_code_free(self, tenant_id: UUID, code: str) -> None:
        clash = self.session.execute(
            select(Account.id).where(Account.tenant_id == tenant_id, Account.code == code)
        ).first()
        if clash is not None:
            raise DuplicateCodeError("Account", code, str(tenant_id))

    def _load_parent(
        self,
        tenant_id: UUID,
        parent_id: UUID,
        account_id: UUID | None,
    ) -> Account:
        """Load a prospective parent and check tenant and cycles."""
        parent = self.session.get(Account, parent_id)
        if parent is None:
            raise AccountNotFoundError(str(parent_id))
        if parent.tenant_id != tenant_id:
            raise InvalidHierarchyError(
                str(account_id) if account_id else None,
                str(parent_id),
                "parent belongs to a different tenant",
            )
        if account_id is None:
            return parent

        # Walk up from the new parent; reaching the account means a cycle.
        seen: set[UUID] = set()
        cursor: Account | None = parent
        while cursor is not None:
            if cursor.id == account_id:
                raise InvalidHierarchyError(
                    str(account_id), str(parent_id), "would create a cycle"
                )
            if cursor.id in seen:
                break
            seen.add(cursor.id)
            cursor = self.session.get(Account, cursor.parent_id) if cursor.parent_id else None
        return parent

    def _set_active(
        self,
        tenant_id: UUID,
        account_id: UUID,
        actor_id: UUID,
        active: bool,
    ) -> AccountInfo:
        account = self._get_owned(Account, tenant_id, account_id, AccountNotFoundError)
        if account.is_active != active:
            account.is_active = active
            account.updated_by_id = actor_id
            self.session.flush()
            logger.info(
                "account_activated" if active else "account_deactivated",
                extra={"tenant_id": str(tenant_id), "account_code": account.code},
            )
        return AccountInfo.from_model(account)
