"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every service in the kernel layer.  Concrete services receive a
    SQLAlchemy ``Session`` and use ``session.flush()`` -- never
    ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or roll back the outer transaction
      themselves.  Savepoints (``begin_nested``) are allowed for
      all-or-nothing sub-steps.

Failure modes:
    - A subclass that calls ``session.commit()`` breaks the atomicity of
      multi-step operations such as post-and-publish.
"""

from abc import ABC
from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.db.base import Base
from ledger_kernel.exceptions import CrossTenantReferenceError, EntityNotFoundError

ModelType = TypeVar("ModelType", bound=Base)
RowType = TypeVar("RowType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist changes within the active
        transaction.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()`` on the caller's transaction.
        - Tenant-scoped lookups never return another tenant's row.

    Non-goals:
        - Does NOT manage transaction lifecycle.
        - Does NOT provide report queries -- those belong in
          ``ledger_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        """
        Initialize the service.

        Args:
            session: SQLAlchemy session for database operations.
        """
        self.session = session

    def _get_owned(
        self,
        model: type[RowType],
        tenant_id: UUID,
        entity_id: UUID,
        not_found: type[EntityNotFoundError],
        *,
        for_update: bool = False,
    ) -> RowType:
        """
        Load a row by id and check it belongs to ``tenant_id``.

        Raises:
            not_found: No row with that id.
            CrossTenantReferenceError: Row belongs to another tenant.
        """
        stmt = select(model).where(model.id == entity_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        obj = self.session.execute(stmt).scalar_one_or_none()
        if obj is None:
            raise not_found(str(entity_id))
        if obj.tenant_id != tenant_id:
            raise CrossTenantReferenceError(
                entity_type=model.__name__,
                entity_id=str(entity_id),
                tenant_id=str(tenant_id),
            )
        return obj
