"""
SequenceService -- monotonic per-tenant sequences via locked counter rows.

Responsibility:
    Provides strictly increasing sequence numbers per (tenant, name), and the
    entry-number allocator the journal engine calls once per draft.  Uses a
    counter table with row-level locking (``SELECT ... FOR UPDATE``) to
    guarantee uniqueness and ordering under concurrent access.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by JournalEntryService through the EntryNumberAllocator port.

Invariants enforced:
    - Sequences are strictly monotonic per tenant.  The SQL
      aggregate-max-plus-one anti-pattern is FORBIDDEN: the locked counter
      row is the sole source of truth for the next value.
    - Transactional: an increment is only visible after the caller's
      transaction commits.  Rollback returns the value.

Failure modes:
    - IntegrityError: concurrent first-use creation of a counter (handled
      by savepoint rollback and retry).
    - NumberingError: allocation failed at the database.
"""

from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_kernel.exceptions import NumberingError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.sequence import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:
    """
    Service for generating transactional sequence numbers.

    Contract:
        Accepts a tenant and a sequence name and returns the next strictly
        monotonic integer.  The increment commits with the caller's
        transaction.

    Guarantees:
        - ``SELECT ... FOR UPDATE`` serializes concurrent allocations for the
          same (tenant, name).
        - No values are skipped under normal operation; on rollback the
          value is returned.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.

    Usage:
        with session.begin():
            seq = sequence_service.next_value(tenant_id, "journal_entry")
    """

    JOURNAL_ENTRY = "journal_entry"

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, tenant_id: UUID, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(
                SequenceCounter.tenant_id == tenant_id,
                SequenceCounter.name == sequence_name,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, tenant_id: UUID, sequence_name: str) -> int:
        """
        Get the next value for a named sequence of a tenant.

        1. Lock the counter row (or create it if missing).
        2. Increment.
        3. Return the new value.

        Postconditions:
            - Returns an integer > 0 strictly greater than any value
              previously returned for this (tenant, name).
            - The counter row stays locked until the transaction completes.
        """
        counter = self._locked_counter(tenant_id, sequence_name)

        if counter is None:
            # First use.  Another transaction may create it concurrently;
            # the savepoint keeps the caller's other work intact on conflict.
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(
                    tenant_id=tenant_id, name=sequence_name, current_value=1
                )
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(tenant_id, sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, tenant_id: UUID, sequence_name: str) -> int | None:
        """Current value without incrementing, or None if never used."""
        counter = self._session.execute(
            select(SequenceCounter).where(
                SequenceCounter.tenant_id == tenant_id,
                SequenceCounter.name == sequence_name,
            )
        ).scalar_one_or_none()
        return counter.current_value if counter else None


@runtime_checkable
class EntryNumberAllocator(Protocol):
    """Allocates unique, monotonically increasing entry numbers per tenant."""

    def allocate_entry_number(self, tenant_id: UUID) -> str:
        ...


class SequenceEntryNumberAllocator:
    """
    EntryNumberAllocator backed by SequenceService.

    Numbers look like ``JE-000042``: prefix plus the zero-padded counter.
    The pad width keeps lexical order equal to numeric order up to
    10**width - 1 entries per tenant.
    """

    def __init__(self, session: Session, prefix: str = "JE-", width: int = 6):
        self._sequences = SequenceService(session)
        self._prefix = prefix
        self._width = width

    def allocate_entry_number(self, tenant_id: UUID) -> str:
        try:
            value = self._sequences.next_value(tenant_id, SequenceService.JOURNAL_ENTRY)
        except SQLAlchemyError as exc:
            raise NumberingError(str(tenant_id), str(exc)) from exc
        return f"{self._prefix}{value:0{self._width}d}"
