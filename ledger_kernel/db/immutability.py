"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

Posted journal entries are permanent ledger facts.  The only legal mutation
after posting is a reversal (a new offsetting entry), never an in-place edit.
JournalEntryService refuses such edits at its boundary; this module is the
second line, catching any code path that reaches the ORM directly:

    session.flush()
         |
         v
    [before_flush]  --> account deletion referenced by lines?  --> AccountReferencedError
         |
         v
    [before_update / before_delete / before_insert]
         |         --> posted entry or its lines touched?      --> ImmutabilityViolationError
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity              | When Immutable                      | Operations blocked
--------------------|-------------------------------------|-------------------------
JournalEntry        | After status = posted               | UPDATE (non-audit), DELETE
JournalEntryLine    | When parent entry is posted         | INSERT, UPDATE, DELETE
Account             | When referenced by any journal line | DELETE

===============================================================================
DESIGN DECISIONS
===============================================================================

1. updated_at / updated_by_id may change on posted rows: they are audit
   metadata, not financial data.

2. "Was posted" is read from attribute history, not the current value, so
   the draft -> posted transition itself is allowed while every change after
   it is blocked.

3. Model imports are inline: models import from db, db must not import
   models at module load.

===============================================================================
USAGE
===============================================================================

    from ledger_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

    unregister_immutability_listeners()  # TESTS ONLY
"""

from sqlalchemy import event, inspect, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import get_history

from ledger_kernel.exceptions import AccountReferencedError, ImmutabilityViolationError
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = frozenset({"updated_at", "updated_by_id"})


def _is_posted(status) -> bool:
    return status is not None and str(getattr(status, "value", status)) == "posted"


def _check_account_deletion_before_flush(session, flush_context, instances):
    """
    Prevent deletion of accounts referenced by any journal line.

    Runs in SessionEvents.before_flush, before the flush plan is finalized;
    mapper-level before_delete fires too late to stop the cascade.
    """
    from ledger_kernel.models.account import Account
    from ledger_kernel.models.journal import JournalEntryLine

    for obj in list(session.deleted):
        if not isinstance(obj, Account):
            continue

        with session.no_autoflush:
            referenced = session.execute(
                select(JournalEntryLine.id)
                .where(JournalEntryLine.account_id == obj.id)
                .limit(1)
            ).first()

        if referenced is not None:
            logger.error(
                "immutability_violation_blocked",
                extra={
                    "entity_type": "Account",
                    "entity_id": str(obj.id),
                    "operation": "DELETE",
                    "reason": "account_referenced_by_lines",
                },
            )
            raise AccountReferencedError(account_id=str(obj.id))


def _check_journal_entry_immutability(mapper, connection, target):
    """
    Prevent updates to posted JournalEntry rows.

    Logic:
        1. Status changing FROM posted: block (was already posted).
        2. Status unchanged AND posted: block if any non-audit field changed.
        3. Status changing TO posted: allow (this IS the posting).
    """
    status_history = get_history(target, "status")

    was_posted_before = False
    if status_history.deleted:
        was_posted_before = _is_posted(status_history.deleted[0])
    elif not status_history.added:
        was_posted_before = _is_posted(target.status)

    if not was_posted_before:
        return

    for attr in inspect(target).attrs:
        if attr.key in _AUDIT_FIELDS or attr.key == "lines":
            continue
        if attr.history.has_changes():
            logger.error(
                "immutability_violation_blocked",
                extra={
                    "entity_type": "JournalEntry",
                    "entity_id": str(target.id),
                    "operation": "UPDATE",
                    "field": attr.key,
                },
            )
            raise ImmutabilityViolationError(
                entity_type="JournalEntry",
                entity_id=str(target.id),
                reason=f"Cannot modify field '{attr.key}' on posted journal entry",
            )


def _check_journal_entry_delete(mapper, connection, target):
    """Prevent deletion of posted JournalEntry rows."""
    if _is_posted(target.status):
        logger.error(
            "immutability_violation_blocked",
            extra={
                "entity_type": "JournalEntry",
                "entity_id": str(target.id),
                "operation": "DELETE",
            },
        )
        raise ImmutabilityViolationError(
            entity_type="JournalEntry",
            entity_id=str(target.id),
            reason="Posted journal entries cannot be deleted",
        )


def _line_guard(operation: str):
    def _check(mapper, connection, target):
        entry = target.entry
        if entry is not None and _is_posted(entry.status):
            logger.error(
                "immutability_violation_blocked",
                extra={
                    "entity_type": "JournalEntryLine",
                    "entity_id": str(target.id),
                    "operation": operation,
                },
            )
            raise ImmutabilityViolationError(
                entity_type="JournalEntryLine",
                entity_id=str(target.id),
                reason=f"Cannot {operation} lines of a posted journal entry",
            )

    _check.__name__ = f"_check_journal_line_{operation.lower()}"
    return _check


_check_journal_line_insert = _line_guard("INSERT")
_check_journal_line_update = _line_guard("UPDATE")
_check_journal_line_delete = _line_guard("DELETE")


def _listener_table():
    from ledger_kernel.models.journal import JournalEntry, JournalEntryLine

    return [
        (Session, "before_flush", _check_account_deletion_before_flush),
        (JournalEntry, "before_update", _check_journal_entry_immutability),
        (JournalEntry, "before_delete", _check_journal_entry_delete),
        (JournalEntryLine, "before_insert", _check_journal_line_insert),
        (JournalEntryLine, "before_update", _check_journal_line_update),
        (JournalEntryLine, "before_delete", _check_journal_line_delete),
    ]


def register_immutability_listeners() -> None:
    """
    Register all immutability enforcement event listeners.

    Idempotent.  Call once after models are imported and before any
    database operations begin.
    """
    for target, name, fn in _listener_table():
        if not event.contains(target, name, fn):
            event.listen(target, name, fn)


def unregister_immutability_listeners() -> None:
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that must violate immutability rules to
    verify detection.
    """
    for target, name, fn in _listener_table():
        if event.contains(target, name, fn):
            event.remove(target, name, fn)
