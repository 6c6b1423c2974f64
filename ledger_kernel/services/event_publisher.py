"""
Event publishing -- domain events delivered after commit.

Responsibility:
    EventBus holds subscribers per event type.  TransactionalEventPublisher
    buffers events raised inside a session's transaction and hands them to
    the bus only when that transaction commits.

Architecture position:
    Kernel > Services.  JournalEntryService publishes JournalEntryPosted
    through an EventPublisher; audit and notification subsystems subscribe
    on the bus.

Invariants enforced:
    - No event is delivered for work that rolled back: the buffer is
      cleared on rollback of the outer transaction.
    - Subscriber failures never reach the committed transaction: they are
      logged with the traceback and delivery continues with the next
      subscriber.

Delivery:
    By default subscribers run on the committing thread, inside
    ``session.commit()``, so commit returns after every subscriber has run.
    An EventBus built with an executor submits each subscriber call to it
    instead, and commit returns without waiting for subscribers.

Failure modes:
    - None propagate from delivery.  A failed subscriber is reported as
      ``event_subscriber_failed`` at ERROR.
"""

from collections import defaultdict
from collections.abc import Callable
from concurrent.futures import Executor
from typing import Any, Protocol

from sqlalchemy import event
from sqlalchemy.orm import Session

from ledger_kernel.logging_config import get_logger

logger = get_logger("services.events")

Subscriber = Callable[[Any], None]


class EventPublisher(Protocol):
    def publish(self, domain_event: Any) -> None:
        ...


class EventBus:
    """
    In-process dispatch of domain events by type.

    Subscribing to ``object`` receives every event.  Without an executor
    each subscriber runs inline in dispatch(); with one, dispatch() only
    submits the calls and returns.
    """

    def __init__(self, executor: Executor | None = None) -> None:
        self._subscribers: dict[type, list[Subscriber]] = defaultdict(list)
        self._executor = executor

    def subscribe(self, event_type: type, handler: Subscriber) -> None:
        self._subscribers[event_type].append(handler)

    def unsubscribe(self, event_type: type, handler: Subscriber) -> None:
        handlers = self._subscribers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def dispatch(self, domain_event: Any) -> None:
        for event_type in type(domain_event).__mro__:
            for handler in list(self._subscribers.get(event_type, ())):
                if self._executor is None:
                    _deliver(handler, domain_event)
                else:
                    self._executor.submit(_deliver, handler, domain_event)


def _deliver(handler: Subscriber, domain_event: Any) -> None:
    try:
        handler(domain_event)
    except Exception:
        logger.exception(
            "event_subscriber_failed",
            extra={
                "event_type": type(domain_event).__name__,
                "subscriber": getattr(handler, "__qualname__", repr(handler)),
            },
        )


class TransactionalEventPublisher:
    """
    EventPublisher bound to one Session.

    Contract:
        publish() buffers.  On ``after_commit`` the buffer is dispatched to
        the bus in publish order; on rollback of the outer transaction it is
        discarded.  Rollback of a savepoint keeps events published before the
        savepoint began.

    Non-goals:
        - No persistence of undelivered events (no outbox).
    """

    def __init__(self, session: Session, bus: EventBus):
        self._session = session
        self._bus = bus
        self._pending: list[tuple[Any, Any]] = []
        event.listen(session, "after_commit", self._on_commit)
        event.listen(session, "after_soft_rollback", self._on_rollback)

    @property
    def pending(self) -> tuple[Any, ...]:
        return tuple(evt for evt, _ in self._pending)

    def publish(self, domain_event: Any) -> None:
        current = self._session.get_nested_transaction() or self._session.get_transaction()
        self._pending.append((domain_event, current))
        logger.debug(
            "event_buffered",
            extra={"event_type": type(domain_event).__name__},
        )

    def close(self) -> None:
        """Detach from the session."""
        if event.contains(self._session, "after_commit", self._on_commit):
            event.remove(self._session, "after_commit", self._on_commit)
        if event.contains(self._session, "after_soft_rollback", self._on_rollback):
            event.remove(self._session, "after_soft_rollback", self._on_rollback)
        self._pending.clear()

    def _on_commit(self, session: Session) -> None:
        pending, self._pending = self._pending, []
        for domain_event, _ in pending:
            self._bus.dispatch(domain_event)
        if pending:
            logger.info("events_dispatched", extra={"event_count": len(pending)})

    def _on_rollback(self, session: Session, previous_transaction) -> None:
        if previous_transaction.nested:
            # Savepoint rollback: drop only events raised inside it.
            self._pending = [
                (evt, txn)
                for evt, txn in self._pending
                if not _within(txn, previous_transaction)
            ]
            return
        if self._pending:
            logger.info(
                "events_discarded_on_rollback",
                extra={"event_count": len(self._pending)},
            )
        self._pending.clear()


def _within(transaction, ancestor) -> bool:
    while transaction is not None:
        if transaction is ancestor:
            return True
        transaction = transaction.parent
    return False
