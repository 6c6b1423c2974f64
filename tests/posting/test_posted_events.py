"""
JournalEntryPosted delivery tests.

Verifies:
- The event is buffered by post() and delivered only when the session commits
- A rollback discards it
- A rolled-back savepoint drops only the events raised inside it
- A failing subscriber does not stop delivery to the others
- With an executor, commit returns before slow subscribers finish
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date

import pytest

from ledger_kernel.domain.events import JournalEntryPosted
from ledger_kernel.exceptions import EntryAlreadyPostedError
from ledger_kernel.services.event_publisher import EventBus, TransactionalEventPublisher
from ledger_kernel.services.journal_entry_service import JournalEntryService


@pytest.fixture
def draft(journal_service, seeded_ledger):
    return journal_service.create_draft(
        seeded_ledger.tenant_id,
        date(2025, 10, 1),
        seeded_ledger.lines(("PUR", "debit", "75.00"), ("CASH", "credit", "75.00")),
        seeded_ledger.actor_id,
    )


class TestDeliveryOnCommit:
    def test_event_waits_for_commit(
        self, session, journal_service, event_publisher, published_events, seeded_ledger, draft
    ):
        journal_service.post(seeded_ledger.tenant_id, draft.id, seeded_ledger.actor_id)

        assert published_events == []
        assert len(event_publisher.pending) == 1

        session.commit()

        assert len(published_events) == 1
        assert event_publisher.pending == ()

    def test_event_payload(
        self, session, journal_service, published_events, seeded_ledger, draft
    ):
        posted = journal_service.post(seeded_ledger.tenant_id, draft.id, seeded_ledger.actor_id)
        session.commit()

        event = published_events[0]
        assert isinstance(event, JournalEntryPosted)
        assert event.entry_id == draft.id
        assert event.tenant_id == seeded_ledger.tenant_id
        assert event.entry_number == draft.entry_number
        assert event.entry_date == date(2025, 10, 1)
        assert event.posted_by_id == seeded_ledger.actor_id
        assert event.posted_at == posted.posted_at

    def test_rollback_discards_event(
        self, session, journal_service, event_publisher, published_events, seeded_ledger, draft,
        captured_logs,
    ):
        journal_service.post(seeded_ledger.tenant_id, draft.id, seeded_ledger.actor_id)
        session.rollback()

        assert event_publisher.pending == ()
        session.commit()
        assert published_events == []
        assert any(r["message"] == "events_discarded_on_rollback" for r in captured_logs())

    def test_drafts_publish_nothing(self, session, event_publisher, published_events, draft):
        assert event_publisher.pending == ()
        session.commit()
        assert published_events == []

    def test_failed_second_post_adds_no_event(
        self, session, journal_service, event_publisher, seeded_ledger, draft
    ):
        journal_service.post(seeded_ledger.tenant_id, draft.id, seeded_ledger.actor_id)
        with pytest.raises(EntryAlreadyPostedError):
            journal_service.post(seeded_ledger.tenant_id, draft.id, seeded_ledger.actor_id)
        assert len(event_publisher.pending) == 1

    def test_events_delivered_in_post_order(
        self, session, journal_service, published_events, seeded_ledger, draft
    ):
        second = journal_service.create_draft(
            seeded_ledger.tenant_id,
            date(2025, 10, 2),
            seeded_ledger.lines(("CASH", "debit", "5"), ("REV", "credit", "5")),
            seeded_ledger.actor_id,
        )
        journal_service.post(seeded_ledger.tenant_id, second.id, seeded_ledger.actor_id)
        journal_service.post(seeded_ledger.tenant_id, draft.id, seeded_ledger.actor_id)
        session.commit()

        assert [e.entry_id for e in published_events] == [second.id, draft.id]


class TestSavepoints:
    def test_savepoint_rollback_drops_inner_event_only(
        self, session, journal_service, event_publisher, published_events, seeded_ledger, draft
    ):
        other = journal_service.create_draft(
            seeded_ledger.tenant_id,
            date(2025, 10, 2),
            seeded_ledger.lines(("CASH", "debit", "5"), ("REV", "credit", "5")),
            seeded_ledger.actor_id,
        )
        journal_service.post(seeded_ledger.tenant_id, draft.id, seeded_ledger.actor_id)

        savepoint = session.begin_nested()
        journal_service.post(seeded_ledger.tenant_id, other.id, seeded_ledger.actor_id)
        assert len(event_publisher.pending) == 2
        savepoint.rollback()

        assert [e.entry_id for e in event_publisher.pending] == [draft.id]
        session.commit()
        assert [e.entry_id for e in published_events] == [draft.id]


class TestSubscriberFailure:
    def test_failing_subscriber_is_isolated(
        self, session, journal_service, event_bus, published_events, seeded_ledger, draft,
        captured_logs,
    ):
        def broken(event):
            raise RuntimeError("subscriber down")

        event_bus.subscribe(JournalEntryPosted, broken)
        journal_service.post(seeded_ledger.tenant_id, draft.id, seeded_ledger.actor_id)
        session.commit()

        assert len(published_events) == 1
        failures = [r for r in captured_logs() if r["message"] == "event_subscriber_failed"]
        assert failures[0]["event_type"] == "JournalEntryPosted"
        assert failures[0]["exc_type"] == "RuntimeError"


class TestBackgroundDelivery:
    @pytest.fixture
    def executor(self):
        pool = ThreadPoolExecutor(max_workers=1)
        yield pool
        pool.shutdown(wait=True)

    @pytest.fixture
    def background_service(self, session, executor, deterministic_clock):
        bus = EventBus(executor=executor)
        publisher = TransactionalEventPublisher(session, bus)
        yield bus, JournalEntryService(session, publisher=publisher, clock=deterministic_clock)
        publisher.close()

    def test_commit_does_not_wait_for_subscriber(
        self, session, executor, background_service, seeded_ledger, draft
    ):
        bus, service = background_service
        started = threading.Event()
        release = threading.Event()
        received = []

        def slow_audit(event):
            started.set()
            release.wait(timeout=10)
            received.append(event.entry_id)

        bus.subscribe(JournalEntryPosted, slow_audit)
        service.post(seeded_ledger.tenant_id, draft.id, seeded_ledger.actor_id)
        session.commit()

        assert started.wait(timeout=5)
        assert received == []

        release.set()
        executor.shutdown(wait=True)
        assert received == [draft.id]

    def test_background_failure_is_logged(
        self, session, executor, background_service, seeded_ledger, draft, captured_logs
    ):
        bus, service = background_service

        def broken(event):
            raise RuntimeError("notification service down")

        bus.subscribe(JournalEntryPosted, broken)
        service.post(seeded_ledger.tenant_id, draft.id, seeded_ledger.actor_id)
        session.commit()
        executor.shutdown(wait=True)

        failures = [r for r in captured_logs() if r["message"] == "event_subscriber_failed"]
        assert failures[0]["exc_type"] == "RuntimeError"
