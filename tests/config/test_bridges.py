"""Tests for wiring kernel objects from LedgerSettings."""

from datetime import date

import pytest

from ledger_config.bridges import (
    build_engine,
    build_entry_number_allocator,
    build_journal_entry_service,
    build_reporting_config,
)
from ledger_config.loader import parse_settings
from ledger_kernel.db import engine as engine_module
from ledger_kernel.db.engine import get_engine, reset_engine
from ledger_kernel.domain.events import JournalEntryPosted
from ledger_kernel.services.event_publisher import EventBus


def _settings(**sections):
    data = {"database": {"url": "sqlite+pysqlite:///:memory:"}}
    data.update(sections)
    return parse_settings(data, environ={})


@pytest.fixture
def global_engine(monkeypatch):
    """Let build_engine replace the suite engine, restoring it afterwards."""
    monkeypatch.setattr(engine_module, "_engine", None)
    monkeypatch.setattr(engine_module, "_SessionFactory", None)
    yield
    reset_engine()


class TestBuildEngine:
    def test_engine_registered_globally(self, global_engine):
        engine = build_engine(_settings())
        assert get_engine() is engine
        assert engine.dialect.name == "sqlite"

    def test_engine_configuration_logged(self, global_engine, captured_logs):
        build_engine(_settings())
        assert any(r["message"] == "ledger_engine_configured" for r in captured_logs())


class TestNumbering:
    def test_prefix_and_width_from_settings(self, session, tenant_id):
        allocator = build_entry_number_allocator(
            session, _settings(numbering={"entry_prefix": "GL/", "entry_width": 4})
        )
        assert allocator.allocate_entry_number(tenant_id) == "GL/0001"
        assert allocator.allocate_entry_number(tenant_id) == "GL/0002"


class TestJournalEntryService:
    def test_wired_service_numbers_and_publishes(
        self, session, seeded_ledger, deterministic_clock
    ):
        bus = EventBus()
        received = []
        bus.subscribe(JournalEntryPosted, received.append)
        service = build_journal_entry_service(
            session,
            _settings(numbering={"entry_prefix": "GJ-", "entry_width": 3}),
            bus=bus,
            clock=deterministic_clock,
        )

        draft = service.create_draft(
            seeded_ledger.tenant_id,
            date(2025, 8, 1),
            seeded_ledger.lines(("CASH", "debit", "75.00"), ("REV", "credit", "75.00")),
            seeded_ledger.actor_id,
        )
        service.post(seeded_ledger.tenant_id, draft.id, seeded_ledger.actor_id)
        assert received == []

        session.commit()

        assert draft.entry_number == "GJ-001"
        assert [e.entry_number for e in received] == ["GJ-001"]


class TestReportingConfig:
    def test_reporting_section_applied(self):
        config = build_reporting_config(
            _settings(reporting={"entity_name": "Acme", "include_inactive": True})
        )
        assert config.entity_name == "Acme"
        assert config.include_inactive

    def test_defaults_without_section(self):
        config = build_reporting_config(_settings())
        assert config.entity_name == "Company"
