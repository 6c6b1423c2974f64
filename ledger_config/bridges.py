"""
Config -> Kernel Bridges.

Functions that turn ``LedgerSettings`` into configured kernel objects.
These live in ledger_config (the producer) because the kernel must never
import ledger_config.

Usage:
    from ledger_config import get_settings
    from ledger_config.bridges import build_engine, build_journal_entry_service

    settings = get_settings()
    engine = build_engine(settings)
    with session_scope() as session:
        journal = build_journal_entry_service(session, settings, bus)
"""

from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from ledger_config.schema import LedgerSettings
from ledger_kernel.db.engine import init_engine_from_url
from ledger_kernel.db.immutability import register_immutability_listeners
from ledger_kernel.domain.clock import Clock
from ledger_kernel.logging_config import configure_logging, get_logger
from ledger_kernel.services.event_publisher import EventBus, TransactionalEventPublisher
from ledger_kernel.services.journal_entry_service import JournalEntryService
from ledger_kernel.services.rate_service import RateProvider
from ledger_kernel.services.sequence_service import SequenceEntryNumberAllocator
from ledger_reporting.config import ReportingConfig

logger = get_logger("config.bridges")


def build_engine(settings: LedgerSettings) -> Engine:
    """Configure logging, create the global engine, and register the ORM guards."""
    configure_logging(level=settings.logging.level)
    db = settings.database
    engine = init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
    )
    register_immutability_listeners()
    logger.info("ledger_engine_configured", extra={"dialect": engine.dialect.name})
    return engine


def build_entry_number_allocator(
    session: Session,
    settings: LedgerSettings,
) -> SequenceEntryNumberAllocator:
    return SequenceEntryNumberAllocator(
        session,
        prefix=settings.numbering.entry_prefix,
        width=settings.numbering.entry_width,
    )


def build_journal_entry_service(
    session: Session,
    settings: LedgerSettings,
    bus: EventBus | None = None,
    clock: Clock | None = None,
    rate_provider: RateProvider | None = None,
) -> JournalEntryService:
    """
    Wire a JournalEntryService for one session.

    Posted events go to ``bus`` when the session commits.
    """
    return JournalEntryService(
        session,
        numbering=build_entry_number_allocator(session, settings),
        rate_provider=rate_provider,
        publisher=TransactionalEventPublisher(session, bus or EventBus()),
        clock=clock,
    )


def build_reporting_config(settings: LedgerSettings) -> ReportingConfig:
    if not settings.reporting:
        return ReportingConfig.with_defaults()
    return ReportingConfig.from_dict(settings.reporting)
