"""
Domain events emitted by the ledger kernel.

Events are immutable facts.  They are published only after the transaction
that produced them commits (see services/event_publisher.py); subscribers
never observe an event for work that was rolled back.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import ClassVar
from uuid import UUID


@dataclass(frozen=True)
class JournalEntryPosted:
    """A draft journal entry became a posted ledger fact."""

    event_type: ClassVar[str] = "journal_entry.posted"

    entry_id: UUID
    tenant_id: UUID
    entry_number: str
    entry_date: date
    posted_at: datetime
    posted_by_id: UUID
