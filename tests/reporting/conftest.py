"""
Shared books for the reporting tests.

Posted entries for the seeded tenant (base USD):

    JE-000001  2025-01-05  CASH  10000.00 / CAPITAL 10000.00
    JE-000002  2025-01-20  INV    3000.00 / AP       3000.00
    JE-000003  2025-02-10  CASH   5000.00 / REV      5000.00
    JE-000004  2025-02-10  COGS   2000.00 / INV      2000.00
    JE-000005  2025-02-28  RENT   1200.00 / CASH     1200.00
    JE-000006  2025-03-15  SALARY  800.00 / CASH      800.00

plus JE-000007 (2025-02-15, CASH 999.00 / REV 999.00) left as a draft,
which no report may see.
"""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

import pytest

POSTED_ENTRIES = [
    (date(2025, 1, 5), "CASH", "CAPITAL", "10000.00"),
    (date(2025, 1, 20), "INV", "AP", "3000.00"),
    (date(2025, 2, 10), "CASH", "REV", "5000.00"),
    (date(2025, 2, 10), "COGS", "INV", "2000.00"),
    (date(2025, 2, 28), "RENT", "CASH", "1200.00"),
    (date(2025, 3, 15), "SALARY", "CASH", "800.00"),
]


@dataclass
class Books:
    ledger: object
    posted_ids: list[UUID]
    draft_id: UUID

    @property
    def tenant_id(self) -> UUID:
        return self.ledger.tenant_id


def post_simple(journal_service, ledger, entry_date, debit_code, credit_code, amount):
    draft = journal_service.create_draft(
        ledger.tenant_id,
        entry_date,
        ledger.lines((debit_code, "debit", amount), (credit_code, "credit", amount)),
        ledger.actor_id,
        description=f"{debit_code} / {credit_code}",
    )
    return journal_service.post(ledger.tenant_id, draft.id, ledger.actor_id)


@pytest.fixture
def post_entry(journal_service, seeded_ledger):
    """Post a two-line entry for the seeded tenant: post_entry(date, debit_code, credit_code, amount)."""

    def _post(entry_date, debit_code, credit_code, amount):
        return post_simple(
            journal_service, seeded_ledger, entry_date, debit_code, credit_code, amount
        )

    return _post


@pytest.fixture
def books(journal_service, seeded_ledger) -> Books:
    posted_ids = [
        post_simple(journal_service, seeded_ledger, *entry).id for entry in POSTED_ENTRIES
    ]
    draft = journal_service.create_draft(
        seeded_ledger.tenant_id,
        date(2025, 2, 15),
        seeded_ledger.lines(("CASH", "debit", "999.00"), ("REV", "credit", "999.00")),
        seeded_ledger.actor_id,
    )
    return Books(ledger=seeded_ledger, posted_ids=posted_ids, draft_id=draft.id)
