"""
General ledger tests.

Verifies:
- Lines come ordered by entry date, entry number, then line number
- The running balance is on the account's natural side
- date_from sets an opening balance from earlier posted lines
- The view is lazy: nothing is read until iteration, and each iteration
  restarts from the opening balance against the current ledger
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.exceptions import (
    AccountNotFoundError,
    CrossTenantReferenceError,
    InvalidDateRangeError,
)


class TestGeneralLedger:
    def test_cash_ledger_running_balance(self, reporting_service, books):
        gl = reporting_service.general_ledger(books.tenant_id, books.ledger.account("CASH"))
        lines = list(gl)

        assert gl.opening_balance == Decimal("0")
        assert [line.entry_number for line in lines] == [
            "JE-000001", "JE-000003", "JE-000005", "JE-000006",
        ]
        assert [line.running_balance for line in lines] == [
            Decimal("10000.00"),
            Decimal("15000.00"),
            Decimal("13800.00"),
            Decimal("13000.00"),
        ]
        assert lines[2].debit == Decimal("0")
        assert lines[2].credit == Decimal("1200.00")

    def test_credit_normal_account(self, reporting_service, books):
        lines = list(reporting_service.general_ledger(books.tenant_id, books.ledger.account("AP")))
        assert [line.running_balance for line in lines] == [Decimal("3000.00")]

    def test_line_falls_back_to_entry_description(self, reporting_service, books):
        first = next(iter(reporting_service.general_ledger(
            books.tenant_id, books.ledger.account("CASH")
        )))
        assert first.description == "CASH / CAPITAL"
        assert first.entry_date == date(2025, 1, 5)
        assert first.line_number == 1

    def test_date_range_with_opening_balance(self, reporting_service, books):
        gl = reporting_service.general_ledger(
            books.tenant_id,
            books.ledger.account("CASH"),
            date_from=date(2025, 2, 1),
            date_to=date(2025, 2, 28),
        )
        lines = list(gl)

        assert gl.opening_balance == Decimal("10000.00")
        assert [line.entry_number for line in lines] == ["JE-000003", "JE-000005"]
        assert lines[-1].running_balance == Decimal("13800.00")

    def test_account_summary(self, reporting_service, books):
        gl = reporting_service.general_ledger(books.tenant_id, books.ledger.account("CASH"))
        assert gl.account.account_code == "CASH"
        assert gl.account.account_name == "Cash"

    def test_account_without_activity(self, reporting_service, books):
        assert list(reporting_service.general_ledger(books.tenant_id, books.ledger.account("PPE"))) == []

    def test_drafts_excluded(self, reporting_service, books):
        lines = list(reporting_service.general_ledger(books.tenant_id, books.ledger.account("REV")))
        assert len(lines) == 1


class TestLazyRestartable:
    def test_iterating_twice_gives_same_lines(self, reporting_service, books):
        gl = reporting_service.general_ledger(books.tenant_id, books.ledger.account("CASH"))
        assert list(gl) == list(gl)

    def test_small_batches_give_same_lines(self, reporting_service, books):
        account_id = books.ledger.account("CASH")
        batched = reporting_service.general_ledger(books.tenant_id, account_id, batch_size=1)
        default = reporting_service.general_ledger(books.tenant_id, account_id)
        assert list(batched) == list(default)

    def test_view_reads_ledger_at_iteration_time(self, reporting_service, post_entry, books):
        gl = reporting_service.general_ledger(books.tenant_id, books.ledger.account("CASH"))
        post_entry(date(2025, 4, 1), "CASH", "SRV-REV", "50.00")

        lines = list(gl)
        assert lines[-1].entry_date == date(2025, 4, 1)
        assert lines[-1].running_balance == Decimal("13050.00")

    def test_partial_iteration_then_restart(self, reporting_service, books):
        gl = reporting_service.general_ledger(books.tenant_id, books.ledger.account("CASH"))
        iterator = iter(gl)
        first = next(iterator)
        iterator.close()

        restarted = list(gl)
        assert restarted[0] == first
        assert len(restarted) == 4


class TestErrors:
    def test_inverted_range(self, reporting_service, books):
        with pytest.raises(InvalidDateRangeError):
            reporting_service.general_ledger(
                books.tenant_id,
                books.ledger.account("CASH"),
                date_from=date(2025, 3, 1),
                date_to=date(2025, 2, 1),
            )

    def test_unknown_account(self, reporting_service, books):
        with pytest.raises(AccountNotFoundError):
            reporting_service.general_ledger(books.tenant_id, uuid4())

    def test_foreign_account(self, reporting_service, books, other_ledger):
        with pytest.raises(CrossTenantReferenceError):
            reporting_service.general_ledger(books.tenant_id, other_ledger.account("CASH"))
