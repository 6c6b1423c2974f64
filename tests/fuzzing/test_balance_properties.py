"""
Hypothesis property tests for the balance rules and posted-ledger totals.

Properties:
- A line set whose base debits and credits match always passes
- A difference above the tolerance always fails, at or below always passes
- Swapping every line's side (a reversal) keeps an entry balanced
- Base conversion lands exactly on the base precision
- Any sequence of posted entries leaves the trial balance balanced
- Foreign-currency entries at arbitrary rates, including ones accepted
  within tolerance, keep debit-normal and credit-normal totals equal
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from ledger_kernel.domain.balance import (
    assert_balanced,
    balance_tolerance,
    base_totals,
    compute_amount_base,
    rounding_residual,
    validate_entry_lines,
)
from ledger_kernel.domain.dtos import LineInput
from ledger_kernel.domain.values import AccountType, signed_balance
from ledger_kernel.exceptions import ImbalancedEntryError
from ledger_kernel.services.journal_entry_service import JournalEntryService

money = st.decimals(
    min_value=Decimal("0.01"),
    max_value=Decimal("9999999.99"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)

rates = st.decimals(
    min_value=Decimal("0.0001"),
    max_value=Decimal("5000"),
    places=6,
    allow_nan=False,
    allow_infinity=False,
)


@dataclass(frozen=True)
class _Line:
    debit: Decimal
    credit: Decimal
    amount_base: Decimal


def _debit(amount: Decimal) -> _Line:
    return _Line(debit=amount, credit=Decimal("0"), amount_base=amount)


def _credit(amount: Decimal) -> _Line:
    return _Line(debit=Decimal("0"), credit=amount, amount_base=amount)


def _swap(line: _Line) -> _Line:
    return _Line(debit=line.credit, credit=line.debit, amount_base=line.amount_base)


class TestBalanceProperties:
    @given(debits=st.lists(money, min_size=1, max_size=12), data=st.data())
    def test_matching_totals_always_pass(self, debits, data):
        credits = data.draw(st.permutations(debits))
        lines = [_debit(a) for a in debits] + [_credit(a) for a in credits]

        total_debits, total_credits = validate_entry_lines(lines)

        assert total_debits == total_credits == sum(debits, Decimal("0"))

    @given(amount=money, gap=st.integers(min_value=2, max_value=10_000))
    def test_difference_above_tolerance_fails(self, amount, gap):
        lines = [_debit(amount + Decimal(gap) / 100), _credit(amount)]
        with pytest.raises(ImbalancedEntryError):
            assert_balanced(lines)

    @given(amount=money, gap=st.sampled_from([Decimal("0"), Decimal("0.01")]))
    def test_difference_within_tolerance_passes(self, amount, gap):
        assert_balanced([_debit(amount + gap), _credit(amount)])

    @given(debits=st.lists(money, min_size=1, max_size=8))
    def test_reversal_stays_balanced(self, debits):
        lines = [_debit(a) for a in debits] + [_credit(sum(debits, Decimal("0")))]
        reversed_lines = [_swap(line) for line in lines]

        assert validate_entry_lines(reversed_lines) == validate_entry_lines(lines)[::-1]


class TestConversionProperties:
    @given(amount=money, rate=rates, places=st.integers(min_value=0, max_value=4))
    def test_base_amount_on_base_precision(self, amount, rate, places):
        base = compute_amount_base(amount, rate, places)

        assert base.as_tuple().exponent == -places
        assert abs(base - amount * rate) <= balance_tolerance(places) / 2

    @given(places=st.integers(min_value=0, max_value=6))
    def test_tolerance_is_one_unit_of_precision(self, places):
        assert balance_tolerance(places) == Decimal(1).scaleb(-places)


class TestSignedBalanceProperties:
    @given(debit_total=money, credit_total=money)
    def test_natural_sides_mirror(self, debit_total, credit_total):
        assert signed_balance(AccountType.ASSET, debit_total, credit_total) == -signed_balance(
            AccountType.LIABILITY, debit_total, credit_total
        )
        assert signed_balance(AccountType.EXPENSE, debit_total, credit_total) == -signed_balance(
            AccountType.REVENUE, debit_total, credit_total
        )


ACCOUNT_CODES = ["CASH", "AR", "INV", "AP", "CAPITAL", "REV", "COGS", "RENT", "SALARY"]

posted_entries = st.lists(
    st.tuples(
        st.integers(min_value=0, max_value=364),
        st.sampled_from(ACCOUNT_CODES),
        st.sampled_from(ACCOUNT_CODES),
        money,
    ),
    min_size=1,
    max_size=5,
)


@pytest.mark.slow
class TestPostedLedgerProperties:
    @settings(
        max_examples=20,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture, HealthCheck.too_slow],
    )
    @given(entries=posted_entries)
    def test_trial_balance_always_balances(
        self, journal_service, reporting_service, seeded_ledger, entries
    ):
        # Examples share one session, so compare against the report taken before.
        before = reporting_service.trial_balance(seeded_ledger.tenant_id, date(2025, 12, 31))

        for day, debit_code, credit_code, amount in entries:
            draft = journal_service.create_draft(
                seeded_ledger.tenant_id,
                date(2025, 1, 1) + timedelta(days=day),
                seeded_ledger.lines(
                    (debit_code, "debit", str(amount)),
                    (credit_code, "credit", str(amount)),
                ),
                seeded_ledger.actor_id,
            )
            journal_service.post(seeded_ledger.tenant_id, draft.id, seeded_ledger.actor_id)

        after = reporting_service.trial_balance(seeded_ledger.tenant_id, date(2025, 12, 31))
        added = sum((amount for *_, amount in entries), Decimal("0"))

        assert after.is_balanced
        assert after.total_debits == after.total_credits
        assert after.total_debits - before.total_debits == added
        assert after.debit_normal_total == after.credit_normal_total


class TestResidualProperties:
    @given(
        amount=money,
        rate=rates,
        gap=st.sampled_from([Decimal("-0.01"), Decimal("0"), Decimal("0.01")]),
    )
    def test_residual_always_nets_to_zero(self, amount, rate, gap):
        base = compute_amount_base(amount, rate, 2)
        credit_amount = max(base + gap, Decimal("0.01"))
        lines = [
            _Line(debit=amount, credit=Decimal("0"), amount_base=base),
            _credit(credit_amount),
        ]
        assert_balanced(lines)

        index, residual = rounding_residual(lines)
        if index is not None:
            line = lines[index]
            lines[index] = _Line(line.debit, line.credit, line.amount_base + residual)

        debits, credits = base_totals(lines)
        assert debits == credits


class _DrawnRate:
    """Rate provider returning whatever rate the current example drew."""

    def __init__(self):
        self.rate = Decimal("1")

    def rate_at(self, currency_id, on_date):
        return self.rate


mixed_entries = st.lists(
    st.tuples(
        st.integers(min_value=0, max_value=364),
        st.sampled_from(ACCOUNT_CODES),
        st.sampled_from(ACCOUNT_CODES),
        money,
        rates,
        st.sampled_from([Decimal("-0.01"), Decimal("0"), Decimal("0.01")]),
        st.booleans(),
    ),
    min_size=1,
    max_size=5,
)


@pytest.mark.slow
class TestMixedCurrencyLedgerProperties:
    @settings(
        max_examples=20,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture, HealthCheck.too_slow],
    )
    @given(entries=mixed_entries)
    def test_rounded_entries_keep_identity(
        self, session, deterministic_clock, reporting_service, seeded_ledger, entries
    ):
        provider = _DrawnRate()
        service = JournalEntryService(session, rate_provider=provider, clock=deterministic_clock)

        for day, foreign_code, base_code, amount, rate, gap, foreign_debit in entries:
            provider.rate = rate
            base_amount = max(compute_amount_base(amount, rate, 2) + gap, Decimal("0.01"))
            foreign_side, base_side = ("debit", "credit") if foreign_debit else ("credit", "debit")
            draft = service.create_draft(
                seeded_ledger.tenant_id,
                date(2025, 1, 1) + timedelta(days=day),
                [
                    LineInput(
                        account_id=seeded_ledger.account(foreign_code),
                        currency_id=seeded_ledger.eur_id,
                        **{foreign_side: amount},
                    ),
                    LineInput(
                        account_id=seeded_ledger.account(base_code),
                        **{base_side: base_amount},
                    ),
                ],
                seeded_ledger.actor_id,
            )
            assert draft.total_debits == draft.total_credits
            service.post(seeded_ledger.tenant_id, draft.id, seeded_ledger.actor_id)

        report = reporting_service.trial_balance(seeded_ledger.tenant_id, date(2025, 12, 31))

        assert report.is_balanced
        assert report.total_debits == report.total_credits
        assert report.debit_normal_total == report.credit_normal_total
