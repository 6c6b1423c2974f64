"""
Balance rules -- the double-entry arithmetic of a journal entry.

Responsibility:
    Pure validation of line count, per-line sides, base-currency
    conversion, and entry balance.  Used by JournalEntryService at draft
    save and again at post, and by reporting when verifying the ledger.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - At least MIN_LINES lines per entry.
    - Each line has exactly one strictly positive side and no negative side.
    - |sum(debit base) - sum(credit base)| <= tolerance, where the tolerance
      is BALANCE_TOLERANCE for a two-decimal base currency and one minor
      unit of the base currency otherwise.
    - A difference accepted within tolerance is booked onto one line of the
      short side (rounding_residual), so saved base totals are exactly equal.

Failure modes:
    - InsufficientLinesError, UnbalancedLineError (with zero-based line
      index), ImbalancedEntryError (with both totals and the tolerance).
"""

from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import Protocol

from ledger_kernel.db.types import round_money
from ledger_kernel.exceptions import (
    ImbalancedEntryError,
    InsufficientLinesError,
    UnbalancedLineError,
)

# Maximum |debits - credits| accepted for an entry in a two-decimal base
# currency.  Scaled by balance_tolerance() for other precisions.
BALANCE_TOLERANCE = Decimal("0.01")

MIN_LINES = 2

_ZERO = Decimal("0")


class SidedAmount(Protocol):
    debit: Decimal
    credit: Decimal


class BaseAmountLine(Protocol):
    debit: Decimal
    credit: Decimal
    amount_base: Decimal


def balance_tolerance(decimal_places: int = 2) -> Decimal:
    """
    Balance tolerance for a base currency with the given precision.

    Example:
        balance_tolerance(2) -> Decimal("0.01")
        balance_tolerance(0) -> Decimal("1")
        balance_tolerance(3) -> Decimal("0.001")
    """
    return BALANCE_TOLERANCE.scaleb(2 - decimal_places)


def within_tolerance(left: Decimal, right: Decimal, tolerance: Decimal) -> bool:
    return abs(left - right) <= tolerance


def validate_line_count(lines: Sequence) -> None:
    if len(lines) < MIN_LINES:
        raise InsufficientLinesError(line_count=len(lines), minimum=MIN_LINES)


def validate_line_sides(lines: Iterable[SidedAmount]) -> None:
    """
    Check that every line is exactly one of debit or credit.

    Raises:
        UnbalancedLineError: For the first offending line, by index.
    """
    for index, line in enumerate(lines):
        debit, credit = line.debit, line.credit
        if debit < _ZERO or credit < _ZERO:
            raise UnbalancedLineError(index, debit, credit, "amounts cannot be negative")
        if debit > _ZERO and credit > _ZERO:
            raise UnbalancedLineError(
                index, debit, credit, "a line cannot be both a debit and a credit"
            )
        if debit == _ZERO and credit == _ZERO:
            raise UnbalancedLineError(
                index, debit, credit, "a line must have a debit or a credit amount"
            )


def compute_amount_base(amount: Decimal, rate: Decimal, base_places: int) -> Decimal:
    """Convert an amount to base currency, rounded to base precision."""
    return round_money(amount * rate, base_places)


def base_totals(lines: Iterable[BaseAmountLine]) -> tuple[Decimal, Decimal]:
    """Return (total debits, total credits) in base currency."""
    debits = _ZERO
    credits = _ZERO
    for line in lines:
        if line.debit > _ZERO:
            debits += line.amount_base
        else:
            credits += line.amount_base
    return debits, credits


def assert_balanced(
    lines: Iterable[BaseAmountLine],
    base_places: int = 2,
    entry_id: str | None = None,
) -> tuple[Decimal, Decimal]:
    """
    Check that base-currency debits equal credits within tolerance.

    Returns:
        (total debits, total credits) on success.

    Raises:
        ImbalancedEntryError: When the difference exceeds the tolerance.
    """
    debits, credits = base_totals(lines)
    tolerance = balance_tolerance(base_places)
    if not within_tolerance(debits, credits, tolerance):
        raise ImbalancedEntryError(
            total_debits=debits,
            total_credits=credits,
            tolerance=tolerance,
            entry_id=entry_id,
        )
    return debits, credits


def rounding_residual(lines: Sequence[BaseAmountLine]) -> tuple[int | None, Decimal]:
    """
    Locate the line that absorbs an accepted base-currency difference.

    The residual is booked on the short side, on its largest line by base
    amount (the first one on ties), so the posted base totals net to zero.

    Returns:
        (line index, amount to add to its amount_base), or (None, 0) when
        the lines already balance exactly.

    Raises:
        ImbalancedEntryError: The short side has no line to absorb it.

    Example:
        debit 100.00 / credit 99.99 -> (1, Decimal("0.01"))
    """
    debits, credits = base_totals(lines)
    if debits == credits:
        return None, _ZERO
    debit_short = debits < credits
    candidates = [
        (index, line)
        for index, line in enumerate(lines)
        if (line.debit > _ZERO) == debit_short
    ]
    if not candidates:
        raise ImbalancedEntryError(total_debits=debits, total_credits=credits, tolerance=_ZERO)
    index, _ = max(candidates, key=lambda pair: pair[1].amount_base)
    return index, abs(debits - credits)


def validate_entry_lines(
    lines: Sequence[BaseAmountLine],
    base_places: int = 2,
    entry_id: str | None = None,
) -> tuple[Decimal, Decimal]:
    """Run count, side, and balance checks in that order."""
    validate_line_count(lines)
    validate_line_sides(lines)
    return assert_balanced(lines, base_places, entry_id)
