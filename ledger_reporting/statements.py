"""
Pure report transformation functions.

These functions transform account totals read from the ledger into
structured reports.  ZERO I/O.  ZERO side effects.

All monetary values are Decimal in the tenant base currency.  All inputs
and outputs are frozen dataclasses.

Functions in this module follow the ledger_kernel/domain/ purity
convention:
- No database access
- No clock access
- Deterministic: same inputs always produce same outputs
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from ledger_kernel.domain.balance import within_tolerance
from ledger_kernel.domain.values import AccountType, is_debit_normal, signed_balance
from ledger_kernel.selectors.ledger_selector import AccountTotals
from ledger_reporting.config import ReportingConfig
from ledger_reporting.models import (
    BalanceSheetReport,
    PeriodTrialBalanceLineItem,
    PeriodTrialBalanceReport,
    ProfitAndLossReport,
    ReportMetadata,
    StatementSection,
    TrialBalanceLineItem,
    TrialBalanceReport,
)

_ZERO = Decimal("0")


# =========================================================================
# Helpers
# =========================================================================


def to_line_item(totals: AccountTotals) -> TrialBalanceLineItem:
    return TrialBalanceLineItem(
        account_id=totals.account_id,
        account_code=totals.account_code,
        account_name=totals.account_name,
        account_type=totals.account_type.value,
        debit_total=totals.debit_total,
        credit_total=totals.credit_total,
        balance=totals.balance,
    )


def is_visible(totals: AccountTotals, config: ReportingConfig) -> bool:
    """
    Whether an account appears on a report.

    Accounts carrying activity are always shown.  Zero-activity accounts
    follow include_zero_balances, and inactive ones also need
    include_inactive.
    """
    has_activity = totals.debit_total != _ZERO or totals.credit_total != _ZERO
    if has_activity:
        return True
    if not config.include_zero_balances:
        return False
    return totals.is_active or config.include_inactive


def _section(
    label: str,
    rows: Iterable[AccountTotals],
    config: ReportingConfig,
) -> StatementSection:
    rows = list(rows)
    items = tuple(
        to_line_item(t)
        for t in sorted(rows, key=lambda x: x.account_code)
        if is_visible(t, config)
    )
    return StatementSection(
        label=label,
        lines=items,
        total=sum((t.balance for t in rows), _ZERO),
    )


def _of_type(totals: Iterable[AccountTotals], *types: AccountType) -> list[AccountTotals]:
    return [t for t in totals if t.account_type in types]


def compute_net_income(totals: Iterable[AccountTotals]) -> Decimal:
    """
    Net income = sum(REVENUE natural balances) - sum(EXPENSE natural balances).

    Only REVENUE and EXPENSE accounts are considered.
    """
    revenue = _ZERO
    expense = _ZERO
    for t in totals:
        if t.account_type == AccountType.REVENUE:
            revenue += t.balance
        elif t.account_type == AccountType.EXPENSE:
            expense += t.balance
    return revenue - expense


# =========================================================================
# 1. TRIAL BALANCE
# =========================================================================


def build_trial_balance(
    totals: list[AccountTotals],
    config: ReportingConfig,
    metadata: ReportMetadata,
    tolerance: Decimal,
) -> TrialBalanceReport:
    """
    Build a trial balance from per-account totals.

    Grand totals cover every account, whether or not it is displayed.
    """
    total_debits = sum((t.debit_total for t in totals), _ZERO)
    total_credits = sum((t.credit_total for t in totals), _ZERO)
    debit_normal_total = sum(
        (t.balance for t in totals if is_debit_normal(t.account_type)), _ZERO
    )
    credit_normal_total = sum(
        (t.balance for t in totals if not is_debit_normal(t.account_type)), _ZERO
    )
    lines = tuple(
        to_line_item(t)
        for t in sorted(totals, key=lambda x: x.account_code)
        if is_visible(t, config)
    )
    return TrialBalanceReport(
        metadata=metadata,
        lines=lines,
        total_debits=total_debits,
        total_credits=total_credits,
        debit_normal_total=debit_normal_total,
        credit_normal_total=credit_normal_total,
        is_balanced=within_tolerance(total_debits, total_credits, tolerance),
    )


def build_period_trial_balance(
    cumulative_opening: list[AccountTotals],
    year_opening: list[AccountTotals],
    activity: list[AccountTotals],
    config: ReportingConfig,
    metadata: ReportMetadata,
    fiscal_period_id: UUID,
    period_code: str,
    tolerance: Decimal,
) -> PeriodTrialBalanceReport:
    """
    Build an opening / activity / ending trial balance for one period.

    Balance sheet accounts open with everything posted before the period.
    Revenue and expense accounts open with the fiscal year's activity
    before the period only, since they restart every year.
    """
    cumulative = {t.account_id: t for t in cumulative_opening}
    year_to_date = {t.account_id: t for t in year_opening}

    items: list[PeriodTrialBalanceLineItem] = []
    total_debits = _ZERO
    total_credits = _ZERO
    for t in sorted(activity, key=lambda x: x.account_code):
        if t.account_type in (AccountType.REVENUE, AccountType.EXPENSE):
            opening_row = year_to_date.get(t.account_id)
        else:
            opening_row = cumulative.get(t.account_id)
        opening = opening_row.balance if opening_row is not None else _ZERO

        total_debits += t.debit_total
        total_credits += t.credit_total

        if opening == _ZERO and not is_visible(t, config):
            continue
        items.append(
            PeriodTrialBalanceLineItem(
                account_id=t.account_id,
                account_code=t.account_code,
                account_name=t.account_name,
                account_type=t.account_type.value,
                opening_balance=opening,
                period_debits=t.debit_total,
                period_credits=t.credit_total,
                ending_balance=opening
                + signed_balance(t.account_type, t.debit_total, t.credit_total),
            )
        )

    return PeriodTrialBalanceReport(
        metadata=metadata,
        fiscal_period_id=fiscal_period_id,
        period_code=period_code,
        lines=tuple(items),
        total_period_debits=total_debits,
        total_period_credits=total_credits,
        is_balanced=within_tolerance(total_debits, total_credits, tolerance),
    )


# =========================================================================
# 2. PROFIT AND LOSS
# =========================================================================


def build_profit_and_loss(
    totals: list[AccountTotals],
    config: ReportingConfig,
    metadata: ReportMetadata,
) -> ProfitAndLossReport:
    """
    Build a multi-step profit and loss from activity totals over a range.

    Revenue - COGS = Gross Profit; Gross Profit - Operating Expenses =
    Net Income.  COGS accounts are expense accounts whose code matches the
    configured prefixes.
    """
    classification = config.classification
    expenses = _of_type(totals, AccountType.EXPENSE)

    revenue = _section("Revenue", _of_type(totals, AccountType.REVENUE), config)
    cogs = _section(
        "Cost of Goods Sold",
        (t for t in expenses if classification.is_cogs(t.account_code)),
        config,
    )
    operating = _section(
        "Operating Expenses",
        (t for t in expenses if not classification.is_cogs(t.account_code)),
        config,
    )

    gross_profit = revenue.total - cogs.total
    return ProfitAndLossReport(
        metadata=metadata,
        revenue=revenue,
        cost_of_goods_sold=cogs,
        operating_expenses=operating,
        gross_profit=gross_profit,
        total_revenue=revenue.total,
        total_expenses=cogs.total + operating.total,
        net_income=gross_profit - operating.total,
    )


# =========================================================================
# 3. BALANCE SHEET
# =========================================================================


def build_balance_sheet(
    totals: list[AccountTotals],
    config: ReportingConfig,
    metadata: ReportMetadata,
    tolerance: Decimal,
) -> BalanceSheetReport:
    """
    Build a balance sheet from cumulative totals as of a date.

    Revenue and expense balances are not closed into equity by any entry,
    so they are presented as one synthetic earnings figure inside equity.
    """
    assets = _section("Assets", _of_type(totals, AccountType.ASSET), config)
    liabilities = _section("Liabilities", _of_type(totals, AccountType.LIABILITY), config)
    equity = _section("Equity", _of_type(totals, AccountType.EQUITY), config)
    retained_earnings = compute_net_income(totals)

    total_equity = equity.total + retained_earnings
    total_liabilities_and_equity = liabilities.total + total_equity
    difference = assets.total - total_liabilities_and_equity

    return BalanceSheetReport(
        metadata=metadata,
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        retained_earnings=retained_earnings,
        total_assets=assets.total,
        total_liabilities=liabilities.total,
        total_equity=total_equity,
        total_liabilities_and_equity=total_liabilities_and_equity,
        difference=difference,
        is_balanced=abs(difference) <= tolerance,
    )
