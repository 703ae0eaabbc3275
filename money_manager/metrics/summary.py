"""
Periodic summary generation.

A summary snapshot is due every ``period_days`` days after the income
start date. ``should_generate_summary`` is a counter comparison: it is
true while fewer snapshots exist than full periods have elapsed, so
calling it repeatedly with the same inputs is harmless.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any, Optional

from money_manager.metrics.balance import (
    ZERO,
    category_totals,
    coerce_amount,
    daily_totals,
    parse_timestamp,
    total_expenses,
)
from money_manager.models.finance import Income, SummarySnapshot

SUMMARY_PERIOD_DAYS = 30


def expected_summary_count(
    start_date: Any,
    now: Optional[datetime] = None,
    period_days: int = SUMMARY_PERIOD_DAYS,
) -> int:
    """Number of full periods elapsed since ``start_date`` (0 if unreadable or in the future)."""
    start = parse_timestamp(start_date)
    if start is None:
        return 0
    now = now or datetime.now()
    days_elapsed = (now - start).days
    if days_elapsed < 0:
        return 0
    return days_elapsed // period_days


def should_generate_summary(
    start_date: Any,
    summary_count: int,
    now: Optional[datetime] = None,
    period_days: int = SUMMARY_PERIOD_DAYS,
) -> bool:
    """True iff more periods have elapsed than summaries exist."""
    return expected_summary_count(start_date, now, period_days) > summary_count


def overshoot_days(expenses: Iterable[Any], spending_limit: Any) -> int:
    """Count calendar days whose summed expenses exceed ``spending_limit``."""
    limit = coerce_amount(spending_limit)
    return sum(1 for total in daily_totals(expenses).values() if total > limit)


def generate_summary(
    income: Income,
    expenses: Iterable[Any],
    spending_limit: Any,
    now: Optional[datetime] = None,
    period_days: int = SUMMARY_PERIOD_DAYS,
) -> SummarySnapshot:
    """
    Build a snapshot of the current finances.

    Args:
        income: Current income record; its running total is used as-is
        expenses: Expenses to summarise (not mutated)
        spending_limit: Daily limit used to count overshoot days
        now: Snapshot timestamp, defaults to the current time
        period_days: Length of the summary period

    Returns:
        An immutable SummarySnapshot
    """
    items = list(expenses)
    spent = total_expenses(items)
    days_with_spending = len(daily_totals(items))
    daily_average = spent / days_with_spending if days_with_spending else ZERO

    return SummarySnapshot(
        date=now or datetime.now(),
        total_income=income.amount,
        total_expenses=spent,
        balance=income.amount - spent,
        category_data=category_totals(items),
        expense_count=len(items),
        overshoot_days=overshoot_days(items, spending_limit),
        daily_average=daily_average,
        period=f"{period_days} days",
    )

