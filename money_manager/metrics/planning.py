"""
Planning metrics for savings goals and recurring expenses.
"""

from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from money_manager.metrics.balance import ZERO
from money_manager.models.finance import Frequency, RecurringExpense, SavingsGoal
from money_manager.models.insights import GoalProgress

FREQUENCY_STEPS = {
    Frequency.DAILY: relativedelta(days=1),
    Frequency.WEEKLY: relativedelta(weeks=1),
    Frequency.MONTHLY: relativedelta(months=1),
    Frequency.YEARLY: relativedelta(years=1),
}

# How many occurrences of each frequency make up one month.
MONTHLY_FACTORS = {
    Frequency.DAILY: Decimal("30"),
    Frequency.WEEKLY: Decimal("4"),
    Frequency.MONTHLY: Decimal("1"),
    Frequency.YEARLY: Decimal("1") / Decimal("12"),
}


def _as_date(value) -> date:
    return value.date() if isinstance(value, datetime) else value


def next_due_date(start: date, frequency: Frequency, today: Optional[date] = None) -> date:
    """
    First occurrence on or after ``today`` of a schedule starting at ``start``.

    Steps are added to ``start`` rather than to the previous occurrence, so
    a schedule starting on the 31st returns to the 31st after short months.
    """
    start = _as_date(start)
    today = _as_date(today or date.today())
    step = FREQUENCY_STEPS[Frequency(frequency)]

    occurrence = 0
    due = start
    while due < today:
        occurrence += 1
        due = start + step * occurrence
    return due


def advance_due_date(due: date, frequency: Frequency, today: Optional[date] = None) -> date:
    """
    Next due date after a payment on ``due``.

    Always moves at least one step past ``due``, then keeps stepping until
    the date is no longer in the past.
    """
    due = _as_date(due)
    today = _as_date(today or date.today())
    return next_due_date(due, frequency, max(today, due + relativedelta(days=1)))


def days_until(target: date, today: Optional[date] = None) -> int:
    """Whole days from today to ``target``; negative once it has passed."""
    today = _as_date(today or date.today())
    return (_as_date(target) - today).days


def monthly_recurring_cost(recurring: Iterable[RecurringExpense]) -> Decimal:
    """Monthly equivalent of every active recurring expense."""
    total = ZERO
    for item in recurring:
        if item.is_active:
            total += item.amount * MONTHLY_FACTORS[item.frequency]
    return total


def goal_progress(goal: SavingsGoal, today: Optional[date] = None) -> GoalProgress:
    percent = float(goal.current_amount / goal.target_amount * 100)
    days_left = None
    if goal.deadline is not None:
        today = _as_date(today or date.today())
        days_left = (goal.deadline - today).days

    return GoalProgress(
        goal_id=goal.id,
        percent=percent,
        capped_percent=min(percent, 100.0),
        remaining=max(ZERO, goal.target_amount - goal.current_amount),
        days_left=days_left,
        is_complete=goal.current_amount >= goal.target_amount,
    )
