"""
Balance and aggregation reducers.

Pure functions over lists of expenses. An expense may be an ``Expense``
model or a plain mapping (e.g. a record read straight from a backup file);
every reducer reads ``amount``, ``date`` and ``category`` the same way.

Malformed numbers never raise: they are coerced to zero.
"""

import math
from collections import defaultdict
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from money_manager.models.finance import ExpenseCategory, to_local_naive
from money_manager.models.insights import DailySpend, SpendingStats

ZERO = Decimal("0")


def coerce_amount(value: Any) -> Decimal:
    """Best-effort conversion to Decimal; anything unusable becomes 0."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip().replace(",", ""))
        except InvalidOperation:
            return ZERO
    else:
        return ZERO
    if not amount.is_finite():
        return ZERO
    return amount


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Read a datetime from a model field, a date or an ISO string."""
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_local_naive(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def field_value(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def amount_of(expense: Any) -> Decimal:
    return coerce_amount(field_value(expense, "amount"))


def expense_date(expense: Any) -> Optional[datetime]:
    return parse_timestamp(field_value(expense, "date"))


def category_of(expense: Any) -> ExpenseCategory:
    raw = field_value(expense, "category")
    if isinstance(raw, ExpenseCategory):
        return raw
    return ExpenseCategory(raw) if raw else ExpenseCategory.OTHER


def _calendar_day(value: date) -> date:
    return value.date() if isinstance(value, datetime) else value


def total_expenses(expenses: Iterable[Any]) -> Decimal:
    """Sum of expense amounts, treating missing or non-numeric amounts as 0."""
    return sum((amount_of(e) for e in expenses), ZERO)


def current_balance(total_income: Any, expenses: Iterable[Any]) -> Decimal:
    """Income minus total expenses. May be negative."""
    return coerce_amount(total_income) - total_expenses(expenses)


def expenses_by_date(expenses: Iterable[Any], day: date) -> list[Any]:
    """Expenses that fall on the same calendar day as ``day`` (time ignored)."""
    target = _calendar_day(day)
    result = []
    for e in expenses:
        when = expense_date(e)
        if when is not None and when.date() == target:
            result.append(e)
    return result


def expenses_by_date_range(expenses: Iterable[Any], start: date, end: date) -> list[Any]:
    """Expenses whose calendar day is within [start, end], both ends inclusive."""
    first, last = _calendar_day(start), _calendar_day(end)
    result = []
    for e in expenses:
        when = expense_date(e)
        if when is not None and first <= when.date() <= last:
            result.append(e)
    return result


def expenses_in_month(expenses: Iterable[Any], year: int, month: int) -> list[Any]:
    result = []
    for e in expenses:
        when = expense_date(e)
        if when is not None and when.year == year and when.month == month:
            result.append(e)
    return result


def category_totals(expenses: Iterable[Any]) -> dict[str, Decimal]:
    """Total per category label, in first-seen order."""
    totals: dict[str, Decimal] = {}
    for e in expenses:
        label = category_of(e).value
        totals[label] = totals.get(label, ZERO) + amount_of(e)
    return totals


def daily_totals(expenses: Iterable[Any]) -> dict[date, Decimal]:
    """Total per calendar day. Expenses without a readable date are skipped."""
    totals: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for e in expenses:
        when = expense_date(e)
        if when is None:
            continue
        totals[when.date()] += amount_of(e)
    return dict(totals)


def days_spanned(expenses: Iterable[Any]) -> int:
    """Whole days from the first to the last expense, counting both ends (min 1)."""
    stamps = [d for d in (expense_date(e) for e in expenses) if d is not None]
    if not stamps:
        return 1
    elapsed = (max(stamps) - min(stamps)) / timedelta(days=1)
    return max(1, math.ceil(elapsed) + 1)


def daily_series(
    expenses: Iterable[Any],
    days: int = 30,
    today: Optional[date] = None,
) -> list[DailySpend]:
    """
    Spend per day for the last ``days`` days ending today, oldest first.

    ``cumulative`` carries the running total, i.e. the spending velocity.
    """
    today = _calendar_day(today or date.today())
    per_day = daily_totals(expenses)
    series = []
    running = ZERO
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        amount = per_day.get(day, ZERO)
        running += amount
        series.append(DailySpend(day=day, amount=amount, cumulative=running))
    return series


def spending_stats(expenses: Iterable[Any]) -> SpendingStats:
    items = list(expenses)
    total = total_expenses(items)
    span = days_spanned(items)
    if not items:
        return SpendingStats(total=ZERO, days_spanned=span, average_daily=ZERO)
    return SpendingStats(
        total=total,
        days_spanned=span,
        average_daily=total / span,
        highest=max(items, key=amount_of),
        lowest=min(items, key=amount_of),
    )
