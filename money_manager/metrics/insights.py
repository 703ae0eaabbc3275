"""
Insight metrics.

Deterministic statistics behind the AI insights and the analytics views:
anomaly detection, stability score, trend, time and weekday bucketing,
safe-to-spend, forecast, behaviour profile and monthly report figures.

DESIGN DECISION: Statistics are computed on Decimal amounts with the
``statistics`` module. Identical amounts give a mean that is exactly
equal to each amount and a standard deviation of exactly 0, so uniform
spending never produces spurious anomalies or a score below 100.

Every function guards its minimum sample size and any division by zero;
none of them raise on odd input.
"""

import calendar
import statistics
from collections.abc import Iterable
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from money_manager.metrics.balance import (
    ZERO,
    amount_of,
    category_totals,
    coerce_amount,
    expense_date,
    expenses_in_month,
    total_expenses,
)
from money_manager.models.insights import (
    AnomalyReport,
    BehaviorProfile,
    BucketTotals,
    ExpenseForecast,
    MonthlyReportStats,
    SafeToSpend,
    SafeToSpendStatus,
    StabilityScore,
)

ANOMALY_MIN_EXPENSES = 5
ANOMALY_STD_MULTIPLIER = 2
STABILITY_MIN_EXPENSES = 7
STABILITY_DEFAULT_SCORE = 50
TREND_MIN_EXPENSES = 14
BEHAVIOR_MIN_EXPENSES = 10

INSUFFICIENT_ANOMALY_DATA = (
    "You need at least 5 transactions to detect spending anomalies. "
    "Keep tracking your expenses."
)
NO_ANOMALIES_FOUND = (
    "Your spending is consistent with no unusual transactions detected. "
    "Great job maintaining regular spending patterns!"
)
INSUFFICIENT_STABILITY_DATA = (
    "Insufficient data for stability analysis. Please track expenses for at "
    "least one week to get an accurate stability score."
)

# (label, first hour, hour after last); anything outside is Night.
TIME_OF_DAY_BUCKETS = (
    ("Morning", 6, 12),
    ("Afternoon", 12, 18),
    ("Evening", 18, 22),
)
NIGHT = "Night"
TIME_OF_DAY_RANGES = {
    "Morning": "6AM-12PM",
    "Afternoon": "12PM-6PM",
    "Evening": "6PM-10PM",
    "Night": "10PM-6AM",
}
WEEKDAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def _amounts(expenses: list[Any]) -> list[Decimal]:
    return [amount_of(e) for e in expenses]


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# =============================================================================
# DISPERSION
# =============================================================================

def detect_anomalies(
    expenses: Iterable[Any],
    min_expenses: int = ANOMALY_MIN_EXPENSES,
    std_multiplier: float = ANOMALY_STD_MULTIPLIER,
) -> AnomalyReport:
    """
    Flag expenses more than ``std_multiplier`` population standard
    deviations away from the mean amount.

    Below ``min_expenses`` nothing is computed and a fixed message is
    returned instead.
    """
    items = list(expenses)
    if len(items) < min_expenses:
        return AnomalyReport(sufficient_data=False, message=INSUFFICIENT_ANOMALY_DATA)

    amounts = _amounts(items)
    mean = statistics.mean(amounts)
    std_dev = statistics.pstdev(amounts, mean)
    cutoff = std_dev * Decimal(str(std_multiplier))

    anomalies = [e for e, amount in zip(items, amounts) if abs(amount - mean) > cutoff]

    if anomalies:
        message = f"{len(anomalies)} unusual transaction(s) detected."
    else:
        message = NO_ANOMALIES_FOUND

    return AnomalyReport(
        sufficient_data=True,
        message=message,
        mean=float(mean),
        std_dev=float(std_dev),
        anomalies=anomalies,
    )


def stability_score(
    expenses: Iterable[Any],
    min_expenses: int = STABILITY_MIN_EXPENSES,
) -> StabilityScore:
    """
    Score spending regularity from the coefficient of variation.

    score = round(clamp(100 - CV * 100, 0, 100)); lower variation scores
    higher. A zero mean is treated as no variation.
    """
    items = list(expenses)
    if len(items) < min_expenses:
        return StabilityScore(
            score=STABILITY_DEFAULT_SCORE,
            sufficient_data=False,
            explanation=INSUFFICIENT_STABILITY_DATA,
        )

    amounts = _amounts(items)
    mean = statistics.mean(amounts)
    std_dev = statistics.pstdev(amounts, mean)
    cv = std_dev / mean if mean > 0 else ZERO

    raw_score = max(ZERO, Decimal(100) - cv * 100)
    score = min(100, _round_half_up(raw_score))

    return StabilityScore(
        score=score,
        sufficient_data=True,
        coefficient_of_variation=float(cv),
        mean=float(mean),
        explanation=(
            f"Stability score {score}/100: transactions vary by "
            f"{float(cv) * 100:.1f}% around an average of {float(mean):.2f}."
        ),
    )


def spending_trend(
    expenses: Iterable[Any],
    min_expenses: int = TREND_MIN_EXPENSES,
) -> float:
    """
    Percentage change of the average expense between the older and newer
    half of the expenses (chronological). 0 when there is too little data.
    """
    items = list(expenses)
    if len(items) < min_expenses:
        return 0.0

    ordered = sorted(items, key=lambda e: expense_date(e) or datetime.min)
    midpoint = len(ordered) // 2
    first_avg = statistics.mean(_amounts(ordered[:midpoint]))
    second_avg = statistics.mean(_amounts(ordered[midpoint:]))

    if first_avg == 0:
        return 0.0
    return float((second_avg - first_avg) / first_avg * 100)


# =============================================================================
# BUCKETING
# =============================================================================

def time_of_day_bucket(hour: int) -> str:
    for label, start, end in TIME_OF_DAY_BUCKETS:
        if start <= hour < end:
            return label
    return NIGHT


def weekday_name(moment: date) -> str:
    # date.weekday() is Monday=0; the buckets start on Sunday
    return WEEKDAYS[(moment.weekday() + 1) % 7]


def _bucket(expenses: Iterable[Any], labels: Iterable[str], key) -> dict[str, BucketTotals]:
    counts = {label: 0 for label in labels}
    totals = {label: ZERO for label in counts}
    for e in expenses:
        when = expense_date(e)
        if when is None:
            continue
        label = key(when)
        counts[label] += 1
        totals[label] += amount_of(e)
    return {label: BucketTotals(count=counts[label], total=totals[label]) for label in counts}


def group_by_time_of_day(expenses: Iterable[Any]) -> dict[str, BucketTotals]:
    """Morning [6,12), Afternoon [12,18), Evening [18,22), Night otherwise."""
    labels = [label for label, _, _ in TIME_OF_DAY_BUCKETS] + [NIGHT]
    return _bucket(expenses, labels, lambda when: time_of_day_bucket(when.hour))


def group_by_day_of_week(expenses: Iterable[Any]) -> dict[str, BucketTotals]:
    """All seven weekdays, Sunday first, including empty ones."""
    return _bucket(expenses, WEEKDAYS, weekday_name)


def behavior_profile(
    expenses: Iterable[Any],
    min_expenses: int = BEHAVIOR_MIN_EXPENSES,
) -> Optional[BehaviorProfile]:
    """Highest and lowest spending weekday; None below ``min_expenses``."""
    items = list(expenses)
    if len(items) < min_expenses:
        return None

    by_day = group_by_day_of_week(items)
    highest = max(by_day.items(), key=lambda kv: kv[1].total)
    lowest = min(by_day.items(), key=lambda kv: kv[1].total)

    return BehaviorProfile(
        transaction_count=len(items),
        average_transaction=float(statistics.mean(_amounts(items))),
        highest_day=highest[0],
        highest_day_total=highest[1].total,
        lowest_day=lowest[0],
        lowest_day_total=lowest[1].total,
    )


# =============================================================================
# BUDGETING
# =============================================================================

def safe_to_spend(
    monthly_budget: Any,
    spent_this_month: Any,
    daily_limit: Any,
    today: Optional[date] = None,
) -> SafeToSpend:
    """
    Daily amount that can still be spent this month.

    Status:
        danger  - the budget is already exceeded
        warning - spending runs more than 10% of the budget ahead of a
                  linear pace, or the safe daily amount is below half the
                  daily limit
        good    - otherwise
    """
    today = today or date.today()
    if isinstance(today, datetime):
        today = today.date()

    budget = coerce_amount(monthly_budget)
    spent = coerce_amount(spent_this_month)
    limit = coerce_amount(daily_limit)

    days_in_month = calendar.monthrange(today.year, today.month)[1]
    days_remaining = days_in_month - today.day + 1

    remaining = budget - spent
    safe_daily = max(ZERO, remaining / days_remaining)
    expected_spent = budget / days_in_month * today.day

    if remaining < 0:
        status = SafeToSpendStatus.DANGER
    elif spent - expected_spent > budget * Decimal("0.1"):
        status = SafeToSpendStatus.WARNING
    elif safe_daily < limit * Decimal("0.5"):
        status = SafeToSpendStatus.WARNING
    else:
        status = SafeToSpendStatus.GOOD

    return SafeToSpend(
        monthly_budget=budget,
        spent_this_month=spent,
        remaining=remaining,
        days_in_month=days_in_month,
        days_remaining=days_remaining,
        expected_spent=expected_spent,
        safe_daily=safe_daily,
        status=status,
    )


def safe_to_spend_for_expenses(
    expenses: Iterable[Any],
    monthly_budget: Any,
    daily_limit: Any,
    today: Optional[date] = None,
) -> SafeToSpend:
    """``safe_to_spend`` with this month's spend taken from ``expenses``."""
    today = today or date.today()
    if isinstance(today, datetime):
        today = today.date()
    spent = total_expenses(expenses_in_month(expenses, today.year, today.month))
    return safe_to_spend(monthly_budget, spent, daily_limit, today)


def forecast_spending(
    expenses: Iterable[Any],
    days: int = 7,
    window: int = 14,
    trend_min_expenses: int = TREND_MIN_EXPENSES,
) -> ExpenseForecast:
    """Project the next ``days`` days from the average of the last ``window`` expenses."""
    items = list(expenses)
    if window <= 0:
        return ExpenseForecast(
            window=0, recent_total=ZERO, average_daily=ZERO, days=days, predicted_total=ZERO,
        )
    recent = items[-window:]
    recent_total = total_expenses(recent)
    average_daily = recent_total / window
    return ExpenseForecast(
        window=window,
        recent_total=recent_total,
        average_daily=average_daily,
        days=days,
        predicted_total=average_daily * days,
        trend_percent=spending_trend(items, min_expenses=trend_min_expenses),
    )


def monthly_report_stats(
    expenses: Iterable[Any],
    income_amount: Any,
    year: int,
    month: int,
    top: int = 3,
) -> MonthlyReportStats:
    month_items = expenses_in_month(expenses, year, month)
    spent = total_expenses(month_items)
    income = coerce_amount(income_amount)
    savings = income - spent
    savings_rate = float(savings / income * 100) if income > 0 else 0.0

    totals = category_totals(month_items)
    ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)

    return MonthlyReportStats(
        year=year,
        month=month,
        expense_count=len(month_items),
        total_expenses=spent,
        savings=savings,
        savings_rate=savings_rate,
        category_totals=totals,
        top_categories=ranked[:top],
    )
