"""
Metrics Package

Pure functions over expenses and income. Nothing here touches storage
or the AI boundary; callers pass plain records in and get numbers or
result models back.
"""

from money_manager.metrics.balance import (
    category_totals,
    coerce_amount,
    current_balance,
    daily_series,
    daily_totals,
    days_spanned,
    expenses_by_date,
    expenses_by_date_range,
    expenses_in_month,
    parse_timestamp,
    spending_stats,
    total_expenses,
)
from money_manager.metrics.summary import (
    SUMMARY_PERIOD_DAYS,
    expected_summary_count,
    generate_summary,
    overshoot_days,
    should_generate_summary,
)
from money_manager.metrics.insights import (
    behavior_profile,
    detect_anomalies,
    forecast_spending,
    group_by_day_of_week,
    group_by_time_of_day,
    monthly_report_stats,
    safe_to_spend,
    safe_to_spend_for_expenses,
    spending_trend,
    stability_score,
)
from money_manager.metrics.planning import (
    advance_due_date,
    days_until,
    goal_progress,
    monthly_recurring_cost,
    next_due_date,
)

__all__ = [
    # Balance and aggregation
    "category_totals",
    "coerce_amount",
    "current_balance",
    "daily_series",
    "daily_totals",
    "days_spanned",
    "expenses_by_date",
    "expenses_by_date_range",
    "expenses_in_month",
    "parse_timestamp",
    "spending_stats",
    "total_expenses",
    # Summaries
    "SUMMARY_PERIOD_DAYS",
    "expected_summary_count",
    "generate_summary",
    "overshoot_days",
    "should_generate_summary",
    # Insights
    "behavior_profile",
    "detect_anomalies",
    "forecast_spending",
    "group_by_day_of_week",
    "group_by_time_of_day",
    "monthly_report_stats",
    "safe_to_spend",
    "safe_to_spend_for_expenses",
    "spending_trend",
    "stability_score",
    # Planning
    "advance_due_date",
    "days_until",
    "goal_progress",
    "monthly_recurring_cost",
    "next_due_date",
]
