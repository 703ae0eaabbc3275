"""
Result Models for the Metrics Layer

These are the plain records returned by the pure metric functions.
They are consumed by callers (dashboards, exports) and by the insight agent
when it writes prompts. None of them are persisted.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class SafeToSpendStatus(str, Enum):
    """Health of the month's spending relative to the budget."""
    GOOD = "good"
    WARNING = "warning"
    DANGER = "danger"


class BucketTotals(BaseModel):
    """Count and total of the expenses that fell into one bucket."""

    count: int = Field(default=0, ge=0)
    total: Decimal = Decimal("0")

    @property
    def average(self) -> Decimal:
        if self.count == 0:
            return Decimal("0")
        return self.total / self.count


class AnomalyReport(BaseModel):
    """
    Result of standard-deviation anomaly detection.

    When there is not enough data, ``sufficient_data`` is False,
    ``anomalies`` is empty and ``message`` explains why.
    """

    sufficient_data: bool
    message: str
    mean: float = 0.0
    std_dev: float = 0.0
    anomalies: list[Any] = Field(
        default_factory=list,
        description="The input expense records that were flagged"
    )

    @property
    def has_anomalies(self) -> bool:
        return bool(self.anomalies)


class StabilityScore(BaseModel):
    """Spending stability derived from the coefficient of variation."""

    score: int = Field(..., ge=0, le=100)
    sufficient_data: bool
    coefficient_of_variation: Optional[float] = None
    mean: Optional[float] = None
    explanation: str = ""


class SafeToSpend(BaseModel):
    """Daily spending ceiling for the rest of the calendar month."""

    monthly_budget: Decimal
    spent_this_month: Decimal
    remaining: Decimal
    days_in_month: int
    days_remaining: int
    expected_spent: Decimal = Field(
        ...,
        description="Spend expected by today at a linear rate"
    )
    safe_daily: Decimal = Field(
        ...,
        description="remaining / days_remaining, floored at zero"
    )
    status: SafeToSpendStatus

    @property
    def status_text(self) -> str:
        if self.safe_daily <= 0:
            return "Budget exceeded"
        if self.status == SafeToSpendStatus.GOOD:
            return "On track"
        if self.status == SafeToSpendStatus.WARNING:
            return "Watch spending"
        return "Over budget"

    @property
    def recommendation(self) -> str:
        if self.safe_daily <= 0:
            return "Consider reducing expenses"
        if self.status == SafeToSpendStatus.GOOD:
            return "You're doing well!"
        if self.status == SafeToSpendStatus.WARNING:
            return "Be mindful of purchases"
        return "Cut back on non-essentials"


class DailySpend(BaseModel):
    """One point of a daily spending series."""

    day: date
    amount: Decimal = Decimal("0")
    cumulative: Decimal = Decimal("0")


class SpendingStats(BaseModel):
    """Headline statistics shown on the analytics view."""

    total: Decimal
    days_spanned: int
    average_daily: Decimal
    highest: Optional[Any] = None
    lowest: Optional[Any] = None


class ExpenseForecast(BaseModel):
    """Naive projection from the most recent expenses."""

    window: int = Field(..., description="Number of recent expenses considered")
    recent_total: Decimal
    average_daily: Decimal
    days: int
    predicted_total: Decimal
    trend_percent: float = 0.0


class BehaviorProfile(BaseModel):
    """Which weekdays carry the most and least spending."""

    transaction_count: int
    average_transaction: float
    highest_day: str
    highest_day_total: Decimal
    lowest_day: str
    lowest_day_total: Decimal


class MonthlyReportStats(BaseModel):
    """Figures for one calendar month."""

    year: int
    month: int
    expense_count: int
    total_expenses: Decimal
    savings: Decimal
    savings_rate: float = Field(
        ...,
        description="Savings as a percentage of income (0 when there is no income)"
    )
    category_totals: dict[str, Decimal] = Field(default_factory=dict)
    top_categories: list[tuple[str, Decimal]] = Field(default_factory=list)


class GoalProgress(BaseModel):
    """How far a savings goal has come."""

    goal_id: int
    percent: float
    capped_percent: float
    remaining: Decimal
    days_left: Optional[int] = None
    is_complete: bool
