"""
AI Insight Agent for Money Manager

CRITICAL BOUNDARIES:

   - CAN: Turn computed figures into readable advice
   - CANNOT: Compute, change or persist any figure
   - CANNOT: See raw records; it only receives the prompt text
   - MUST: Return the fixed explanation, without calling the model,
     when there is too little data for an insight

The LLM is a WRITER, not a CALCULATOR.
Every number in a prompt comes from the metrics package, so the same
data always produces the same prompt.
"""

from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

import structlog
from pydantic import BaseModel, Field

from money_manager.metrics import (
    behavior_profile,
    current_balance,
    detect_anomalies,
    forecast_spending,
    group_by_day_of_week,
    group_by_time_of_day,
    monthly_report_stats,
    safe_to_spend_for_expenses,
    spending_stats,
    stability_score,
    total_expenses,
)
from money_manager.metrics.balance import amount_of, expense_date, field_value
from money_manager.metrics.insights import (
    ANOMALY_MIN_EXPENSES,
    BEHAVIOR_MIN_EXPENSES,
    STABILITY_MIN_EXPENSES,
    TIME_OF_DAY_RANGES,
    TREND_MIN_EXPENSES,
)
from money_manager.models.audit import AuditEventBuilder
from money_manager.models.finance import Income
from money_manager.services.ai import TextGenerator

logger = structlog.get_logger(__name__)

NO_TRANSACTIONS_MESSAGE = (
    "You don't have enough transaction data yet. Start tracking your "
    "expenses to get personalized insights."
)
NO_PREDICTION_DATA_MESSAGE = (
    "Insufficient data for predictions. Please track expenses for at least "
    "2 weeks to get accurate forecasts."
)
INSUFFICIENT_BEHAVIOR_DATA = (
    "Need at least 10 transactions to analyze your spending behavior. "
    "Continue tracking to unlock this insight."
)


class InsightResult(BaseModel):
    """One generated (or fixed) insight."""

    kind: str
    text: str
    used_ai: bool = Field(
        description="False when a fixed message was returned instead of a model reply"
    )
    score: Optional[int] = Field(
        default=None,
        description="Stability score, only set for stability insights"
    )
    data: Optional[Any] = Field(
        default=None,
        description="The metric result the prompt was built from"
    )


class FinanceInsightAgent:
    """
    AI agent for the insights screen.

    RESPONSIBILITIES:
    - Compute the figures each insight needs (via the metrics package)
    - Phrase a prompt from those figures
    - Hand the prompt to the text generator

    Errors from the generator (AIServiceError) are not caught here;
    the caller decides how to show them.
    """

    def __init__(
        self,
        generator: TextGenerator,
        currency_symbol: str = "₹",
        audit_logger: Any = None,
        anomaly_min_expenses: int = ANOMALY_MIN_EXPENSES,
        stability_min_expenses: int = STABILITY_MIN_EXPENSES,
        behavior_min_expenses: int = BEHAVIOR_MIN_EXPENSES,
        trend_min_expenses: int = TREND_MIN_EXPENSES,
    ):
        self._generator = generator
        self._currency = currency_symbol
        self._audit = audit_logger
        self._anomaly_min = anomaly_min_expenses
        self._stability_min = stability_min_expenses
        self._behavior_min = behavior_min_expenses
        self._trend_min = trend_min_expenses

    @property
    def generator(self) -> TextGenerator:
        return self._generator

    def _money(self, value: Any) -> str:
        return f"{self._currency}{Decimal(value):.2f}"

    def _fixed(self, kind: str, text: str, **extra) -> InsightResult:
        return InsightResult(kind=kind, text=text, used_ai=False, **extra)

    async def _ask(self, kind: str, prompt: str, **extra) -> InsightResult:
        text = await self._generator.generate(prompt)
        logger.info("insight_generated", kind=kind, prompt_chars=len(prompt))
        if self._audit is not None:
            self._audit.log(AuditEventBuilder.insight_generated(insight=kind, used_ai=True))
        return InsightResult(kind=kind, text=text, used_ai=True, **extra)

    # -------------------------------------------------------------------------
    # Insights
    # -------------------------------------------------------------------------

    async def financial_summary(
        self,
        income: Income,
        expenses: Sequence[Any],
    ) -> InsightResult:
        stats = spending_stats(expenses)
        balance = current_balance(income.amount, expenses)

        prompt = f"""Analyze this financial situation and provide helpful insights:

Income: {self._money(income.amount)}
Total Expenses: {self._money(stats.total)}
Current Balance: {self._money(balance)}
Number of Transactions: {len(expenses)}
Average Daily Spend: {self._money(stats.average_daily)}

Provide a clear 3-4 sentence summary of their financial health with actionable advice."""

        return await self._ask("financial_summary", prompt, data=stats)

    async def overspending_patterns(self, expenses: Sequence[Any]) -> InsightResult:
        if not expenses:
            return self._fixed("overspending_patterns", NO_TRANSACTIONS_MESSAGE)

        average = total_expenses(expenses) / len(expenses)
        by_day = group_by_day_of_week(expenses)
        by_time = group_by_time_of_day(expenses)

        day_lines = "\n".join(
            f"{day}: {bucket.count} transactions, {self._money(bucket.total)} total, "
            f"{self._money(bucket.average)} avg"
            for day, bucket in by_day.items()
        )
        time_lines = "\n".join(
            f"{label} ({TIME_OF_DAY_RANGES[label]}): {bucket.count} transactions, "
            f"{self._money(bucket.total)} total"
            for label, bucket in by_time.items()
        )

        prompt = f"""Analyze these spending patterns and identify areas for improvement:

Average Transaction: {self._money(average)}

Spending by Day of Week:
{day_lines}

Spending by Time of Day:
{time_lines}

Identify key spending patterns and provide 3-4 actionable recommendations."""

        return await self._ask("overspending_patterns", prompt)

    async def predict_expenses(
        self,
        expenses: Sequence[Any],
        days: int = 7,
    ) -> InsightResult:
        if not expenses:
            return self._fixed("expense_prediction", NO_PREDICTION_DATA_MESSAGE)

        forecast = forecast_spending(expenses, days=days, trend_min_expenses=self._trend_min)
        direction = "increasing" if forecast.trend_percent > 0 else "decreasing"

        prompt = f"""Based on this spending pattern, provide a forecast:

Last {forecast.window} days total: {self._money(forecast.recent_total)}
Average daily spend: {self._money(forecast.average_daily)}
Spending trend: {direction} by {abs(forecast.trend_percent):.1f}% per week

Predict spending for the next {days} days with practical insights. 2-3 sentences."""

        return await self._ask("expense_prediction", prompt, data=forecast)

    async def safe_to_spend(
        self,
        expenses: Sequence[Any],
        monthly_budget: Any,
        daily_limit: Any,
        today: Optional[date] = None,
    ) -> InsightResult:
        result = safe_to_spend_for_expenses(expenses, monthly_budget, daily_limit, today)

        prompt = f"""Calculate safe spending amount:

Monthly Budget: {self._money(result.monthly_budget)}
Already Spent: {self._money(result.spent_this_month)}
Remaining Budget: {self._money(result.remaining)}
Days Remaining: {result.days_remaining}
Safe Daily Amount: {self._money(result.safe_daily)}

Provide clear guidance on safe spending in 2-3 sentences."""

        return await self._ask("safe_to_spend", prompt, data=result)

    async def anomalies(self, expenses: Sequence[Any]) -> InsightResult:
        report = detect_anomalies(expenses, min_expenses=self._anomaly_min)
        if not report.sufficient_data or not report.has_anomalies:
            return self._fixed("anomalies", report.message, data=report)

        lines = []
        for e in report.anomalies:
            when = expense_date(e)
            day = when.strftime("%d %b %Y") if when else "unknown date"
            description = field_value(e, "description") or "No description"
            lines.append(f"{self._money(amount_of(e))} on {day} - {description}")
        unusual = "\n".join(lines)

        prompt = f"""Identify unusual transactions:

Average Transaction: {self._money(report.mean)}
Standard Deviation: {self._money(report.std_dev)}

Unusual Transactions:
{unusual}

Explain why these transactions are unusual and provide recommendations. 2-3 sentences."""

        return await self._ask("anomalies", prompt, data=report)

    async def stability(self, expenses: Sequence[Any]) -> InsightResult:
        result = stability_score(expenses, min_expenses=self._stability_min)
        if not result.sufficient_data:
            return self._fixed("stability", result.explanation, score=result.score, data=result)

        prompt = f"""Analyze financial stability:

Stability Score: {result.score}/100
Average Transaction: {self._money(result.mean)}
Variation: {result.coefficient_of_variation * 100:.1f}%

Explain what this score means and provide 2-3 actionable tips to improve financial stability."""

        return await self._ask("stability", prompt, score=result.score, data=result)

    async def behavior(self, expenses: Sequence[Any]) -> InsightResult:
        profile = behavior_profile(expenses, min_expenses=self._behavior_min)
        if profile is None:
            return self._fixed("behavior", INSUFFICIENT_BEHAVIOR_DATA)

        prompt = f"""Analyze spending behavior profile:

Total Transactions: {profile.transaction_count}
Average Transaction: {self._money(profile.average_transaction)}
Highest Spending Day: {profile.highest_day} ({self._money(profile.highest_day_total)})
Lowest Spending Day: {profile.lowest_day} ({self._money(profile.lowest_day_total)})

Provide a spending personality profile with strengths and areas for improvement. 3-4 sentences."""

        return await self._ask("behavior", prompt, data=profile)

    async def chat(
        self,
        question: str,
        income: Income,
        expenses: Sequence[Any],
    ) -> InsightResult:
        question = (question or "").strip()
        if not question:
            raise ValueError("Question must not be empty")

        spent = total_expenses(expenses)
        prompt = f"""Answer this financial question professionally:

Question: "{question}"

Financial Context:
- Income: {self._money(income.amount)}
- Total Expenses: {self._money(spent)}
- Current Balance: {self._money(income.amount - spent)}
- Total Transactions: {len(expenses)}

Provide a clear, helpful answer with actionable advice. 2-4 sentences."""

        return await self._ask("chat", prompt)

    async def monthly_report(
        self,
        income: Income,
        expenses: Sequence[Any],
        year: int,
        month: int,
    ) -> InsightResult:
        stats = monthly_report_stats(expenses, income.amount, year, month)
        month_name = datetime(year, month, 1).strftime("%B %Y")
        if stats.expense_count == 0:
            return self._fixed(
                "monthly_report",
                f"No expenses were recorded in {month_name}, so there is nothing to report yet.",
                data=stats,
            )

        categories = "\n".join(
            f"- {label}: {self._money(total)}" for label, total in stats.top_categories
        )
        prompt = f"""Write a short monthly financial report for {month_name}:

Income: {self._money(income.amount)}
Total Expenses: {self._money(stats.total_expenses)}
Savings: {self._money(stats.savings)}
Savings Rate: {stats.savings_rate:.1f}%
Number of Transactions: {stats.expense_count}

Top Categories:
{categories}

Summarize the month, call out the biggest spending areas and give 2-3 goals for next month."""

        return await self._ask("monthly_report", prompt, data=stats)
