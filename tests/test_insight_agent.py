"""
Tests for the insight agent.

A recording generator stands in for the AI providers, so the tests check
which prompts are sent and when a fixed message is returned instead.
"""

import asyncio
import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal

from money_manager.agents import FinanceInsightAgent
from money_manager.agents.insight_agent import (
    INSUFFICIENT_BEHAVIOR_DATA,
    NO_PREDICTION_DATA_MESSAGE,
    NO_TRANSACTIONS_MESSAGE,
)
from money_manager.metrics.insights import (
    INSUFFICIENT_ANOMALY_DATA,
    INSUFFICIENT_STABILITY_DATA,
    NO_ANOMALIES_FOUND,
)
from money_manager.models.audit import AuditEventType
from money_manager.models.finance import Expense, Income
from money_manager.services.ai import AIErrorKind, AIServiceError, TextGenerator


def run(coro):
    return asyncio.run(coro)


class RecordingGenerator(TextGenerator):
    name = "recording"

    def __init__(self, reply="Generated insight.", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class RecordingAudit:
    def __init__(self):
        self.events = []

    def log(self, event):
        self.events.append(event)
        return True


def series(amounts, start=datetime(2024, 3, 1, 10), descriptions=None):
    descriptions = descriptions or {}
    return [
        Expense(
            id=index + 1,
            amount=Decimal(str(amount)),
            category="Food",
            description=descriptions.get(index),
            date=start + timedelta(days=index),
        )
        for index, amount in enumerate(amounts)
    ]


def make_agent(**kwargs):
    generator = RecordingGenerator()
    agent = FinanceInsightAgent(generator, currency_symbol="₹", **kwargs)
    return agent, generator


class TestFinancialSummary:
    """Tests for the financial summary insight."""

    def test_prompt_contains_computed_figures(self):
        agent, generator = make_agent()
        income = Income(amount=Decimal("1000"))

        result = run(agent.financial_summary(income, series([100] * 7)))

        assert result.used_ai is True
        assert result.text == "Generated insight."
        prompt = generator.prompts[0]
        assert "Income: ₹1000.00" in prompt
        assert "Total Expenses: ₹700.00" in prompt
        assert "Current Balance: ₹300.00" in prompt
        assert "Number of Transactions: 7" in prompt
        assert "Average Daily Spend: ₹100.00" in prompt

    def test_same_data_same_prompt(self):
        """Prompts are deterministic for identical inputs."""
        agent, generator = make_agent()
        income = Income(amount=Decimal("1000"))
        run(agent.financial_summary(income, series([120, 80, 45])))
        run(agent.financial_summary(income, series([120, 80, 45])))
        assert generator.prompts[0] == generator.prompts[1]

    def test_generated_insight_is_audited(self):
        audit = RecordingAudit()
        agent, _ = make_agent(audit_logger=audit)
        run(agent.financial_summary(Income(amount=Decimal("10")), []))
        assert [e.event_type for e in audit.events] == [AuditEventType.INSIGHT_GENERATED]
        assert audit.events[0].entity_id == "financial_summary"

    def test_provider_errors_propagate(self):
        generator = RecordingGenerator(error=AIServiceError(AIErrorKind.UNAVAILABLE, "down"))
        agent = FinanceInsightAgent(generator)
        with pytest.raises(AIServiceError):
            run(agent.financial_summary(Income(amount=Decimal("10")), []))


class TestFixedMessages:
    """Insights that need no model call when data is missing."""

    def test_overspending_without_expenses(self):
        agent, generator = make_agent()
        result = run(agent.overspending_patterns([]))
        assert result.used_ai is False
        assert result.text == NO_TRANSACTIONS_MESSAGE
        assert generator.prompts == []

    def test_prediction_without_expenses(self):
        agent, generator = make_agent()
        result = run(agent.predict_expenses([]))
        assert result.text == NO_PREDICTION_DATA_MESSAGE
        assert generator.prompts == []

    def test_anomalies_with_few_expenses(self):
        agent, generator = make_agent()
        result = run(agent.anomalies(series([100, 200])))
        assert result.text == INSUFFICIENT_ANOMALY_DATA
        assert generator.prompts == []

    def test_uniform_spending_has_no_anomalies(self):
        agent, generator = make_agent()
        result = run(agent.anomalies(series([100] * 7)))
        assert result.text == NO_ANOMALIES_FOUND
        assert result.used_ai is False
        assert generator.prompts == []

    def test_stability_with_few_expenses(self):
        """Too little data gives the default score and the fixed text."""
        agent, generator = make_agent()
        result = run(agent.stability(series([100] * 3)))
        assert result.score == 50
        assert result.text == INSUFFICIENT_STABILITY_DATA
        assert generator.prompts == []

    def test_behavior_with_few_expenses(self):
        agent, generator = make_agent()
        result = run(agent.behavior(series([100] * 9)))
        assert result.text == INSUFFICIENT_BEHAVIOR_DATA
        assert generator.prompts == []

    def test_monthly_report_without_expenses(self):
        agent, generator = make_agent()
        result = run(agent.monthly_report(Income(amount=Decimal("1000")), [], 2024, 3))
        assert "March 2024" in result.text
        assert result.used_ai is False
        assert generator.prompts == []

    def test_thresholds_are_configurable(self):
        agent, generator = make_agent(behavior_min_expenses=2)
        result = run(agent.behavior(series([100, 50])))
        assert result.used_ai is True
        assert len(generator.prompts) == 1


class TestModelPrompts:
    """Insights that call the model."""

    def test_anomaly_prompt_lists_flagged_expenses(self):
        agent, generator = make_agent()
        expenses = series([100] * 9 + [1000], descriptions={9: "Laptop"})

        result = run(agent.anomalies(expenses))

        assert result.used_ai is True
        assert result.data.anomalies == [expenses[-1]]
        prompt = generator.prompts[0]
        assert "Average Transaction: ₹190.00" in prompt
        assert "Standard Deviation: ₹270.00" in prompt
        assert "₹1000.00 on 10 Mar 2024 - Laptop" in prompt

    def test_stability_prompt(self):
        agent, generator = make_agent()
        result = run(agent.stability(series([100] * 7)))
        assert result.score == 100
        assert "Stability Score: 100/100" in generator.prompts[0]
        assert "Variation: 0.0%" in generator.prompts[0]

    def test_overspending_prompt_has_all_buckets(self):
        agent, generator = make_agent()
        run(agent.overspending_patterns(series([100, 200])))
        prompt = generator.prompts[0]
        assert "Average Transaction: ₹150.00" in prompt
        assert "Sunday: 0 transactions" in prompt
        assert "Night (10PM-6AM): 0 transactions" in prompt
        assert "Morning (6AM-12PM): 2 transactions, ₹300.00 total" in prompt

    def test_prediction_prompt(self):
        agent, generator = make_agent()
        result = run(agent.predict_expenses(series([70] * 14)))
        prompt = generator.prompts[0]
        assert "Last 14 days total: ₹980.00" in prompt
        assert "Average daily spend: ₹70.00" in prompt
        assert "decreasing by 0.0% per week" in prompt
        assert result.data.predicted_total == Decimal("490")

    def test_safe_to_spend_prompt(self):
        agent, generator = make_agent()
        expenses = [Expense(amount=900, date=datetime(2024, 4, 2, 9))]
        result = run(agent.safe_to_spend(expenses, 3000, 100, today=date(2024, 4, 10)))
        prompt = generator.prompts[0]
        assert "Remaining Budget: ₹2100.00" in prompt
        assert "Days Remaining: 21" in prompt
        assert "Safe Daily Amount: ₹100.00" in prompt
        assert result.data.safe_daily == Decimal("100")

    def test_behavior_prompt(self):
        agent, generator = make_agent()
        # 2024-03-03 is a Sunday
        expenses = series([10] * 6 + [500] + [10] * 3, start=datetime(2024, 3, 3, 9))
        run(agent.behavior(expenses))
        assert "Highest Spending Day: Saturday (₹500.00)" in generator.prompts[0]

    def test_chat_includes_question(self):
        agent, generator = make_agent()
        income = Income(amount=Decimal("5000"))
        run(agent.chat("  Can I afford a holiday?  ", income, series([1000])))
        prompt = generator.prompts[0]
        assert 'Question: "Can I afford a holiday?"' in prompt
        assert "- Current Balance: ₹4000.00" in prompt

    def test_chat_rejects_empty_question(self):
        agent, generator = make_agent()
        with pytest.raises(ValueError):
            run(agent.chat("   ", Income(), []))
        assert generator.prompts == []

    def test_monthly_report_prompt(self):
        agent, generator = make_agent()
        expenses = [
            Expense(amount=300, category="Food", date=datetime(2024, 3, 2, 9)),
            Expense(amount=500, category="Bills", date=datetime(2024, 3, 5, 9)),
        ]
        result = run(agent.monthly_report(Income(amount=Decimal("2000")), expenses, 2024, 3))
        prompt = generator.prompts[0]
        assert "for March 2024" in prompt
        assert "Savings Rate: 60.0%" in prompt
        assert "- Bills: ₹500.00" in prompt
        assert result.data.expense_count == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
