"""AI Agents package."""

from money_manager.agents.insight_agent import FinanceInsightAgent, InsightResult

__all__ = [
    "FinanceInsightAgent",
    "InsightResult",
]
