"""
Data Models Package

This package contains all Pydantic models used in Money Manager.
Persisted records live in ``finance``, metric results in ``insights``
and the audit trail in ``audit``.
"""

from money_manager.models.finance import (
    Expense,
    ExpenseCategory,
    Frequency,
    GoalPriority,
    Income,
    IncomeEntry,
    RecurringExpense,
    SavingsGoal,
    StoredRecord,
    SummarySnapshot,
)
from money_manager.models.insights import (
    AnomalyReport,
    BehaviorProfile,
    BucketTotals,
    DailySpend,
    ExpenseForecast,
    GoalProgress,
    MonthlyReportStats,
    SafeToSpend,
    SafeToSpendStatus,
    SpendingStats,
    StabilityScore,
)
from money_manager.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance records
    "Expense",
    "ExpenseCategory",
    "Frequency",
    "GoalPriority",
    "Income",
    "IncomeEntry",
    "RecurringExpense",
    "SavingsGoal",
    "StoredRecord",
    "SummarySnapshot",
    # Metric results
    "AnomalyReport",
    "BehaviorProfile",
    "BucketTotals",
    "DailySpend",
    "ExpenseForecast",
    "GoalProgress",
    "MonthlyReportStats",
    "SafeToSpend",
    "SafeToSpendStatus",
    "SpendingStats",
    "StabilityScore",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
