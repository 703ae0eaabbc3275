"""
Tests for Money Manager

Test strategy:
1. Unit tests for individual components (models, metrics)
2. Integration tests for the tracker (with an in-memory store)
3. No real API calls in tests (use fakes and httpx.MockTransport)
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from money_manager.models.finance import (
    Expense,
    ExpenseCategory,
    Frequency,
    Income,
    IncomeEntry,
    RecurringExpense,
    SavingsGoal,
    SummarySnapshot,
    timestamp_id,
)
from money_manager.models.insights import (
    SafeToSpend,
    SafeToSpendStatus,
)
from money_manager.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestExpenseModels:
    """Tests for expense and income Pydantic models."""

    def test_expense_creation(self):
        """Test Expense model creation."""
        expense = Expense(
            id=1,
            amount=Decimal("250.50"),
            category=ExpenseCategory.FOOD,
            description="Groceries",
            date=datetime(2024, 3, 1, 9, 30),
        )
        assert expense.amount == Decimal("250.50")
        assert expense.category == ExpenseCategory.FOOD

    def test_expense_rejects_zero_amount(self):
        """Test that zero and negative amounts are rejected."""
        with pytest.raises(ValueError):
            Expense(amount=Decimal("0"))
        with pytest.raises(ValueError):
            Expense(amount=Decimal("-10"))

    def test_expense_unknown_category_is_other(self):
        """Free-text categories fall back to Other."""
        expense = Expense(amount=10, category="Groceries")
        assert expense.category == ExpenseCategory.OTHER

    def test_expense_category_is_case_insensitive(self):
        """Test that category labels match regardless of case."""
        assert Expense(amount=10, category="food").category == ExpenseCategory.FOOD
        assert Expense(amount=10, category="BILLS").category == ExpenseCategory.BILLS

    def test_expense_blank_description_is_none(self):
        """Test that whitespace-only descriptions are dropped."""
        expense = Expense(amount=10, description="   ")
        assert expense.description is None

    def test_expense_aware_date_becomes_naive(self):
        """Test that UTC timestamps are stored as naive local time."""
        expense = Expense(amount=10, date=datetime(2024, 3, 1, 12, tzinfo=timezone.utc))
        assert expense.date.tzinfo is None

    def test_expense_reads_camel_case_backup(self):
        """Records exported by the web app load unchanged."""
        expense = Expense.model_validate({
            "id": 1709280000000,
            "amount": 99.5,
            "category": "Travel",
            "description": "Bus",
            "date": "2024-03-01T08:00:00.000Z",
        })
        assert expense.id == 1709280000000
        assert expense.amount == Decimal("99.5")
        assert expense.category == ExpenseCategory.TRAVEL

    def test_to_store_uses_camel_case(self):
        """Test that persisted field names are camelCase."""
        income = Income(amount=Decimal("1000"), start_date=datetime(2024, 1, 1))
        stored = income.to_store()
        assert "startDate" in stored
        assert "start_date" not in stored

    def test_income_history_total(self):
        """Test the sum over income history."""
        income = Income(
            amount=Decimal("300"),
            history=[IncomeEntry(amount=Decimal("100")), IncomeEntry(amount=Decimal("200"))],
        )
        assert income.history_total == Decimal("300")

    def test_timestamp_id_is_milliseconds(self):
        """Test that ids are millisecond timestamps."""
        moment = datetime(2024, 1, 1, 12, 0, 0)
        assert timestamp_id(moment) == int(moment.timestamp() * 1000)


class TestPlanningModels:
    """Tests for savings goals, recurring expenses and snapshots."""

    def test_savings_goal_blank_deadline(self):
        """An empty deadline string means no deadline."""
        goal = SavingsGoal(name="Laptop", target_amount=50000, deadline="")
        assert goal.deadline is None

    def test_savings_goal_requires_name(self):
        """Test that an empty goal name is rejected."""
        with pytest.raises(ValueError):
            SavingsGoal(name="", target_amount=100)

    def test_recurring_expense_defaults(self):
        """Test that recurring expenses default to monthly bills."""
        item = RecurringExpense(name="Rent", amount=15000)
        assert item.category == ExpenseCategory.BILLS
        assert item.frequency == Frequency.MONTHLY
        assert item.remind_days_before == 3
        assert item.is_active is True

    def test_recurring_expense_accepts_iso_datetime(self):
        """Due dates given as ISO timestamps keep only the date."""
        item = RecurringExpense.model_validate({
            "name": "Netflix",
            "amount": 649,
            "startDate": "2024-01-15",
            "nextDueDate": "2024-02-15T00:00:00.000Z",
        })
        assert item.next_due_date == date(2024, 2, 15)

    def test_summary_snapshot_is_frozen(self):
        """Snapshots cannot be changed once created."""
        snapshot = SummarySnapshot(
            date=datetime(2024, 2, 1),
            total_income=Decimal("1000"),
            total_expenses=Decimal("400"),
            balance=Decimal("600"),
            expense_count=4,
            overshoot_days=0,
            daily_average=Decimal("100"),
        )
        with pytest.raises(ValueError):
            snapshot.balance = Decimal("0")


class TestSafeToSpendModel:
    """Tests for the safe-to-spend display texts."""

    def _result(self, safe_daily, status):
        return SafeToSpend(
            monthly_budget=Decimal("3000"),
            spent_this_month=Decimal("0"),
            remaining=Decimal("3000"),
            days_in_month=30,
            days_remaining=30,
            expected_spent=Decimal("100"),
            safe_daily=Decimal(safe_daily),
            status=status,
        )

    def test_good_status_texts(self):
        result = self._result("100", SafeToSpendStatus.GOOD)
        assert result.status_text == "On track"
        assert result.recommendation == "You're doing well!"

    def test_exhausted_budget_texts(self):
        """A zero safe amount always reads as exceeded."""
        result = self._result("0", SafeToSpendStatus.DANGER)
        assert result.status_text == "Budget exceeded"
        assert result.recommendation == "Consider reducing expenses"


class TestAuditModels:
    """Tests for audit event models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            description="Test event",
        )
        assert event.event_type == AuditEventType.EXPENSE_ADDED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        correlation_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description="Something failed",
            correlation_id=correlation_id,
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "system_error"
        assert log_dict["severity"] == "error"
        assert log_dict["correlation_id"] == str(correlation_id)

    def test_audit_event_store_round_trip(self):
        """Test that stored events validate back into models."""
        event = AuditEventBuilder.expense_deleted(42)
        restored = AuditEvent.model_validate(event.to_store())
        assert restored.event_id == event.event_id
        assert restored.entity_id == "42"

    def test_audit_event_builder_expense_added(self):
        """Test AuditEventBuilder for expenses."""
        expense = Expense(id=7, amount=Decimal("120"), category="Food")
        event = AuditEventBuilder.expense_added(expense)
        assert event.event_type == AuditEventType.EXPENSE_ADDED
        assert event.entity_type == "expense"
        assert event.entity_id == "7"
        assert event.details["amount"] == "120"
        assert event.is_user_action is True

    def test_audit_event_builder_record_changed(self):
        """Test the shared builder for goals and recurring expenses."""
        event = AuditEventBuilder.record_changed(
            AuditEventType.RECURRING_EXPENSE_PAID,
            "recurring_expense",
            5,
            "Rent",
        )
        assert event.description == "Recurring expense paid: Rent"

    def test_data_reset_is_a_warning(self):
        """Resetting data is logged with warning severity."""
        event = AuditEventBuilder.data_event(AuditEventType.DATA_RESET, "All data reset")
        assert event.severity == AuditSeverity.WARNING


class TestExpenseCategories:
    """Tests for expense category enum."""

    def test_all_categories_exist(self):
        """Test that the six categories exist."""
        assert [c.value for c in ExpenseCategory] == [
            "Food", "Travel", "Shopping", "Entertainment", "Bills", "Other",
        ]

    def test_none_is_other(self):
        """Test that a missing category resolves to Other."""
        assert Expense(amount=1, category=None).category == ExpenseCategory.OTHER


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
