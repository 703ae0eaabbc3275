"""
Tests for the balance and summary reducers.

All inputs are built by hand; nothing here touches storage.
"""

import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal

from money_manager.metrics import (
    category_totals,
    coerce_amount,
    current_balance,
    daily_series,
    daily_totals,
    days_spanned,
    expected_summary_count,
    expenses_by_date,
    expenses_by_date_range,
    expenses_in_month,
    generate_summary,
    overshoot_days,
    parse_timestamp,
    should_generate_summary,
    spending_stats,
    total_expenses,
)
from money_manager.models.finance import Expense, ExpenseCategory, Income


def make_expense(amount, when, category="Food", expense_id=None):
    return Expense(
        id=expense_id or int(when.timestamp() * 1000),
        amount=Decimal(str(amount)),
        category=category,
        date=when,
    )


class TestCoercion:
    """Tests for amount and timestamp coercion."""

    def test_coerce_amount_handles_bad_input(self):
        """Malformed amounts become zero."""
        assert coerce_amount(None) == Decimal("0")
        assert coerce_amount("abc") == Decimal("0")
        assert coerce_amount(float("nan")) == Decimal("0")
        assert coerce_amount(True) == Decimal("0")
        assert coerce_amount(object()) == Decimal("0")

    def test_coerce_amount_parses_numbers(self):
        assert coerce_amount("1,200.50") == Decimal("1200.50")
        assert coerce_amount(0.1) == Decimal("0.1")
        assert coerce_amount(7) == Decimal("7")

    def test_parse_timestamp_variants(self):
        """Test dates, datetimes and ISO strings."""
        assert parse_timestamp(date(2024, 3, 1)) == datetime(2024, 3, 1)
        assert parse_timestamp("2024-03-01T10:15:00") == datetime(2024, 3, 1, 10, 15)
        assert parse_timestamp("2024-03-01T10:15:00Z").tzinfo is None
        assert parse_timestamp("not a date") is None
        assert parse_timestamp("") is None


class TestBalance:
    """Tests for totals and balance."""

    def test_total_expenses_skips_malformed_amounts(self):
        """Records from a backup may carry junk amounts."""
        expenses = [
            {"amount": 100},
            {"amount": "50.5"},
            {"amount": "n/a"},
            {},
        ]
        assert total_expenses(expenses) == Decimal("150.5")

    def test_empty_list_totals_zero(self):
        assert total_expenses([]) == Decimal("0")

    def test_current_balance(self):
        """Balance is income minus expenses."""
        expenses = [make_expense(100, datetime(2024, 3, 1, 10)) for _ in range(7)]
        assert current_balance(Decimal("1000"), expenses) == Decimal("300")

    def test_current_balance_can_be_negative(self):
        expenses = [make_expense(600, datetime(2024, 3, 1, 10))]
        assert current_balance(Decimal("500"), expenses) == Decimal("-100")


class TestDateFilters:
    """Tests for calendar-day filtering."""

    def setup_method(self):
        self.expenses = [
            make_expense(10, datetime(2024, 2, 29, 23, 59)),
            make_expense(20, datetime(2024, 3, 1, 0, 0)),
            make_expense(30, datetime(2024, 3, 1, 18, 30)),
            make_expense(40, datetime(2024, 3, 5, 9, 0)),
        ]

    def test_expenses_by_date_ignores_time(self):
        """Test that every expense on the same day is returned."""
        result = expenses_by_date(self.expenses, datetime(2024, 3, 1, 12, 0))
        assert [e.amount for e in result] == [Decimal("20"), Decimal("30")]

    def test_expenses_by_date_range_is_inclusive(self):
        """Both range ends are included, whatever the time of day."""
        result = expenses_by_date_range(self.expenses, date(2024, 3, 1), date(2024, 3, 5))
        assert [e.amount for e in result] == [Decimal("20"), Decimal("30"), Decimal("40")]

    def test_expenses_in_month(self):
        result = expenses_in_month(self.expenses, 2024, 2)
        assert len(result) == 1

    def test_mapping_records_are_filtered_too(self):
        """Test that plain dicts with ISO dates work."""
        records = [{"amount": 5, "date": "2024-03-01T08:00:00"}]
        assert expenses_by_date(records, date(2024, 3, 1)) == records


class TestAggregation:
    """Tests for category and daily aggregation."""

    def test_category_totals(self):
        """Test per-category sums with unknown labels folded into Other."""
        expenses = [
            {"amount": 100, "category": "Food"},
            {"amount": 50, "category": "Food"},
            {"amount": 20, "category": "Groceries"},
            {"amount": 30},
        ]
        totals = category_totals(expenses)
        assert totals == {"Food": Decimal("150"), "Other": Decimal("50")}

    def test_daily_totals(self):
        expenses = [
            make_expense(100, datetime(2024, 3, 1, 9)),
            make_expense(50, datetime(2024, 3, 1, 21)),
            make_expense(25, datetime(2024, 3, 2, 9)),
        ]
        assert daily_totals(expenses) == {
            date(2024, 3, 1): Decimal("150"),
            date(2024, 3, 2): Decimal("25"),
        }

    def test_days_spanned_minimum_is_one(self):
        """A single expense spans one day."""
        assert days_spanned([]) == 1
        assert days_spanned([make_expense(10, datetime(2024, 3, 1, 10))]) == 1

    def test_days_spanned_counts_both_ends(self):
        expenses = [
            make_expense(10, datetime(2024, 3, 1, 10)),
            make_expense(10, datetime(2024, 3, 3, 9)),
        ]
        assert days_spanned(expenses) == 3

    def test_daily_series_fills_gaps(self):
        """Days without spending appear with zero amounts."""
        expenses = [
            make_expense(100, datetime(2024, 3, 1, 9)),
            make_expense(40, datetime(2024, 3, 3, 9)),
        ]
        series = daily_series(expenses, days=3, today=date(2024, 3, 3))
        assert [point.day for point in series] == [
            date(2024, 3, 1), date(2024, 3, 2), date(2024, 3, 3),
        ]
        assert [point.amount for point in series] == [Decimal("100"), Decimal("0"), Decimal("40")]
        assert series[-1].cumulative == Decimal("140")

    def test_spending_stats(self):
        """Test highest, lowest and average over the spanned days."""
        low = make_expense(10, datetime(2024, 3, 1, 10))
        high = make_expense(90, datetime(2024, 3, 2, 10))
        stats = spending_stats([low, high])
        assert stats.total == Decimal("100")
        assert stats.days_spanned == 2
        assert stats.average_daily == Decimal("50")
        assert stats.highest is high
        assert stats.lowest is low

    def test_spending_stats_empty(self):
        stats = spending_stats([])
        assert stats.total == Decimal("0")
        assert stats.highest is None


class TestSummaryTiming:
    """Tests for when a periodic summary is due."""

    def test_not_due_before_thirty_days(self):
        """29 elapsed days is not a full period."""
        start = datetime(2024, 1, 1, 8, 0)
        assert expected_summary_count(start, datetime(2024, 1, 30, 8, 0)) == 0
        assert should_generate_summary(start, 0, datetime(2024, 1, 30, 8, 0)) is False

    def test_due_after_thirty_one_days(self):
        start = datetime(2024, 1, 1, 8, 0)
        assert should_generate_summary(start, 0, datetime(2024, 2, 1, 8, 0)) is True

    def test_not_due_once_generated(self):
        """Calling again with the updated count is harmless."""
        start = datetime(2024, 1, 1, 8, 0)
        now = datetime(2024, 2, 1, 8, 0)
        assert should_generate_summary(start, 1, now) is False

    def test_count_grows_with_elapsed_periods(self):
        start = datetime(2024, 1, 1)
        counts = [
            expected_summary_count(start, start + timedelta(days=days))
            for days in (0, 30, 59, 60, 95)
        ]
        assert counts == [0, 1, 1, 2, 3]

    def test_future_or_unreadable_start(self):
        """Test that a start date in the future or garbage means nothing is due."""
        now = datetime(2024, 1, 1)
        assert expected_summary_count(datetime(2024, 6, 1), now) == 0
        assert expected_summary_count("garbage", now) == 0

    def test_custom_period(self):
        start = datetime(2024, 1, 1)
        assert expected_summary_count(start, datetime(2024, 1, 15), period_days=7) == 2


class TestSummaryGeneration:
    """Tests for summary snapshots."""

    def test_generate_summary(self):
        """Test the figures captured in a snapshot."""
        income = Income(amount=Decimal("1000"), start_date=datetime(2024, 1, 1))
        expenses = [
            make_expense(150, datetime(2024, 1, 5, 9), "Food"),
            make_expense(100, datetime(2024, 1, 5, 20), "Food"),
            make_expense(50, datetime(2024, 1, 6, 9), "Bills"),
        ]
        now = datetime(2024, 2, 1, 12)

        snapshot = generate_summary(income, expenses, Decimal("200"), now=now)

        assert snapshot.date == now
        assert snapshot.total_income == Decimal("1000")
        assert snapshot.total_expenses == Decimal("300")
        assert snapshot.balance == Decimal("700")
        assert snapshot.category_data == {
            ExpenseCategory.FOOD.value: Decimal("250"),
            ExpenseCategory.BILLS.value: Decimal("50"),
        }
        assert snapshot.expense_count == 3
        assert snapshot.overshoot_days == 1
        assert snapshot.daily_average == Decimal("150")
        assert snapshot.period == "30 days"

    def test_generate_summary_without_expenses(self):
        income = Income(amount=Decimal("500"))
        snapshot = generate_summary(income, [], Decimal("200"))
        assert snapshot.daily_average == Decimal("0")
        assert snapshot.expense_count == 0

    def test_overshoot_requires_exceeding_limit(self):
        """A day exactly at the limit is not an overshoot."""
        expenses = [
            make_expense(200, datetime(2024, 1, 5, 9)),
            make_expense(201, datetime(2024, 1, 6, 9)),
        ]
        assert overshoot_days(expenses, Decimal("200")) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
