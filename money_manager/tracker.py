"""
Money Manager Tracker

This module ties together the repository, the metrics and the audit
trail. It defines every state-changing operation the app offers:
1. Income (add, set, correct a history entry)
2. Expenses (add, update, delete) and the daily spending limit
3. Periodic summaries
4. Savings goals and recurring expenses
5. Backup export, import and reset

DESIGN DECISION: The tracker enforces the boundaries:
- Amounts are validated before anything is written
- Every mutation is audited
- Summaries are appended only when a new period has elapsed

The metrics stay pure; the tracker is the only place that reads
state, calls them and writes results back.
"""

from collections.abc import Callable
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from money_manager.agents import FinanceInsightAgent
from money_manager.audit import AuditLogger, configure_logging
from money_manager.config import Settings, get_settings
from money_manager.metrics import (
    advance_due_date,
    current_balance,
    days_until,
    generate_summary,
    goal_progress,
    monthly_recurring_cost,
    next_due_date,
    should_generate_summary,
)
from money_manager.metrics.summary import SUMMARY_PERIOD_DAYS
from money_manager.models.audit import AuditEventBuilder, AuditEventType
from money_manager.models.finance import (
    Expense,
    ExpenseCategory,
    Frequency,
    GoalPriority,
    Income,
    IncomeEntry,
    RecurringExpense,
    SavingsGoal,
    SummarySnapshot,
    timestamp_id,
)
from money_manager.models.insights import GoalProgress
from money_manager.services.ai import (
    AIServiceError,
    FallbackTextGenerator,
    GeminiTextGenerator,
    GroqTextGenerator,
)
from money_manager.services.storage import (
    FinanceRepository,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
)


class MoneyManagerError(Exception):
    """Base exception for tracker operations."""
    pass


class InvalidAmountError(MoneyManagerError):
    """An amount was missing, non-numeric or out of range."""
    pass


class RecordNotFoundError(MoneyManagerError):
    """No record with the given id or index."""
    pass


class ImportDataError(MoneyManagerError):
    """A backup payload could not be imported."""
    pass


def parse_amount(value: Any, allow_zero: bool = False, field: str = "amount") -> Decimal:
    """
    Strictly parse a user-entered amount.

    Unlike the metrics layer, which reads bad numbers as 0, input is
    rejected here so nothing invalid is ever stored.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmountError(f"{field} is required")
    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, float):
            amount = Decimal(repr(value))
        else:
            amount = Decimal(str(value).strip().replace(",", ""))
    except InvalidOperation:
        raise InvalidAmountError(f"Invalid {field}: {value!r}")

    if not amount.is_finite():
        raise InvalidAmountError(f"Invalid {field}: {value!r}")
    if amount < 0 or (amount == 0 and not allow_zero):
        qualifier = "zero or more" if allow_zero else "a positive number"
        raise InvalidAmountError(f"{field} must be {qualifier}")
    return amount


def _as_datetime(value: Any, now: datetime) -> Any:
    """Dates without a time are stored at midnight; other values pass through."""
    if value is None:
        return now
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time())
    return value


def _unique_id(taken: set[int], now: datetime) -> int:
    """Creation timestamp in ms, bumped past any id already in use."""
    candidate = timestamp_id(now)
    while candidate in taken:
        candidate += 1
    return candidate


class MoneyManager:
    """
    Single-user finance tracker.

    Every read goes to the repository, so two trackers over one store
    see each other's writes. Not thread-safe.
    """

    def __init__(
        self,
        repository: FinanceRepository,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
        summary_period_days: int = SUMMARY_PERIOD_DAYS,
    ):
        self._repository = repository
        self._audit = audit_logger or AuditLogger(repository)
        self._clock = clock or datetime.now
        self._period_days = summary_period_days
        self._ensure_income()

    def _ensure_income(self) -> None:
        """
        Persist an empty income so the tracking period starts now, not on every read.

        An unreadable stored income is replaced the same way.
        """
        if not self._repository.has_income():
            self._repository.save_income(Income(start_date=self._now()))

    def _now(self) -> datetime:
        return self._clock()

    def _today(self) -> date:
        return self._now().date()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def repository(self) -> FinanceRepository:
        return self._repository

    @property
    def income(self) -> Income:
        return self._repository.get_income()

    @property
    def expenses(self) -> list[Expense]:
        return self._repository.get_expenses()

    @property
    def spending_limit(self) -> Decimal:
        return self._repository.get_spending_limit()

    @property
    def summary_history(self) -> list[SummarySnapshot]:
        return self._repository.get_summary_history()

    @property
    def savings_goals(self) -> list[SavingsGoal]:
        return self._repository.get_savings_goals()

    @property
    def recurring_expenses(self) -> list[RecurringExpense]:
        return self._repository.get_recurring_expenses()

    @property
    def dark_mode(self) -> bool:
        return self._repository.get_dark_mode()

    def current_balance(self) -> Decimal:
        return current_balance(self.income.amount, self.expenses)

    def get_expense(self, expense_id: int) -> Expense:
        for expense in self.expenses:
            if expense.id == expense_id:
                return expense
        raise RecordNotFoundError(f"Expense not found: {expense_id}")

    # -------------------------------------------------------------------------
    # Income
    # -------------------------------------------------------------------------

    def add_income(self, amount: Any) -> Income:
        """Append a deposit to the history and add it to the running total."""
        value = parse_amount(amount)
        income = self.income
        updated = Income(
            amount=income.amount + value,
            start_date=income.start_date,
            history=[*income.history, IncomeEntry(amount=value, date=self._now())],
        )
        self._repository.save_income(updated)
        self._audit.log_income_added(amount=value, new_total=updated.amount)
        return updated

    def update_income(self, amount: Any) -> Income:
        """Overwrite the running total. The history is left as it is."""
        value = parse_amount(amount, allow_zero=True)
        income = self.income
        updated = income.model_copy(update={"amount": value})
        self._repository.save_income(updated)
        self._audit.log_income_updated(old_total=income.amount, new_total=value)
        return updated

    def edit_income_history_item(self, index: int, amount: Any) -> Income:
        """
        Correct one history entry and shift the total by the difference.

        The total never goes below zero, even when it was set by hand
        to less than the history sums to.
        """
        value = parse_amount(amount)
        income = self.income
        if not 0 <= index < len(income.history):
            raise RecordNotFoundError(f"Income entry not found: {index}")

        old_entry = income.history[index]
        history = list(income.history)
        history[index] = old_entry.model_copy(update={"amount": value})
        new_total = max(Decimal("0"), income.amount + (value - old_entry.amount))

        updated = Income(amount=new_total, start_date=income.start_date, history=history)
        self._repository.save_income(updated)
        self._audit.log_income_history_edited(
            index=index,
            old_amount=old_entry.amount,
            new_amount=value,
        )
        return updated

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def add_expense(
        self,
        amount: Any,
        category: Any = ExpenseCategory.OTHER,
        description: Optional[str] = None,
        date: Any = None,
    ) -> Expense:
        value = parse_amount(amount)
        now = self._now()
        expenses = self.expenses

        expense = Expense(
            id=_unique_id({e.id for e in expenses}, now),
            amount=value,
            category=category,
            description=description,
            date=_as_datetime(date, now),
        )
        self._repository.save_expenses([*expenses, expense])
        self._audit.log_expense_added(expense)
        self.check_and_generate_summary()
        return expense

    def update_expense(
        self,
        expense_id: int,
        amount: Any = None,
        category: Any = None,
        description: Optional[str] = None,
        date: Any = None,
    ) -> Expense:
        """
        Replace the given fields of an expense. The id never changes.

        Fields left as None keep their value; pass "" to clear the
        description.
        """
        expenses = self.expenses
        for position, current in enumerate(expenses):
            if current.id == expense_id:
                break
        else:
            raise RecordNotFoundError(f"Expense not found: {expense_id}")

        changes = current.model_dump()
        if amount is not None:
            changes["amount"] = parse_amount(amount)
        if category is not None:
            changes["category"] = category
        if description is not None:
            changes["description"] = description
        if date is not None:
            changes["date"] = _as_datetime(date, self._now())
        changes["id"] = expense_id

        updated = Expense(**changes)
        expenses[position] = updated
        self._repository.save_expenses(expenses)
        self._audit.log_expense_updated(updated)
        self.check_and_generate_summary()
        return updated

    def delete_expense(self, expense_id: int) -> bool:
        """Remove an expense. Returns False if the id is unknown."""
        expenses = self.expenses
        remaining = [e for e in expenses if e.id != expense_id]
        if len(remaining) == len(expenses):
            return False

        self._repository.save_expenses(remaining)
        self._audit.log_expense_deleted(expense_id)
        self.check_and_generate_summary()
        return True

    def update_spending_limit(self, limit: Any) -> Decimal:
        value = parse_amount(limit, field="spending limit")
        old = self.spending_limit
        self._repository.save_spending_limit(value)
        self._audit.log(AuditEventBuilder.spending_limit_updated(old_limit=old, new_limit=value))
        return value

    def set_dark_mode(self, enabled: bool) -> None:
        self._repository.save_dark_mode(enabled)

    # -------------------------------------------------------------------------
    # Summaries
    # -------------------------------------------------------------------------

    def _append_summary(self, automatic: bool) -> SummarySnapshot:
        snapshot = generate_summary(
            self.income,
            self.expenses,
            self.spending_limit,
            now=self._now(),
            period_days=self._period_days,
        )
        history = [*self.summary_history, snapshot]
        self._repository.save_summary_history(history)
        self._audit.log_summary_generated(snapshot, summary_number=len(history), automatic=automatic)
        return snapshot

    def check_and_generate_summary(self) -> Optional[SummarySnapshot]:
        """
        Append one snapshot if a period has elapsed without one.

        At most one snapshot is added per call, so a long gap catches up
        one period at a time. Nothing happens while there are no expenses.
        """
        if not self.expenses:
            return None
        if not should_generate_summary(
            self.income.start_date,
            len(self.summary_history),
            now=self._now(),
            period_days=self._period_days,
        ):
            return None
        return self._append_summary(automatic=True)

    def generate_summary_now(self) -> SummarySnapshot:
        """Append a snapshot regardless of the schedule."""
        return self._append_summary(automatic=False)

    # -------------------------------------------------------------------------
    # Savings goals
    # -------------------------------------------------------------------------

    def _find_goal(self, goals: list[SavingsGoal], goal_id: int) -> int:
        for position, goal in enumerate(goals):
            if goal.id == goal_id:
                return position
        raise RecordNotFoundError(f"Savings goal not found: {goal_id}")

    def add_savings_goal(
        self,
        name: str,
        target_amount: Any,
        current_amount: Any = 0,
        deadline: Optional[date] = None,
        priority: GoalPriority = GoalPriority.MEDIUM,
    ) -> SavingsGoal:
        goals = self.savings_goals
        goal = SavingsGoal(
            id=_unique_id({g.id for g in goals}, self._now()),
            name=name,
            target_amount=parse_amount(target_amount, field="target amount"),
            current_amount=parse_amount(current_amount or 0, allow_zero=True, field="current amount"),
            deadline=deadline,
            priority=priority,
        )
        self._repository.save_savings_goals([*goals, goal])
        self._audit.log(AuditEventBuilder.record_changed(
            AuditEventType.SAVINGS_GOAL_ADDED,
            "savings_goal",
            goal.id,
            goal.name,
            details={"target_amount": str(goal.target_amount)},
        ))
        return goal

    def update_savings_goal(self, goal_id: int, **changes: Any) -> SavingsGoal:
        """Replace fields of a goal (name, target_amount, current_amount, deadline, priority)."""
        goals = self.savings_goals
        position = self._find_goal(goals, goal_id)

        if changes.get("target_amount") is not None:
            changes["target_amount"] = parse_amount(changes["target_amount"], field="target amount")
        if changes.get("current_amount") is not None:
            changes["current_amount"] = parse_amount(
                changes["current_amount"], allow_zero=True, field="current amount"
            )
        data = {**goals[position].model_dump(), **changes, "id": goal_id}

        goal = SavingsGoal(**data)
        goals[position] = goal
        self._repository.save_savings_goals(goals)
        self._audit.log(AuditEventBuilder.record_changed(
            AuditEventType.SAVINGS_GOAL_UPDATED,
            "savings_goal",
            goal.id,
            goal.name,
            details={"fields": sorted(changes)},
        ))
        return goal

    def add_goal_progress(self, goal_id: int, amount: Any) -> SavingsGoal:
        """Add a contribution to a goal's saved amount."""
        value = parse_amount(amount)
        goals = self.savings_goals
        position = self._find_goal(goals, goal_id)
        current = goals[position]
        return self.update_savings_goal(goal_id, current_amount=current.current_amount + value)

    def delete_savings_goal(self, goal_id: int) -> bool:
        goals = self.savings_goals
        remaining = [g for g in goals if g.id != goal_id]
        if len(remaining) == len(goals):
            return False

        removed = next(g for g in goals if g.id == goal_id)
        self._repository.save_savings_goals(remaining)
        self._audit.log(AuditEventBuilder.record_changed(
            AuditEventType.SAVINGS_GOAL_DELETED, "savings_goal", goal_id, removed.name
        ))
        return True

    def goal_progress(self, goal_id: int) -> GoalProgress:
        goals = self.savings_goals
        return goal_progress(goals[self._find_goal(goals, goal_id)], today=self._today())

    # -------------------------------------------------------------------------
    # Recurring expenses
    # -------------------------------------------------------------------------

    def _find_recurring(self, items: list[RecurringExpense], recurring_id: int) -> int:
        for position, item in enumerate(items):
            if item.id == recurring_id:
                return position
        raise RecordNotFoundError(f"Recurring expense not found: {recurring_id}")

    def _save_recurring(
        self,
        items: list[RecurringExpense],
        event_type: AuditEventType,
        item: RecurringExpense,
        details: Optional[dict] = None,
    ) -> None:
        self._repository.save_recurring_expenses(items)
        self._audit.log(AuditEventBuilder.record_changed(
            event_type, "recurring_expense", item.id, item.name, details=details
        ))

    def add_recurring_expense(
        self,
        name: str,
        amount: Any,
        category: Any = ExpenseCategory.BILLS,
        frequency: Frequency = Frequency.MONTHLY,
        start_date: Optional[date] = None,
        remind_days_before: int = 3,
        is_active: bool = True,
    ) -> RecurringExpense:
        today = self._today()
        items = self.recurring_expenses
        draft = RecurringExpense(
            id=_unique_id({r.id for r in items}, self._now()),
            name=name,
            amount=parse_amount(amount),
            category=category,
            frequency=frequency,
            start_date=start_date or today,
            remind_days_before=remind_days_before,
            is_active=is_active,
        )
        item = draft.model_copy(
            update={"next_due_date": next_due_date(draft.start_date, draft.frequency, today)}
        )
        self._save_recurring([*items, item], AuditEventType.RECURRING_EXPENSE_ADDED, item)
        return item

    def update_recurring_expense(self, recurring_id: int, **changes: Any) -> RecurringExpense:
        """
        Replace fields of a recurring expense.

        The next due date is recomputed from the (possibly new) start date
        and frequency, as it is when the expense is first added.
        """
        items = self.recurring_expenses
        position = self._find_recurring(items, recurring_id)
        if changes.get("amount") is not None:
            changes["amount"] = parse_amount(changes["amount"])

        data = {**items[position].model_dump(), **changes, "id": recurring_id}
        draft = RecurringExpense(**data)
        item = draft.model_copy(
            update={"next_due_date": next_due_date(draft.start_date, draft.frequency, self._today())}
        )
        items[position] = item
        self._save_recurring(
            items, AuditEventType.RECURRING_EXPENSE_UPDATED, item, details={"fields": sorted(changes)}
        )
        return item

    def toggle_recurring_active(self, recurring_id: int) -> RecurringExpense:
        items = self.recurring_expenses
        position = self._find_recurring(items, recurring_id)
        item = items[position].model_copy(update={"is_active": not items[position].is_active})
        items[position] = item
        self._save_recurring(
            items, AuditEventType.RECURRING_EXPENSE_UPDATED, item, details={"is_active": item.is_active}
        )
        return item

    def delete_recurring_expense(self, recurring_id: int) -> bool:
        items = self.recurring_expenses
        remaining = [r for r in items if r.id != recurring_id]
        if len(remaining) == len(items):
            return False
        removed = next(r for r in items if r.id == recurring_id)
        self._save_recurring(remaining, AuditEventType.RECURRING_EXPENSE_DELETED, removed)
        return True

    def mark_recurring_paid(self, recurring_id: int) -> tuple[Expense, RecurringExpense]:
        """
        Book the payment as a regular expense and move the due date on.

        Returns:
            (the new expense, the updated recurring expense)
        """
        items = self.recurring_expenses
        position = self._find_recurring(items, recurring_id)
        item = items[position]

        expense = self.add_expense(
            amount=item.amount,
            category=item.category,
            description=f"{item.name} (Recurring)",
        )

        due = item.next_due_date or next_due_date(item.start_date, item.frequency, self._today())
        item = item.model_copy(
            update={"next_due_date": advance_due_date(due, item.frequency, self._today())}
        )
        # add_expense may have rewritten the store; reread before saving
        items = self.recurring_expenses
        items[self._find_recurring(items, recurring_id)] = item
        self._save_recurring(
            items,
            AuditEventType.RECURRING_EXPENSE_PAID,
            item,
            details={"expense_id": expense.id, "next_due_date": item.next_due_date.isoformat()},
        )
        return expense, item

    def upcoming_recurring(self) -> list[RecurringExpense]:
        """Active recurring expenses due within their reminder window, soonest first."""
        today = self._today()
        due_soon = [
            r for r in self.recurring_expenses
            if r.is_active
            and r.next_due_date is not None
            and 0 <= days_until(r.next_due_date, today) <= r.remind_days_before
        ]
        return sorted(due_soon, key=lambda r: r.next_due_date)

    def monthly_recurring_cost(self) -> Decimal:
        return monthly_recurring_cost(self.recurring_expenses)

    # -------------------------------------------------------------------------
    # Backup
    # -------------------------------------------------------------------------

    def export_data(self) -> dict[str, Any]:
        payload = self._repository.export_data(now=self._now())
        self._audit.log(AuditEventBuilder.data_event(
            AuditEventType.DATA_EXPORTED,
            "Data exported",
            details={"expense_count": len(payload["expenses"])},
        ))
        return payload

    def import_data(self, payload: Any) -> list[str]:
        """
        Restore a backup produced by ``export_data`` (or by the web app).

        Raises:
            ImportDataError: If the payload is malformed; nothing is written
        """
        try:
            replaced = self._repository.import_data(payload)
        except ValueError as e:
            self._audit.log_error("import_failed", str(e))
            raise ImportDataError(f"Invalid backup: {e}") from e

        self._audit.log(AuditEventBuilder.data_event(
            AuditEventType.DATA_IMPORTED,
            "Data imported",
            details={"keys": replaced},
        ))
        return replaced

    def reset(self) -> None:
        """Erase all data. The reset itself is the first entry of the new audit log."""
        self._repository.reset()
        self._ensure_income()
        self._audit.log(AuditEventBuilder.data_event(AuditEventType.DATA_RESET, "All data reset"))


def create_app_components(
    use_file_storage: bool = True,
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStoreInterface] = None,
) -> tuple[MoneyManager, FinanceInsightAgent]:
    """
    Factory function to create all application components.

    Args:
        use_file_storage: Whether to persist to the configured JSON file.
                    Set to False for an in-memory session.
        settings: Settings to use instead of the cached ones
        store: Explicit key-value store (overrides use_file_storage)

    Returns:
        (money_manager, insight_agent)
    """
    settings = settings or get_settings()
    app_settings = settings.app
    storage_settings = settings.storage

    configure_logging(app_settings.log_level)

    if store is None:
        if use_file_storage:
            store = JsonFileKeyValueStore(storage_settings.data_path)
        else:
            store = InMemoryKeyValueStore()

    repository = FinanceRepository(
        store,
        default_spending_limit=storage_settings.default_spending_limit,
    )
    audit_logger = AuditLogger(repository)

    manager = MoneyManager(
        repository,
        audit_logger=audit_logger,
        summary_period_days=app_settings.summary_period_days,
    )

    # Only providers with credentials join the chain, Gemini first
    providers = []
    gemini_settings = settings.gemini
    if gemini_settings.api_key:
        providers.append(GeminiTextGenerator(gemini_settings))
    groq_settings = settings.groq
    if groq_settings.api_key:
        providers.append(GroqTextGenerator(groq_settings))

    def report_failure(error: AIServiceError) -> None:
        audit_logger.log_external_service_error(
            service=error.provider or "ai",
            error_message=str(error),
            error_code=error.kind.value,
        )

    insight_agent = FinanceInsightAgent(
        FallbackTextGenerator(providers, on_failure=report_failure),
        currency_symbol=app_settings.currency_symbol,
        audit_logger=audit_logger,
        anomaly_min_expenses=app_settings.anomaly_min_expenses,
        stability_min_expenses=app_settings.stability_min_expenses,
        behavior_min_expenses=app_settings.behavior_min_expenses,
        trend_min_expenses=app_settings.trend_min_expenses,
    )

    return manager, insight_agent
