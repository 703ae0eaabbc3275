"""
Finance Repository

Typed access to the named values the tracker persists. The key names match
the browser app's localStorage keys so its exported data and this store
share one vocabulary.

Reads never fail: a value that cannot be deserialised falls back to its
default and a warning is logged. Individual records that fail validation
inside a list are skipped the same way. Writes propagate StorageError.
"""

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from money_manager.metrics.balance import coerce_amount
from money_manager.models.audit import AuditEvent
from money_manager.models.finance import (
    Expense,
    Income,
    RecurringExpense,
    SavingsGoal,
    SummarySnapshot,
)
from money_manager.services.storage.interface import (
    KeyValueStoreInterface,
    SerializationError,
)

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

INCOME_KEY = "userIncome"
EXPENSES_KEY = "dailyExpenses"
SPENDING_LIMIT_KEY = "spendingLimit"
SUMMARY_HISTORY_KEY = "summaryHistory"
SAVINGS_GOALS_KEY = "savingsGoals"
RECURRING_EXPENSES_KEY = "recurringExpenses"
DARK_MODE_KEY = "darkMode"
AUDIT_LOG_KEY = "auditLog"

DEFAULT_SPENDING_LIMIT = Decimal("200")
MAX_AUDIT_EVENTS = 1000


class FinanceRepository:
    """
    Read and write the tracker's state in a key-value store.

    The repository holds no state of its own; every call goes to the store.
    """

    def __init__(
        self,
        store: KeyValueStoreInterface,
        default_spending_limit: Any = DEFAULT_SPENDING_LIMIT,
        clock: Callable[[], datetime] = datetime.now,
        max_audit_events: int = MAX_AUDIT_EVENTS,
    ):
        self._store = store
        self._default_spending_limit = coerce_amount(default_spending_limit)
        self._clock = clock
        self._max_audit_events = max_audit_events

    @property
    def store(self) -> KeyValueStoreInterface:
        return self._store

    # -------------------------------------------------------------------------
    # Raw access
    # -------------------------------------------------------------------------

    def _read(self, key: str) -> Any:
        try:
            return self._store.get(key)
        except SerializationError as e:
            logger.warning("stored_value_unreadable", key=key, error=str(e))
            return None

    def _read_model(self, key: str, model: type[ModelT]) -> Optional[ModelT]:
        raw = self._read(key)
        if raw is None:
            return None
        try:
            return model.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                "stored_value_invalid",
                key=key,
                error_count=e.error_count(),
            )
            return None

    def _read_list(self, key: str, model: type[ModelT]) -> list[ModelT]:
        raw = self._read(key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("stored_value_not_a_list", key=key)
            return []

        records = []
        for position, item in enumerate(raw):
            try:
                records.append(model.model_validate(item))
            except ValidationError as e:
                logger.warning(
                    "stored_record_skipped",
                    key=key,
                    position=position,
                    error_count=e.error_count(),
                )
        return records

    def _write_list(self, key: str, records: list[Any]) -> None:
        self._store.set(key, [record.to_store() for record in records])

    # -------------------------------------------------------------------------
    # Named values
    # -------------------------------------------------------------------------

    def get_income(self) -> Income:
        income = self._read_model(INCOME_KEY, Income)
        if income is None:
            return Income(start_date=self._clock())
        return income

    def has_income(self) -> bool:
        """True only when a readable income record is stored."""
        return self._read_model(INCOME_KEY, Income) is not None

    def save_income(self, income: Income) -> None:
        self._store.set(INCOME_KEY, income.to_store())

    def get_expenses(self) -> list[Expense]:
        return self._read_list(EXPENSES_KEY, Expense)

    def save_expenses(self, expenses: list[Expense]) -> None:
        self._write_list(EXPENSES_KEY, expenses)

    def get_spending_limit(self) -> Decimal:
        raw = self._read(SPENDING_LIMIT_KEY)
        limit = coerce_amount(raw)
        if limit <= 0:
            return self._default_spending_limit
        return limit

    def save_spending_limit(self, limit: Decimal) -> None:
        self._store.set(SPENDING_LIMIT_KEY, str(limit))

    def get_summary_history(self) -> list[SummarySnapshot]:
        return self._read_list(SUMMARY_HISTORY_KEY, SummarySnapshot)

    def save_summary_history(self, history: list[SummarySnapshot]) -> None:
        self._write_list(SUMMARY_HISTORY_KEY, history)

    def get_savings_goals(self) -> list[SavingsGoal]:
        return self._read_list(SAVINGS_GOALS_KEY, SavingsGoal)

    def save_savings_goals(self, goals: list[SavingsGoal]) -> None:
        self._write_list(SAVINGS_GOALS_KEY, goals)

    def get_recurring_expenses(self) -> list[RecurringExpense]:
        return self._read_list(RECURRING_EXPENSES_KEY, RecurringExpense)

    def save_recurring_expenses(self, recurring: list[RecurringExpense]) -> None:
        self._write_list(RECURRING_EXPENSES_KEY, recurring)

    def get_dark_mode(self) -> bool:
        return self._read(DARK_MODE_KEY) is True

    def save_dark_mode(self, enabled: bool) -> None:
        self._store.set(DARK_MODE_KEY, bool(enabled))

    # -------------------------------------------------------------------------
    # Audit log (append-only, oldest entries dropped past the cap)
    # -------------------------------------------------------------------------

    def append_audit_event(self, event: AuditEvent) -> None:
        raw = self._read(AUDIT_LOG_KEY)
        events = raw if isinstance(raw, list) else []
        events.append(event.to_store())
        self._store.set(AUDIT_LOG_KEY, events[-self._max_audit_events:])

    def get_audit_events(self, limit: Optional[int] = None) -> list[AuditEvent]:
        """Stored audit events, newest first."""
        events = self._read_list(AUDIT_LOG_KEY, AuditEvent)
        events.reverse()
        return events[:limit] if limit is not None else events

    # -------------------------------------------------------------------------
    # Backup
    # -------------------------------------------------------------------------

    def export_data(self, now: Optional[datetime] = None) -> dict[str, Any]:
        """
        Snapshot of the user's data in the backup layout.

        The first four keys and ``exportDate`` are what the browser app
        exports; savings goals and recurring expenses are added alongside.
        """
        return {
            "income": self.get_income().to_store(),
            "expenses": [e.to_store() for e in self.get_expenses()],
            "spendingLimit": str(self.get_spending_limit()),
            "summaryHistory": [s.to_store() for s in self.get_summary_history()],
            "savingsGoals": [g.to_store() for g in self.get_savings_goals()],
            "recurringExpenses": [r.to_store() for r in self.get_recurring_expenses()],
            "exportDate": (now or self._clock()).isoformat(),
        }

    def import_data(self, payload: dict[str, Any]) -> list[str]:
        """
        Restore a backup.

        Every present section is validated before anything is written, so a
        bad payload leaves the store untouched. Absent sections are kept.

        Returns:
            The store keys that were replaced

        Raises:
            ValueError: If the payload or any section is malformed
                (pydantic's ValidationError is a ValueError)
        """
        if not isinstance(payload, dict):
            raise ValueError("Backup must be a JSON object")

        staged: dict[str, Any] = {}

        if payload.get("income"):
            staged[INCOME_KEY] = Income.model_validate(payload["income"]).to_store()
        if payload.get("expenses") is not None:
            staged[EXPENSES_KEY] = self._validate_section(payload["expenses"], Expense)
        if payload.get("spendingLimit") is not None:
            limit = coerce_amount(payload["spendingLimit"])
            if limit <= 0:
                raise ValueError("spendingLimit must be a positive number")
            staged[SPENDING_LIMIT_KEY] = str(limit)
        if payload.get("summaryHistory") is not None:
            staged[SUMMARY_HISTORY_KEY] = self._validate_section(
                payload["summaryHistory"], SummarySnapshot
            )
        if payload.get("savingsGoals") is not None:
            staged[SAVINGS_GOALS_KEY] = self._validate_section(
                payload["savingsGoals"], SavingsGoal
            )
        if payload.get("recurringExpenses") is not None:
            staged[RECURRING_EXPENSES_KEY] = self._validate_section(
                payload["recurringExpenses"], RecurringExpense
            )

        for key, value in staged.items():
            self._store.set(key, value)
        return list(staged)

    @staticmethod
    def _validate_section(section: Any, model: type[ModelT]) -> list[dict]:
        if not isinstance(section, list):
            raise ValueError(f"{model.__name__} section must be a list")
        return [model.model_validate(item).to_store() for item in section]

    def reset(self) -> None:
        """Delete everything, including preferences and the audit log."""
        self._store.clear()
