"""
Core Data Models for Money Manager

These models define the schemas for everything the tracker persists:
income, expenses, periodic summaries, savings goals and recurring expenses.
They are designed to:
1. Enforce positive amounts at the boundary
2. Be serializable as JSON text for the key-value store
3. Stay compatible with backups exported by the browser app

DESIGN DECISION: Persisted field names are camelCase on the wire
(``startDate``, ``categoryData``...) and snake_case in Python.
Backups produced by the browser app can be imported unchanged.

DESIGN DECISION: All timestamps are naive local datetimes.
Aware values (e.g. ISO strings ending in ``Z``) are converted to local time
on the way in so calendar-day comparisons never mix the two kinds.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def timestamp_id(moment: Optional[datetime] = None) -> int:
    """Millisecond timestamp used as a record id."""
    moment = moment or datetime.now()
    return int(moment.timestamp() * 1000)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    DESIGN DECISION: The category set is closed. Any label that is not one
    of these (free text, typos, blanks) resolves to OTHER, so aggregations
    over categories are always exhaustive.
    """
    FOOD = "Food"
    TRAVEL = "Travel"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    BILLS = "Bills"
    OTHER = "Other"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value.lower() == wanted or member.name.lower() == wanted:
                    return member
        return cls.OTHER


class Frequency(str, Enum):
    """How often a recurring expense falls due."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class GoalPriority(str, Enum):
    """Savings goal priority."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# =============================================================================
# BASE
# =============================================================================

class StoredRecord(BaseModel):
    """Base for every model persisted in the key-value store."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_store(self) -> dict:
        """JSON-compatible dict using the persisted (camelCase) field names."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# INCOME
# =============================================================================

class IncomeEntry(StoredRecord):
    """A single income deposit."""

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount received"
    )
    date: datetime = Field(
        default_factory=datetime.now,
        description="When the income was recorded"
    )

    @field_validator('date')
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return to_local_naive(v)


class Income(StoredRecord):
    """
    Running income total with its history.

    CRITICAL: ``amount`` is a denormalized running total. add/edit
    operations keep it equal to the sum of ``history``; it is not
    re-derived on read. ``update_income`` may set it directly.
    """

    amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Current total income"
    )
    start_date: datetime = Field(
        default_factory=datetime.now,
        description="Start of the tracking period (drives summary generation)"
    )
    history: list[IncomeEntry] = Field(default_factory=list)

    @field_validator('start_date')
    @classmethod
    def normalize_start_date(cls, v: datetime) -> datetime:
        return to_local_naive(v)

    @property
    def history_total(self) -> Decimal:
        """Sum of every history entry."""
        return sum((entry.amount for entry in self.history), Decimal("0"))


# =============================================================================
# EXPENSES
# =============================================================================

class Expense(StoredRecord):
    """
    A single expense.

    The id is the creation timestamp in milliseconds and survives edits.
    """

    id: int = Field(
        default_factory=timestamp_id,
        description="Creation timestamp (ms), unique per expense"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount spent"
    )
    category: ExpenseCategory = Field(
        default=ExpenseCategory.OTHER,
        description="Expense category"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    date: datetime = Field(
        default_factory=datetime.now,
        description="When the money was spent"
    )

    @field_validator('category', mode='before')
    @classmethod
    def coerce_category(cls, v) -> ExpenseCategory:
        """Unknown labels fall back to OTHER instead of failing validation."""
        if v is None:
            return ExpenseCategory.OTHER
        return ExpenseCategory(v)

    @field_validator('description')
    @classmethod
    def empty_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator('date')
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return to_local_naive(v)


# =============================================================================
# SUMMARIES
# =============================================================================

class SummarySnapshot(StoredRecord):
    """
    Snapshot of the finances over one summary period.

    Immutable once created; the history of snapshots is append-only.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    date: datetime = Field(
        ...,
        description="When the snapshot was generated"
    )
    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal
    category_data: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Total spent per category label"
    )
    expense_count: int = Field(ge=0)
    overshoot_days: int = Field(
        ge=0,
        description="Days whose total exceeded the spending limit"
    )
    daily_average: Decimal = Field(
        ...,
        description="Total expenses over distinct days with spending"
    )
    period: str = "30 days"

    @field_validator('date')
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return to_local_naive(v)


# =============================================================================
# PLANNING RECORDS
# =============================================================================

class SavingsGoal(StoredRecord):
    """A savings target the user is working towards."""

    id: int = Field(default_factory=timestamp_id)
    name: str = Field(..., min_length=1, max_length=100)
    target_amount: Decimal = Field(..., gt=0)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0)
    deadline: Optional[date] = None
    priority: GoalPriority = GoalPriority.MEDIUM

    @field_validator('deadline', mode='before')
    @classmethod
    def blank_deadline_is_none(cls, v):
        if v == "":
            return None
        if isinstance(v, datetime):
            return v.date()
        return v


class RecurringExpense(StoredRecord):
    """
    A bill or subscription that repeats on a fixed frequency.

    Marking it paid books a regular Expense and moves next_due_date forward.
    """

    id: int = Field(default_factory=timestamp_id)
    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., gt=0)
    category: ExpenseCategory = ExpenseCategory.BILLS
    frequency: Frequency = Frequency.MONTHLY
    start_date: date = Field(default_factory=date.today)
    next_due_date: Optional[date] = None
    remind_days_before: int = Field(default=3, ge=0)
    is_active: bool = True

    @field_validator('category', mode='before')
    @classmethod
    def coerce_category(cls, v) -> ExpenseCategory:
        if v is None:
            return ExpenseCategory.OTHER
        return ExpenseCategory(v)

    @field_validator('start_date', 'next_due_date', mode='before')
    @classmethod
    def accept_datetimes(cls, v):
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v
