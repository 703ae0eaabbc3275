"""
Audit Models for Money Manager

Every user mutation of the persisted finances is logged for audit purposes.
This provides:
1. Traceability of how a balance came to be what it is
2. Debugging information when an AI call or a write fails
3. A history the user can review after importing a backup

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from money_manager.models.finance import Expense, SummarySnapshot


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every mutation exposed by the tracker has its own event type.
    """
    # Income
    INCOME_ADDED = "income_added"
    INCOME_UPDATED = "income_updated"
    INCOME_HISTORY_EDITED = "income_history_edited"

    # Expenses
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"

    # Limit and summaries
    SPENDING_LIMIT_UPDATED = "spending_limit_updated"
    SUMMARY_GENERATED = "summary_generated"

    # Planning
    SAVINGS_GOAL_ADDED = "savings_goal_added"
    SAVINGS_GOAL_UPDATED = "savings_goal_updated"
    SAVINGS_GOAL_DELETED = "savings_goal_deleted"
    RECURRING_EXPENSE_ADDED = "recurring_expense_added"
    RECURRING_EXPENSE_UPDATED = "recurring_expense_updated"
    RECURRING_EXPENSE_DELETED = "recurring_expense_deleted"
    RECURRING_EXPENSE_PAID = "recurring_expense_paid"

    # Data management
    DATA_EXPORTED = "data_exported"
    DATA_IMPORTED = "data_imported"
    DATA_RESET = "data_reset"

    # AI insights
    INSIGHT_GENERATED = "insight_generated"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred (local time)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'income', 'summary')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., an expense and the summary it triggered)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_store(self) -> dict:
        """JSON-compatible dict for the key-value store."""
        return self.model_dump(mode="json")


def _money(value: Decimal) -> str:
    return str(value)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(expense, correlation_id)
        event = AuditEventBuilder.summary_generated(snapshot, automatic=True)
    """

    @staticmethod
    def income_added(
        amount: Decimal,
        new_total: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INCOME_ADDED,
            entity_type="income",
            correlation_id=correlation_id,
            description=f"Income added: {_money(amount)}",
            details={
                "amount": _money(amount),
                "new_total": _money(new_total),
            },
            is_user_action=True,
        )

    @staticmethod
    def income_updated(
        old_total: Decimal,
        new_total: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INCOME_UPDATED,
            entity_type="income",
            correlation_id=correlation_id,
            description=f"Income total set to {_money(new_total)}",
            details={
                "old_total": _money(old_total),
                "new_total": _money(new_total),
            },
            is_user_action=True,
        )

    @staticmethod
    def income_history_edited(
        index: int,
        old_amount: Decimal,
        new_amount: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INCOME_HISTORY_EDITED,
            entity_type="income_entry",
            entity_id=str(index),
            correlation_id=correlation_id,
            description=f"Income entry #{index} changed from {_money(old_amount)} to {_money(new_amount)}",
            details={
                "index": index,
                "old_amount": _money(old_amount),
                "new_amount": _money(new_amount),
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_added(
        expense: Expense,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=str(expense.id),
            correlation_id=correlation_id,
            description=f"Expense added: {expense.category.value} - {_money(expense.amount)}",
            details={
                "amount": _money(expense.amount),
                "category": expense.category.value,
                "date": expense.date.isoformat(),
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_updated(
        expense: Expense,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_type="expense",
            entity_id=str(expense.id),
            correlation_id=correlation_id,
            description=f"Expense updated: {expense.category.value} - {_money(expense.amount)}",
            details={
                "amount": _money(expense.amount),
                "category": expense.category.value,
                "date": expense.date.isoformat(),
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            entity_id=str(expense_id),
            correlation_id=correlation_id,
            description=f"Expense deleted: {expense_id}",
            is_user_action=True,
        )

    @staticmethod
    def spending_limit_updated(
        old_limit: Decimal,
        new_limit: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SPENDING_LIMIT_UPDATED,
            entity_type="spending_limit",
            correlation_id=correlation_id,
            description=f"Daily spending limit changed to {_money(new_limit)}",
            details={
                "old_limit": _money(old_limit),
                "new_limit": _money(new_limit),
            },
            is_user_action=True,
        )

    @staticmethod
    def summary_generated(
        snapshot: SummarySnapshot,
        summary_number: int,
        automatic: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        kind = "automatic" if automatic else "manual"
        return AuditEvent(
            event_type=AuditEventType.SUMMARY_GENERATED,
            entity_type="summary",
            entity_id=str(summary_number),
            correlation_id=correlation_id,
            description=f"Summary #{summary_number} generated ({kind})",
            details={
                "automatic": automatic,
                "total_expenses": _money(snapshot.total_expenses),
                "balance": _money(snapshot.balance),
                "overshoot_days": snapshot.overshoot_days,
            },
            is_user_action=not automatic,
        )

    @staticmethod
    def record_changed(
        event_type: AuditEventType,
        entity_type: str,
        entity_id: int,
        name: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        """Savings goal and recurring expense add/update/delete/paid events."""
        action = event_type.value.rsplit("_", 1)[-1]
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=str(entity_id),
            correlation_id=correlation_id,
            description=f"{entity_type.replace('_', ' ').capitalize()} {action}: {name}",
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def data_event(
        event_type: AuditEventType,
        description: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        severity = (
            AuditSeverity.WARNING
            if event_type == AuditEventType.DATA_RESET
            else AuditSeverity.INFO
        )
        return AuditEvent(
            event_type=event_type,
            severity=severity,
            entity_type="data",
            description=description,
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def insight_generated(
        insight: str,
        used_ai: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHT_GENERATED,
            entity_type="insight",
            entity_id=insight,
            correlation_id=correlation_id,
            description=f"Insight generated: {insight}",
            details={
                "used_ai": used_ai,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        error_code: Optional[str] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_code=error_code,
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
