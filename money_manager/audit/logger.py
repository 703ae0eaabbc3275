"""
Audit Logger

DESIGN DECISION: Every change to the user's money data is logged.
This provides:
1. Complete traceability
2. Debugging capability
3. User can see history of their changes

The audit logger:
- Is synchronous, like the tracker it serves
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from money_manager.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from money_manager.models.finance import Expense, SummarySnapshot
from money_manager.services.storage import FinanceRepository


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output to stderr at the given stdlib level."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        stream=sys.stderr,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The repository's audit log (for persistence and user visibility)
    """

    def __init__(
        self,
        repository: Optional[FinanceRepository] = None,
    ):
        """
        Initialize audit logger.

        Args:
            repository: Where events are persisted.
                    If None, only logs locally.
        """
        self._repository = repository
        self._logger = structlog.get_logger(__name__)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to the repository if available.

        Returns True if the write succeeded (or no repository configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._repository is not None:
            try:
                self._repository.append_audit_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_income_added(self, amount: Decimal, new_total: Decimal) -> None:
        self.log(AuditEventBuilder.income_added(amount=amount, new_total=new_total))

    def log_income_updated(self, old_total: Decimal, new_total: Decimal) -> None:
        self.log(AuditEventBuilder.income_updated(old_total=old_total, new_total=new_total))

    def log_income_history_edited(
        self,
        index: int,
        old_amount: Decimal,
        new_amount: Decimal,
    ) -> None:
        event = AuditEventBuilder.income_history_edited(
            index=index,
            old_amount=old_amount,
            new_amount=new_amount,
        )
        self.log(event)

    def log_expense_added(self, expense: Expense) -> None:
        self.log(AuditEventBuilder.expense_added(expense))

    def log_expense_updated(self, expense: Expense) -> None:
        self.log(AuditEventBuilder.expense_updated(expense))

    def log_expense_deleted(self, expense_id: int) -> None:
        self.log(AuditEventBuilder.expense_deleted(expense_id))

    def log_summary_generated(
        self,
        snapshot: SummarySnapshot,
        summary_number: int,
        automatic: bool,
    ) -> None:
        """Log a summary snapshot being appended to the history."""
        event = AuditEventBuilder.summary_generated(
            snapshot=snapshot,
            summary_number=summary_number,
            automatic=automatic,
        )
        self.log(event)

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
        error_code: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            error_code=error_code,
            correlation_id=correlation_id,
        )
        self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action that spans several steps
    (e.g. an AI insight that may fall back across providers).
    """
    return uuid4()
