"""
Audit Logger

DESIGN DECISION: Every write to the expense book is logged.
This provides:
1. Complete traceability
2. Debugging capability
3. User can see history of what was recorded and removed

The audit logger:
- Is async so callers await it alongside their storage writes
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from src.config import get_settings
from src.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from src.services.storage import AuditStorageInterface


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog on top of stdlib logging, rendering JSON lines."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )
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
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit_log table (for persistence), when storage is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_expense_saved(
        self,
        expense_id: int,
        title: str,
        amount: Decimal,
        category: str,
        correlation_id: Optional[UUID] = None,
        currency_symbol: Optional[str] = None,
    ) -> None:
        """Log a saved expense; the symbol defaults to the configured one."""
        event = AuditEventBuilder.expense_saved(
            expense_id=expense_id,
            title=title,
            amount=str(amount),
            category=category,
            correlation_id=correlation_id,
            currency_symbol=currency_symbol or get_settings().app.currency_symbol,
        )
        await self.log(event)

    async def log_expense_deleted(
        self,
        expense_id: int,
        existed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            existed=existed,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_submission_rejected(
        self,
        kind: str,
        message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a submission that failed validation."""
        event = AuditEventBuilder.submission_rejected(
            kind=kind,
            message=message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_report_exported(
        self,
        day_count: int,
        byte_count: int,
        mime_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.report_exported(
            day_count=day_count,
            byte_count=byte_count,
            mime_type=mime_type,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_theme_changed(self, old_mode: str, new_mode: str) -> None:
        event = AuditEventBuilder.theme_changed(old_mode=old_mode, new_mode=new_mode)
        await self.log(event)

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed storage operation."""
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
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
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., one submit attempt).
    Pass it through all subsequent operations.
    """
    return uuid4()
