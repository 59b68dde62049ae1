"""
Data Models Package

This package contains all Pydantic models used in the expense tracker.
All data flowing through the system must conform to these schemas.
"""

from src.models.expense import (
    CategoryTotal,
    ChartBar,
    DailyTotal,
    Expense,
    ExpenseCategory,
    ExpenseSubmission,
    FieldState,
    GroupingMode,
    SubmissionResult,
    ThemeMode,
    ValidationErrorKind,
    ValidationIssue,
    ValidationResult,
    format_amount,
    from_cents,
    to_cents,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "CategoryTotal",
    "ChartBar",
    "DailyTotal",
    "Expense",
    "ExpenseCategory",
    "ExpenseSubmission",
    "FieldState",
    "GroupingMode",
    "SubmissionResult",
    "ThemeMode",
    "ValidationErrorKind",
    "ValidationIssue",
    "ValidationResult",
    "format_amount",
    "from_cents",
    "to_cents",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
