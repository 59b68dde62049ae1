"""
Core Data Models for the Expense Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Keep persisted records immutable once created

DESIGN DECISION: Money is a Decimal with at most two decimal places.
The storage layer keeps it as integer minor units so sums and duplicate
comparisons are exact.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)


CENT = Decimal("0.01")
# Largest amount whose cents fit a signed 64-bit SQLite INTEGER
MAX_AMOUNT = Decimal("92233720368547758.07")


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    DESIGN DECISION: The set is closed. Declaration order is display order
    and the first member is the default for a new entry.
    """
    STAFF = "Staff"
    TRAVEL = "Travel"
    FOOD = "Food"
    UTILITY = "Utility"

    @classmethod
    def default(cls) -> "ExpenseCategory":
        return next(iter(cls))

    @classmethod
    def ordered(cls) -> list["ExpenseCategory"]:
        return list(cls)


class GroupingMode(str, Enum):
    """How a day's expenses are partitioned for display."""
    CATEGORY = "category"
    TIME = "time"


class ThemeMode(str, Enum):
    """Persisted theme preference."""
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ThemeMode":
        """Map a stored value to a mode, falling back to SYSTEM."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.SYSTEM


class ValidationErrorKind(str, Enum):
    """Reasons a new-expense submission can be rejected."""
    EMPTY_TITLE = "empty_title"
    INVALID_AMOUNT = "invalid_amount"
    NOTES_TOO_LONG = "notes_too_long"
    DUPLICATE_EXPENSE = "duplicate_expense"


# =============================================================================
# MONEY HELPERS
# =============================================================================

def to_cents(amount: Decimal) -> int:
    """Convert a Decimal amount to integer minor units."""
    return int((amount * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    """Convert integer minor units back to a two-place Decimal."""
    return (Decimal(int(cents)) / 100).quantize(CENT)


def format_amount(amount: Decimal, symbol: str = "₹") -> str:
    """Render an amount with two decimals, e.g. ₹250.00."""
    return f"{symbol}{amount.quantize(CENT, rounding=ROUND_HALF_UP)}"


# =============================================================================
# CORE EXPENSE MODEL
# =============================================================================

class Expense(BaseModel):
    """
    A single recorded expense.

    CRITICAL: Records are immutable once inserted. The only lifecycle
    end is an explicit delete; there is no update.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: Optional[int] = Field(
        default=None,
        ge=1,
        description="Auto-assigned on insert; None before persistence"
    )
    title: str = Field(
        ...,
        min_length=1,
        description="What the money was spent on"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        le=MAX_AMOUNT,
        decimal_places=2,
        description="Amount spent, strictly positive"
    )
    category: ExpenseCategory = Field(
        ...,
        description="Expense category"
    )
    notes: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Free-form notes"
    )
    receipt_image_ref: Optional[str] = Field(
        default=None,
        description="Opaque path or URI of a receipt photo"
    )
    timestamp: int = Field(
        ...,
        ge=0,
        description="Creation time in milliseconds since epoch"
    )

    @property
    def amount_cents(self) -> int:
        return to_cents(self.amount)

    def with_id(self, expense_id: int) -> "Expense":
        """Return a copy carrying the id assigned by storage."""
        return self.model_copy(update={"id": expense_id})


# =============================================================================
# AGGREGATE MODELS
# =============================================================================

class CategoryTotal(BaseModel):
    """Sum of amounts for one category over a time window."""
    model_config = ConfigDict(frozen=True)

    category: ExpenseCategory
    total: Decimal


class DailyTotal(BaseModel):
    """Sum of amounts for one local calendar day over a time window."""
    model_config = ConfigDict(frozen=True)

    day: date
    total: Decimal

    @property
    def day_key(self) -> str:
        return self.day.isoformat()

    @property
    def display_date(self) -> str:
        """Short label such as 'Wed, May 1'."""
        return f"{self.day:%a, %b} {self.day.day}"


class ChartBar(BaseModel):
    """One bar of the report chart, scaled against the largest day."""
    model_config = ConfigDict(frozen=True)

    label: str
    total: Decimal
    ratio: float = Field(ge=0.0, le=1.0)


# =============================================================================
# ENTRY FORM MODELS
# =============================================================================

class FieldState(BaseModel):
    """
    Text field state for the entry form.

    The focus flags only drive inline error styling; they are not
    correctness rules.
    """
    model_config = ConfigDict(frozen=True)

    text: str = ""
    has_been_focused_once: bool = False
    focus_left: bool = False

    @property
    def show_error(self) -> bool:
        return self.focus_left and not self.text.strip()


class ExpenseSubmission(BaseModel):
    """Raw values from the entry form, before validation."""

    title: str = ""
    amount: str = ""
    category: ExpenseCategory = Field(default_factory=ExpenseCategory.default)
    notes: str = ""
    receipt_image_ref: Optional[str] = None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    kind: ValidationErrorKind = Field(
        ...,
        description="Type of issue"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of validating a submission.

    Checks run in order and stop at the first failure, so at most one
    issue is ever reported.
    """

    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    issue: Optional[ValidationIssue] = None

    # Normalized values, present once the corresponding check passed
    title: Optional[str] = None
    amount: Optional[Decimal] = None

    @property
    def is_valid(self) -> bool:
        return self.issue is None

    @property
    def error_kind(self) -> Optional[ValidationErrorKind]:
        return self.issue.kind if self.issue else None


class SubmissionResult(BaseModel):
    """Outcome of one submit attempt."""

    accepted: bool
    expense: Optional[Expense] = None
    issue: Optional[ValidationIssue] = None
