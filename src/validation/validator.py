"""
Submission Validation Pipeline

DESIGN DECISION: Checks run in a fixed order and the first failure wins:

1. TITLE   - must be non-blank after trimming
2. AMOUNT  - must parse as a finite decimal, > 0 after rounding half-up
             to two places, and small enough to store as integer cents
3. NOTES   - must not exceed the configured maximum length
4. DUPLICATE - same trimmed title and amount must not already exist on
             the same local day (needs storage)

The duplicate check only runs once the cheap field checks pass, because
it is the only one that touches storage.

IMPORTANT: Validation NEVER silently fixes input. Rounding the amount to
two places is normalization, not correction; any other problem is
reported back as a single ValidationIssue.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from src.config import get_settings
from src.models.expense import (
    CENT,
    MAX_AMOUNT,
    ExpenseSubmission,
    ValidationErrorKind,
    ValidationIssue,
    ValidationResult,
)
from src.repository import ExpenseRepository


def parse_amount(text: str) -> Optional[Decimal]:
    """
    Parse user-entered amount text.

    Returns:
        The amount rounded half-up to two places, or None if the text is
        not a finite number.
    """
    try:
        value = Decimal(text.strip())
        if not value.is_finite():
            return None
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return None


class ExpenseValidator:
    """
    Validates a raw entry-form submission.

    Field checks can run without storage; the duplicate check is skipped
    when no repository is given.
    """

    def __init__(
        self,
        repository: Optional[ExpenseRepository] = None,
        max_notes_length: Optional[int] = None,
        currency_symbol: Optional[str] = None,
    ):
        """
        Initialize validator.

        Args:
            repository: Repository used for duplicate detection.
                        If None, duplicate checking is skipped.
            max_notes_length: Override for the configured notes limit.
            currency_symbol: Override for the configured currency symbol.
        """
        settings = get_settings().app
        self._repository = repository
        self._max_notes_length = (
            max_notes_length if max_notes_length is not None else settings.max_notes_length
        )
        self._currency_symbol = currency_symbol or settings.currency_symbol

    @property
    def max_notes_length(self) -> int:
        return self._max_notes_length

    def _issue(self, field: str, kind: ValidationErrorKind, message: str) -> ValidationIssue:
        return ValidationIssue(field=field, kind=kind, message=message)

    def _check_title(self, title: str) -> Optional[ValidationIssue]:
        if not title.strip():
            return self._issue(
                "title", ValidationErrorKind.EMPTY_TITLE, "Title cannot be empty"
            )
        return None

    def _check_amount(self, amount: Optional[Decimal]) -> Optional[ValidationIssue]:
        if amount is None or amount <= 0:
            return self._issue(
                "amount",
                ValidationErrorKind.INVALID_AMOUNT,
                f"Amount must be greater than {self._currency_symbol}0",
            )
        if amount > MAX_AMOUNT:
            return self._issue(
                "amount",
                ValidationErrorKind.INVALID_AMOUNT,
                f"Amount cannot exceed {self._currency_symbol}{MAX_AMOUNT}",
            )
        return None

    def _check_notes(self, notes: str) -> Optional[ValidationIssue]:
        if len(notes) > self._max_notes_length:
            return self._issue(
                "notes",
                ValidationErrorKind.NOTES_TOO_LONG,
                f"Notes cannot exceed {self._max_notes_length} characters",
            )
        return None

    async def _check_duplicate(
        self,
        title: str,
        amount: Decimal,
        day: date,
    ) -> Optional[ValidationIssue]:
        """
        Check for an identical expense on the same day.

        Storage errors propagate: a failed lookup must not be mistaken for
        "no duplicate".
        """
        if self._repository is None:
            return None
        if await self._repository.is_duplicate(title, amount, day):
            return self._issue(
                "duplicate",
                ValidationErrorKind.DUPLICATE_EXPENSE,
                "Duplicate expense detected",
            )
        return None

    async def validate(
        self,
        submission: ExpenseSubmission,
        today: date,
    ) -> ValidationResult:
        """
        Run the full validation pipeline.

        Args:
            submission: Raw form values
            today: Local calendar day used for the duplicate check

        Returns:
            ValidationResult carrying the first issue found, or the
            normalized title and amount when everything passed
        """
        issue = self._check_title(submission.title)
        if issue:
            return ValidationResult(issue=issue)
        title = submission.title.strip()

        amount = parse_amount(submission.amount)
        issue = self._check_amount(amount)
        if issue:
            return ValidationResult(issue=issue, title=title)

        issue = self._check_notes(submission.notes)
        if issue:
            return ValidationResult(issue=issue, title=title, amount=amount)

        issue = await self._check_duplicate(title, amount, today)
        return ValidationResult(issue=issue, title=title, amount=amount)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """One line suitable for a snackbar."""
        if result.is_valid:
            return "Expense looks good."
        return result.issue.message
