"""
Expense Entry View

Holds the state of the new-expense form and turns a submit into a stored
Expense.

DESIGN DECISION: Submit NEVER raises for bad input.
- Validation failures are posted to the one-shot error slot and returned
  as a rejected SubmissionResult.
- Storage failures are different: the command failed, so the error
  propagates and the form keeps what the user typed.

On success the form resets to defaults, any pending error is cleared and the
success slot is posted.
"""

from decimal import Decimal
from typing import Optional

import structlog

from src.audit import AuditLogger, create_correlation_id
from src.clock import Clock
from src.models.expense import (
    CENT,
    Expense,
    ExpenseCategory,
    ExpenseSubmission,
    FieldState,
    SubmissionResult,
)
from src.reactive import MutableState, OneShotSignal, derive, switch_map
from src.repository import ExpenseRepository
from src.services.storage import StorageError
from src.validation import ExpenseValidator

logger = structlog.get_logger(__name__)


class ExpenseEntryView:
    """
    View state and intents for the entry form.

    Observable state:
        title, amount: FieldState of the two text fields
        category: selected ExpenseCategory
        notes: notes text as typed
        receipt_image_ref: optional receipt path/URI
        notes_remaining: characters left before the notes limit
        today_total: live sum of today's expenses
        error_message: one-shot slot for rejection messages
        success: one-shot slot posted after a save
    """

    def __init__(
        self,
        repository: ExpenseRepository,
        clock: Optional[Clock] = None,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._clock = clock or Clock()
        self._validator = validator or ExpenseValidator(repository)
        self._audit_logger = audit_logger

        self.title = MutableState(FieldState())
        self.amount = MutableState(FieldState())
        self.category = MutableState(ExpenseCategory.default())
        self.notes = MutableState("")
        self.receipt_image_ref: MutableState[Optional[str]] = MutableState(None)

        self.error_message: OneShotSignal[str] = OneShotSignal()
        self.success: OneShotSignal[bool] = OneShotSignal()

        max_notes = self._validator.max_notes_length
        self.notes_remaining = derive([self.notes], lambda notes: max_notes - len(notes))

        self._today = MutableState(self._clock.today())
        self.today_total = switch_map(
            self._today,
            lambda day: derive(
                [self._repository.sum_by_day(day)],
                lambda total: total if total is not None else Decimal("0").quantize(CENT),
            ),
        )

    # -- field intents -------------------------------------------------------

    def on_title_change(self, text: str) -> None:
        self.title.update(lambda field: field.model_copy(update={"text": text}))

    def on_amount_change(self, text: str) -> None:
        self.amount.update(lambda field: field.model_copy(update={"text": text}))

    def _focus_change(self, state: MutableState, has_focus: bool) -> None:
        field = state.value
        if has_focus and not field.has_been_focused_once:
            state.value = field.model_copy(update={"has_been_focused_once": True})
        elif not has_focus and field.has_been_focused_once:
            state.value = field.model_copy(update={"focus_left": True})

    def on_title_focus_change(self, has_focus: bool) -> None:
        self._focus_change(self.title, has_focus)

    def on_amount_focus_change(self, has_focus: bool) -> None:
        self._focus_change(self.amount, has_focus)

    def on_category_change(self, category: ExpenseCategory) -> None:
        self.category.value = ExpenseCategory(category)

    def on_notes_change(self, text: str) -> None:
        self.notes.value = text

    def on_receipt_image_change(self, ref: Optional[str]) -> None:
        self.receipt_image_ref.value = ref

    # -- one-shot acknowledgements -------------------------------------------

    def on_error_shown(self) -> None:
        self.error_message.acknowledge()

    def on_success_shown(self) -> None:
        self.success.acknowledge()

    def refresh_today(self) -> None:
        """Move today_total to the current local day."""
        self._today.value = self._clock.today()

    # -- submit --------------------------------------------------------------

    def _submission(self) -> ExpenseSubmission:
        return ExpenseSubmission(
            title=self.title.value.text,
            amount=self.amount.value.text,
            category=self.category.value,
            notes=self.notes.value,
            receipt_image_ref=self.receipt_image_ref.value,
        )

    def _reset(self) -> None:
        self.title.value = FieldState()
        self.amount.value = FieldState()
        self.category.value = ExpenseCategory.default()
        self.notes.value = ""
        self.receipt_image_ref.value = None
        self.error_message.acknowledge()

    async def submit(self) -> SubmissionResult:
        """
        Validate the form and save the expense.

        Returns:
            SubmissionResult; rejected results carry the ValidationIssue

        Raises:
            StorageError: If the duplicate lookup or the insert fails
        """
        correlation_id = create_correlation_id()
        submission = self._submission()
        today = self._clock.today()

        try:
            result = await self._validator.validate(submission, today)
        except StorageError as e:
            await self._log_storage_error("check duplicates", e, correlation_id)
            raise

        if not result.is_valid:
            issue = result.issue
            self.error_message.post(issue.message)
            logger.info("submission_rejected", kind=issue.kind.value)
            if self._audit_logger:
                await self._audit_logger.log_submission_rejected(
                    kind=issue.kind.value,
                    message=issue.message,
                    correlation_id=correlation_id,
                )
            return SubmissionResult(accepted=False, issue=issue)

        notes = submission.notes.strip()
        expense = Expense(
            title=result.title,
            amount=result.amount,
            category=submission.category,
            notes=notes or None,
            receipt_image_ref=submission.receipt_image_ref,
            timestamp=self._clock.now_millis(),
        )

        try:
            expense_id = await self._repository.insert(expense)
        except StorageError as e:
            await self._log_storage_error("save expense", e, correlation_id)
            raise

        saved = expense.with_id(expense_id)
        if self._audit_logger:
            await self._audit_logger.log_expense_saved(
                expense_id=expense_id,
                title=saved.title,
                amount=saved.amount,
                category=saved.category.value,
                correlation_id=correlation_id,
            )

        self._reset()
        self._today.value = today
        self.success.post(True)
        return SubmissionResult(accepted=True, expense=saved)

    async def _log_storage_error(self, operation: str, error: Exception, correlation_id) -> None:
        logger.error("submit_storage_failed", operation=operation, error=str(error))
        if self._audit_logger:
            await self._audit_logger.log_storage_error(
                operation=operation,
                error_message=str(error),
                correlation_id=correlation_id,
            )
