"""
Expense List View

Shows one local day of expenses, grouped by category or by hour, with
running totals.

Inputs are two MutableStates (selected_date, grouping_mode). The day's
list follows the live query for whichever day is selected; every other
value is derived from that list, so totals always agree with the groups.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from src.audit import AuditLogger
from src.clock import Clock
from src.models.expense import Expense, GroupingMode
from src.queries import aggregations
from src.reactive import MutableState, Observable, derive, switch_map
from src.repository import ExpenseRepository


class ExpenseListView:
    """View state and intents for the daily expense list."""

    def __init__(
        self,
        repository: ExpenseRepository,
        clock: Optional[Clock] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._clock = clock or Clock()
        self._audit_logger = audit_logger

        self.selected_date = MutableState(self._clock.today())
        self.grouping_mode = MutableState(GroupingMode.CATEGORY)

        self.expenses: Observable[list[Expense]] = switch_map(
            self.selected_date,
            self._repository.query_by_day,
        )
        self.grouped_expenses: Observable[dict[str, list[Expense]]] = derive(
            [self.expenses, self.grouping_mode],
            lambda expenses, mode: aggregations.group_expenses(expenses, mode, self._clock),
        )
        self.total_count: Observable[int] = derive([self.expenses], len)
        self.total_amount: Observable[Decimal] = derive(
            [self.expenses],
            aggregations.sum_amounts,
        )

    def set_selected_date(self, day: date) -> None:
        self.selected_date.value = day

    def set_grouping_mode(self, mode: GroupingMode) -> None:
        self.grouping_mode.value = GroupingMode(mode)

    async def delete_expense(self, expense: Expense) -> bool:
        """Remove an expense; the list updates through its live query."""
        existed = await self._repository.delete(expense)
        if self._audit_logger and expense.id is not None:
            await self._audit_logger.log_expense_deleted(
                expense_id=expense.id,
                existed=existed,
            )
        return existed
