"""
Expense Repository

A pass-through façade over the expense store. Views and the entry
workflow talk to this class only, so they never depend on how or where
expenses are stored.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from src.models.expense import CategoryTotal, DailyTotal, Expense, ExpenseCategory
from src.reactive import LiveQuery
from src.services.storage import ExpenseStoreInterface


class ExpenseRepository:
    """Same operations as the store, plus a boolean duplicate check."""

    def __init__(self, store: ExpenseStoreInterface):
        self._store = store

    async def insert(self, expense: Expense) -> int:
        return await self._store.insert(expense)

    async def delete(self, expense: Expense) -> bool:
        return await self._store.delete(expense)

    def query_by_day(self, day: date) -> LiveQuery[list[Expense]]:
        return self._store.query_by_day(day)

    def query_by_category_and_day(
        self,
        category: ExpenseCategory,
        day: date,
    ) -> LiveQuery[list[Expense]]:
        return self._store.query_by_category_and_day(category, day)

    def sum_by_day(self, day: date) -> LiveQuery[Optional[Decimal]]:
        return self._store.sum_by_day(day)

    def query_all(self) -> LiveQuery[list[Expense]]:
        return self._store.query_all()

    def query_range(self, start_millis: int, end_millis: int) -> LiveQuery[list[Expense]]:
        return self._store.query_range(start_millis, end_millis)

    async def count_duplicates(self, title: str, amount: Decimal, day: date) -> int:
        return await self._store.count_duplicates(title, amount, day)

    async def is_duplicate(self, title: str, amount: Decimal, day: date) -> bool:
        """True when an expense with this title and amount exists on that day."""
        return await self.count_duplicates(title, amount, day) > 0

    def category_totals(
        self,
        start_millis: int,
        end_millis: int,
    ) -> LiveQuery[list[CategoryTotal]]:
        return self._store.category_totals(start_millis, end_millis)

    def daily_totals(
        self,
        start_millis: int,
        end_millis: int,
    ) -> LiveQuery[list[DailyTotal]]:
        return self._store.daily_totals(start_millis, end_millis)
