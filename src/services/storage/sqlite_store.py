"""
SQLite Expense Store

DESIGN DECISION: SQLite is the storage backend because:
1. The app is single-user and single-device
2. SUM / GROUP BY aggregates are delegated to the database engine
3. No server to run or configure

Amounts are stored as integer minor units (amount_cents). Day filters are
translated to millisecond bounds using the Clock's timezone, so the
database never has to know about timezones. The one aggregate SQLite
cannot do in an arbitrary zone, grouping by local day, is finished in
Python over the rows of the window.

Every committed write notifies the "expenses" table, which makes all
attached live queries re-run.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Callable, Optional, TypeVar

import structlog
from sqlalchemy import delete, func, insert, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from src.clock import Clock
from src.config import get_settings
from src.models.expense import (
    CategoryTotal,
    DailyTotal,
    Expense,
    ExpenseCategory,
    from_cents,
    to_cents,
)
from src.queries import aggregations
from src.reactive import LiveQuery
from src.services.storage.database import Database, expenses_table
from src.services.storage.interface import ExpenseStoreInterface

T = TypeVar("T")

logger = structlog.get_logger(__name__)

EXPENSES = "expenses"


class SQLiteExpenseStore(ExpenseStoreInterface):
    """
    SQLite implementation of expense storage.

    One row per expense; the id is assigned by SQLite AUTOINCREMENT and
    therefore never reused after a delete.
    """

    def __init__(
        self,
        database: Database,
        clock: Optional[Clock] = None,
        stop_timeout: Optional[float] = None,
    ):
        self._db = database
        self._clock = clock or Clock()
        self._stop_timeout = (
            stop_timeout
            if stop_timeout is not None
            else get_settings().app.live_query_stop_timeout
        )

    @property
    def clock(self) -> Clock:
        return self._clock

    # -- row mapping ---------------------------------------------------------

    def _expense_to_row(self, expense: Expense) -> dict[str, Any]:
        return {
            "title": expense.title,
            "amount_cents": expense.amount_cents,
            "category": expense.category.value,
            "notes": expense.notes,
            "receipt_image_ref": expense.receipt_image_ref,
            "timestamp": expense.timestamp,
        }

    def _row_to_expense(self, row) -> Expense:
        return Expense(
            id=row["id"],
            title=row["title"],
            amount=from_cents(row["amount_cents"]),
            category=ExpenseCategory(row["category"]),
            notes=row["notes"],
            receipt_image_ref=row["receipt_image_ref"],
            timestamp=row["timestamp"],
        )

    def _live(self, query: Callable[[], T], name: str) -> LiveQuery[T]:
        return LiveQuery(
            query,
            notifier=self._db.notifier,
            tables=[EXPENSES],
            stop_timeout=self._stop_timeout,
            name=name,
        )

    def _between(self, start_millis: int, end_millis: int):
        return expenses_table.c.timestamp.between(start_millis, end_millis)

    def _list(self, *conditions) -> list[Expense]:
        stmt = select(expenses_table).order_by(
            expenses_table.c.timestamp.desc(),
            expenses_table.c.id.desc(),
        )
        if conditions:
            stmt = stmt.where(*conditions)
        with self._db.transaction("list expenses") as conn:
            rows = conn.execute(stmt).mappings().all()
        return [self._row_to_expense(row) for row in rows]

    # -- writes --------------------------------------------------------------

    async def insert(self, expense: Expense) -> int:
        """Save an expense; replaces the row if the expense carries an id."""
        values = self._expense_to_row(expense)

        with self._db.transaction("save expense") as conn:
            if expense.id is None:
                result = conn.execute(insert(expenses_table).values(**values))
                expense_id = int(result.inserted_primary_key[0])
            else:
                stmt = sqlite_insert(expenses_table).values(id=expense.id, **values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=[expenses_table.c.id],
                    set_=values,
                )
                conn.execute(stmt)
                expense_id = expense.id

        logger.debug("expense_inserted", expense_id=expense_id, category=values["category"])
        self._db.notify_changed([EXPENSES])
        return expense_id

    async def delete(self, expense: Expense) -> bool:
        """Delete by id. Missing rows are not an error."""
        if expense.id is None:
            return False

        with self._db.transaction("delete expense") as conn:
            result = conn.execute(
                delete(expenses_table).where(expenses_table.c.id == expense.id)
            )
            deleted = result.rowcount > 0

        logger.debug("expense_deleted", expense_id=expense.id, existed=deleted)
        if deleted:
            self._db.notify_changed([EXPENSES])
        return deleted

    # -- point and range reads -----------------------------------------------

    def query_by_day(self, day: date) -> LiveQuery[list[Expense]]:
        start, end = self._clock.day_bounds(day)
        return self._live(
            lambda: self._list(self._between(start, end)),
            name=f"query_by_day:{day.isoformat()}",
        )

    def query_by_category_and_day(
        self,
        category: ExpenseCategory,
        day: date,
    ) -> LiveQuery[list[Expense]]:
        start, end = self._clock.day_bounds(day)
        return self._live(
            lambda: self._list(
                expenses_table.c.category == category.value,
                self._between(start, end),
            ),
            name=f"query_by_category_and_day:{category.value}:{day.isoformat()}",
        )

    def sum_by_day(self, day: date) -> LiveQuery[Optional[Decimal]]:
        start, end = self._clock.day_bounds(day)

        def _sum() -> Optional[Decimal]:
            stmt = select(func.sum(expenses_table.c.amount_cents)).where(
                self._between(start, end)
            )
            with self._db.transaction("sum expenses") as conn:
                cents = conn.execute(stmt).scalar_one_or_none()
            return None if cents is None else from_cents(cents)

        return self._live(_sum, name=f"sum_by_day:{day.isoformat()}")

    def query_all(self) -> LiveQuery[list[Expense]]:
        return self._live(self._list, name="query_all")

    def query_range(self, start_millis: int, end_millis: int) -> LiveQuery[list[Expense]]:
        return self._live(
            lambda: self._list(self._between(start_millis, end_millis)),
            name=f"query_range:{start_millis}:{end_millis}",
        )

    async def count_duplicates(self, title: str, amount: Decimal, day: date) -> int:
        start, end = self._clock.day_bounds(day)
        stmt = (
            select(func.count())
            .select_from(expenses_table)
            .where(
                expenses_table.c.title == title,
                expenses_table.c.amount_cents == to_cents(amount),
                self._between(start, end),
            )
        )
        with self._db.transaction("count duplicates") as conn:
            return int(conn.execute(stmt).scalar_one())

    # -- aggregates ----------------------------------------------------------

    def category_totals(
        self,
        start_millis: int,
        end_millis: int,
    ) -> LiveQuery[list[CategoryTotal]]:
        def _totals() -> list[CategoryTotal]:
            stmt = (
                select(
                    expenses_table.c.category,
                    func.sum(expenses_table.c.amount_cents).label("total_cents"),
                )
                .where(self._between(start_millis, end_millis))
                .group_by(expenses_table.c.category)
            )
            with self._db.transaction("total expenses by category") as conn:
                rows = conn.execute(stmt).mappings().all()
            return aggregations.category_totals(
                (row["category"], from_cents(row["total_cents"])) for row in rows
            )

        return self._live(_totals, name=f"category_totals:{start_millis}:{end_millis}")

    def daily_totals(
        self,
        start_millis: int,
        end_millis: int,
    ) -> LiveQuery[list[DailyTotal]]:
        def _totals() -> list[DailyTotal]:
            stmt = select(
                expenses_table.c.timestamp,
                expenses_table.c.amount_cents,
            ).where(self._between(start_millis, end_millis))
            with self._db.transaction("total expenses by day") as conn:
                rows = conn.execute(stmt).mappings().all()
            return aggregations.daily_totals(
                ((row["timestamp"], from_cents(row["amount_cents"])) for row in rows),
                self._clock,
            )

        return self._live(_totals, name=f"daily_totals:{start_millis}:{end_millis}")
