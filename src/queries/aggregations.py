"""
Aggregation Helpers

DESIGN DECISION: Aggregation is DETERMINISTIC and works only on data the
store returned. The same helpers back the live store queries that SQLite
cannot express (local-day grouping in an arbitrary timezone) and the
derived view state (grouping a day's list, totals, chart rows, export).

Inputs are small in-memory lists; nothing here touches storage.
"""

from decimal import Decimal
from typing import Iterable

from src.models.expense import (
    CENT,
    CategoryTotal,
    ChartBar,
    DailyTotal,
    Expense,
    ExpenseCategory,
    GroupingMode,
    format_amount,
)
from src.clock import Clock

REPORT_HEADER_TEMPLATE = "Expense Report (Last {days} Days)"


def sum_amounts(expenses: Iterable[Expense]) -> Decimal:
    """Total of all amounts, as a two-place Decimal."""
    return sum((expense.amount for expense in expenses), Decimal("0")).quantize(CENT)


def group_by_category(expenses: Iterable[Expense]) -> dict[str, list[Expense]]:
    """
    Partition by category.

    Group order is first-seen order over the input, so a newest-first
    list yields the category of the latest expense first.
    """
    groups: dict[str, list[Expense]] = {}
    for expense in expenses:
        groups.setdefault(expense.category.value, []).append(expense)
    return groups


def group_by_hour(expenses: Iterable[Expense], clock: Clock) -> dict[str, list[Expense]]:
    """Partition by local hour bucket, labelled like '08:00 PM'."""
    groups: dict[str, list[Expense]] = {}
    for expense in expenses:
        groups.setdefault(clock.hour_label(expense.timestamp), []).append(expense)
    return groups


def group_expenses(
    expenses: list[Expense],
    mode: GroupingMode,
    clock: Clock,
) -> dict[str, list[Expense]]:
    if mode == GroupingMode.TIME:
        return group_by_hour(expenses, clock)
    return group_by_category(expenses)


def daily_totals(
    entries: Iterable[tuple[int, Decimal]],
    clock: Clock,
) -> list[DailyTotal]:
    """
    Sum (timestamp, amount) pairs per local calendar day.

    Only days with at least one entry appear. Oldest day first.
    """
    sums: dict = {}
    for timestamp, amount in entries:
        day = clock.day_of(timestamp)
        sums[day] = sums.get(day, Decimal("0")) + amount
    return [
        DailyTotal(day=day, total=total.quantize(CENT))
        for day, total in sorted(sums.items())
    ]


def category_totals(rows: Iterable[tuple[str, Decimal]]) -> list[CategoryTotal]:
    """
    Build CategoryTotal rows from (category, total) pairs.

    Categories are listed in enum declaration order; missing ones are omitted.
    """
    by_category = {ExpenseCategory(category): total for category, total in rows}
    return [
        CategoryTotal(category=category, total=by_category[category].quantize(CENT))
        for category in ExpenseCategory.ordered()
        if category in by_category
    ]


def most_recent_first(totals: Iterable[DailyTotal]) -> list[DailyTotal]:
    return sorted(totals, key=lambda total: total.day, reverse=True)


def chart_bars(totals: list[DailyTotal]) -> list[ChartBar]:
    """Scale each day against the largest day in the list."""
    if not totals:
        return []
    peak = max(total.total for total in totals)
    return [
        ChartBar(
            label=total.display_date,
            total=total.total,
            ratio=float(total.total / peak) if peak > 0 else 0.0,
        )
        for total in totals
    ]


def report_header(days: int = 7) -> str:
    return REPORT_HEADER_TEMPLATE.format(days=days)


def render_report_text(
    totals: Iterable[DailyTotal],
    currency_symbol: str = "₹",
    days: int = 7,
) -> str:
    """
    Plain-text export of daily totals.

    Format:
        Expense Report (Last 7 Days)

        Wed, May 1: ₹250.00
    """
    lines = [f"{report_header(days)}\n\n"]
    for total in totals:
        lines.append(f"{total.display_date}: {format_amount(total.total, currency_symbol)}\n")
    return "".join(lines)
