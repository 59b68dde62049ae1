"""Aggregation helpers package."""

from src.queries.aggregations import (
    REPORT_HEADER_TEMPLATE,
    category_totals,
    chart_bars,
    daily_totals,
    group_by_category,
    group_by_hour,
    group_expenses,
    most_recent_first,
    render_report_text,
    report_header,
    sum_amounts,
)

__all__ = [
    "REPORT_HEADER_TEMPLATE",
    "category_totals",
    "chart_bars",
    "daily_totals",
    "group_by_category",
    "group_by_hour",
    "group_expenses",
    "most_recent_first",
    "render_report_text",
    "report_header",
    "sum_amounts",
]
