"""Tests for the trailing-window report."""

import asyncio
from datetime import date, datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from src.audit import AuditLogger
from src.models.audit import AuditEventType
from src.models.expense import ExpenseCategory
from src.views import TEXT_PLAIN, ExpenseEntryView, ExportSink, ReportView

KOLKATA = ZoneInfo("Asia/Kolkata")
NOW = datetime(2024, 5, 1, 12, 0, tzinfo=KOLKATA)


class RecordingSink(ExportSink):
    """Keeps every shared blob."""

    def __init__(self):
        self.shared = []

    async def share(self, text: str, mime_type: str) -> None:
        self.shared.append((text, mime_type))


@pytest.fixture
def seeded(repository, make_expense):
    for title, amount, category, moment in [
        ("Lunch", "250", ExpenseCategory.FOOD, NOW - timedelta(hours=1)),
        ("Cab", "100", ExpenseCategory.TRAVEL, NOW - timedelta(hours=2)),
        ("Power", "1200.5", ExpenseCategory.UTILITY, NOW - timedelta(days=2)),
        ("Maid", "500", ExpenseCategory.STAFF, NOW - timedelta(days=6)),
        ("Old", "999", ExpenseCategory.FOOD, NOW - timedelta(days=7)),
    ]:
        asyncio.run(repository.insert(make_expense(
            title=title, amount=amount, category=category, at=moment,
        )))
    return repository


@pytest.fixture
def view(seeded, clock):
    return ReportView(seeded, clock=clock)


class TestReportTotals:
    """Tests for daily and category totals."""

    def test_daily_totals_most_recent_first(self, view):
        totals = view.daily_totals.value
        assert [(t.day, t.total) for t in totals] == [
            (date(2024, 5, 1), Decimal("350.00")),
            (date(2024, 4, 29), Decimal("1200.50")),
            (date(2024, 4, 25), Decimal("500.00")),
        ]

    def test_window_edges(self, view):
        """Test 6 days before now is in, 7 days before now is out."""
        days = [t.day for t in view.daily_totals.value]
        assert date(2024, 4, 25) in days
        assert date(2024, 4, 24) not in days

    def test_category_totals_omit_absent_categories(self, view):
        totals = view.category_totals.value
        assert [(t.category, t.total) for t in totals] == [
            (ExpenseCategory.STAFF, Decimal("500.00")),
            (ExpenseCategory.TRAVEL, Decimal("100.00")),
            (ExpenseCategory.FOOD, Decimal("250.00")),
            (ExpenseCategory.UTILITY, Decimal("1200.50")),
        ]

    def test_total_amount(self, view):
        assert view.total_amount.value == Decimal("2050.50")

    def test_chart_bars(self, view):
        bars = view.chart_bars.value
        assert [b.label for b in bars] == ["Wed, May 1", "Mon, Apr 29", "Thu, Apr 25"]
        assert bars[1].ratio == 1.0
        assert bars[2].ratio == pytest.approx(500 / 1200.5)

    def test_empty_window(self, repository, clock):
        view = ReportView(repository, clock=clock)
        assert view.daily_totals.value == []
        assert view.category_totals.value == []
        assert view.chart_bars.value == []

    def test_live_update(self, view, seeded, make_expense):
        seen = []
        subscription = view.daily_totals.subscribe(seen.append)
        asyncio.run(seeded.insert(make_expense(title="Tea", amount="10", at=NOW - timedelta(minutes=5))))
        subscription.cancel()

        assert seen[-1][0].total == Decimal("360.00")

    def test_expense_submitted_later_today_is_shown(self, view, seeded, clock, fake_now):
        """Test a save made after the view was built appears without refresh."""
        seen = []
        subscription = view.daily_totals.subscribe(seen.append)
        fake_now.set(NOW + timedelta(hours=3))

        entry = ExpenseEntryView(seeded, clock=clock)
        entry.on_title_change("Tea")
        entry.on_amount_change("10")
        result = asyncio.run(entry.submit())
        subscription.cancel()

        assert result.accepted
        assert seen[-1][0].day == date(2024, 5, 1)
        assert seen[-1][0].total == Decimal("360.00")

    def test_refresh_moves_window(self, view, fake_now):
        fake_now.set(NOW + timedelta(days=3))
        view.refresh()
        assert [t.day for t in view.daily_totals.value] == [date(2024, 5, 1), date(2024, 4, 29)]


class TestReportExport:
    """Tests for the plain-text export."""

    def test_export_text(self, view):
        assert view.export_text() == (
            "Expense Report (Last 7 Days)\n\n"
            "Wed, May 1: ₹350.00\n"
            "Mon, Apr 29: ₹1200.50\n"
            "Thu, Apr 25: ₹500.00\n"
        )

    def test_export_text_when_empty(self, repository, clock):
        assert ReportView(repository, clock=clock).export_text() == "Expense Report (Last 7 Days)\n\n"

    def test_export_hands_text_to_sink(self, view):
        sink = RecordingSink()
        text = asyncio.run(view.export(sink))
        assert sink.shared == [(text, TEXT_PLAIN)]
        assert text == view.export_text()

    def test_export_is_audited(self, seeded, clock, audit_storage):
        view = ReportView(seeded, clock=clock, audit_logger=AuditLogger(audit_storage))
        text = asyncio.run(view.export(RecordingSink()))

        [event] = asyncio.run(audit_storage.get_recent_events())
        assert event.event_type == AuditEventType.REPORT_EXPORTED
        assert event.details["day_count"] == 3
        assert event.details["byte_count"] == len(text.encode("utf-8"))

    def test_custom_window_and_symbol(self, seeded, clock):
        view = ReportView(seeded, clock=clock, window_days=1, currency_symbol="$")
        assert view.export_text() == "Expense Report (Last 1 Days)\n\nWed, May 1: $350.00\n"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
