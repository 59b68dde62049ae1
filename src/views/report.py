"""
Report View

Trailing-window analytics: daily totals, category totals, chart rows and a
plain-text export.

DESIGN DECISION: The window covers whole local days, from midnight of the
first day through the end of today, and is fixed when the view is built.
Anything saved later today lands inside it. refresh() rolls the window
forward once the view stays open past midnight.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

import structlog

from src.audit import AuditLogger
from src.clock import Clock
from src.config import get_settings
from src.models.expense import CENT, CategoryTotal, ChartBar, DailyTotal
from src.queries import aggregations
from src.reactive import MutableState, Observable, derive, switch_map
from src.repository import ExpenseRepository

logger = structlog.get_logger(__name__)

TEXT_PLAIN = "text/plain"


class ExportSink(ABC):
    """
    Receives an exported report.

    Delivery (share sheet, file, clipboard) is up to the implementation.
    """

    @abstractmethod
    async def share(self, text: str, mime_type: str) -> None:
        """Hand over a UTF-8 text blob with its MIME type."""
        pass


class ReportView:
    """
    View state for the report screen.

    Observable state:
        window: (start_millis, end_millis) currently reported on
        daily_totals: one entry per day with spending, most recent first
        category_totals: one entry per category with spending, enum order
        chart_bars: daily totals scaled against the largest day
        total_amount: sum over the whole window
    """

    def __init__(
        self,
        repository: ExpenseRepository,
        clock: Optional[Clock] = None,
        audit_logger: Optional[AuditLogger] = None,
        window_days: Optional[int] = None,
        currency_symbol: Optional[str] = None,
    ):
        settings = get_settings().app
        self._repository = repository
        self._clock = clock or Clock()
        self._audit_logger = audit_logger
        self._window_days = window_days or settings.report_window_days
        self._currency_symbol = currency_symbol or settings.currency_symbol

        self.window = MutableState(self._clock.trailing_window(self._window_days))

        self.daily_totals: Observable[list[DailyTotal]] = switch_map(
            self.window,
            lambda window: derive(
                [self._repository.daily_totals(*window)],
                aggregations.most_recent_first,
            ),
        )
        self.category_totals: Observable[list[CategoryTotal]] = switch_map(
            self.window,
            lambda window: self._repository.category_totals(*window),
        )
        self.chart_bars: Observable[list[ChartBar]] = derive(
            [self.daily_totals],
            aggregations.chart_bars,
        )
        self.total_amount: Observable[Decimal] = derive(
            [self.daily_totals],
            lambda totals: sum((day.total for day in totals), Decimal("0")).quantize(CENT),
        )

    @property
    def window_days(self) -> int:
        return self._window_days

    def refresh(self) -> None:
        """Recompute the window from the clock."""
        self.window.value = self._clock.trailing_window(self._window_days)

    def export_text(self) -> str:
        return aggregations.render_report_text(
            self.daily_totals.value,
            currency_symbol=self._currency_symbol,
            days=self._window_days,
        )

    async def export(self, sink: ExportSink) -> str:
        """
        Render the report and hand it to the sink.

        Returns:
            The exported text
        """
        totals = self.daily_totals.value
        text = aggregations.render_report_text(
            totals,
            currency_symbol=self._currency_symbol,
            days=self._window_days,
        )
        await sink.share(text, TEXT_PLAIN)

        byte_count = len(text.encode("utf-8"))
        logger.info("report_exported", day_count=len(totals), byte_count=byte_count)
        if self._audit_logger:
            await self._audit_logger.log_report_exported(
                day_count=len(totals),
                byte_count=byte_count,
                mime_type=TEXT_PLAIN,
            )
        return text
