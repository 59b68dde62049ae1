"""
Clock and Time Policy

DESIGN DECISION: One timezone decides every day and hour boundary.
It comes from settings (EXPENSES_TIMEZONE) unless a caller passes one,
and "now" can be injected so day-boundary behaviour is deterministic
in tests.

Timestamps are integer milliseconds since the Unix epoch. Conversions go
through timedelta arithmetic rather than float seconds to stay exact.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Callable, Optional

from src.config import get_settings

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ONE_MS = timedelta(milliseconds=1)


def to_millis(moment: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds."""
    if moment.tzinfo is None:
        raise ValueError("Naive datetimes are ambiguous; attach a timezone first")
    return (moment - EPOCH) // ONE_MS


class Clock:
    """Supplies 'now' and converts between instants and local days/hours."""

    def __init__(
        self,
        tz: Optional[tzinfo] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.tz = tz or get_settings().app.tzinfo
        self._now = now

    def now(self) -> datetime:
        if self._now is None:
            return datetime.now(self.tz)
        moment = self._now()
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=self.tz)
        return moment.astimezone(self.tz)

    def now_millis(self) -> int:
        return to_millis(self.now())

    def today(self) -> date:
        return self.now().date()

    def to_local(self, millis: int) -> datetime:
        return (EPOCH + timedelta(milliseconds=millis)).astimezone(self.tz)

    def day_of(self, millis: int) -> date:
        return self.to_local(millis).date()

    def start_of_day(self, day: date) -> datetime:
        return datetime.combine(day, time.min, tzinfo=self.tz)

    def day_bounds(self, day: date) -> tuple[int, int]:
        """
        Inclusive millisecond bounds of a local calendar day.

        Returns (local midnight, next local midnight - 1 ms).
        """
        start = to_millis(self.start_of_day(day))
        end = to_millis(self.start_of_day(day + timedelta(days=1))) - 1
        return start, end

    def trailing_window(self, days: int) -> tuple[int, int]:
        """
        Bounds of a window covering `days` calendar days ending today.

        Runs from local midnight of (today - days + 1) to the last
        millisecond of today.
        """
        today = self.today()
        first_day = today - timedelta(days=days - 1)
        return to_millis(self.start_of_day(first_day)), self.day_bounds(today)[1]

    def hour_label(self, millis: int) -> str:
        """12-hour bucket label such as '08:00 PM'; midnight is '12:00 AM'."""
        hour = self.to_local(millis).hour
        suffix = "AM" if hour < 12 else "PM"
        return f"{hour % 12 or 12:02d}:00 {suffix}"
