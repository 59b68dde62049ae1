"""
One-Shot Signals

DESIGN DECISION: Error and success notifications are not plain booleans.
Each is a slot holding at most one pending event. The presentation layer
reads it and must acknowledge it to clear the slot; until then, posting an
equal event does not re-deliver.
"""

from typing import Generic, Optional, TypeVar

from src.reactive.observable import Observable

T = TypeVar("T")


class OneShotSignal(Observable[Optional[T]], Generic[T]):
    """A single-slot inbox of pending events, drained by acknowledge()."""

    def __init__(self):
        super().__init__(None)

    @property
    def value(self) -> Optional[T]:
        return self._value

    @property
    def pending(self) -> Optional[T]:
        return self._value

    @property
    def has_pending(self) -> bool:
        return self._value is not None

    def post(self, event: T) -> None:
        """Replace the pending event with a new one."""
        self._emit(event)

    def acknowledge(self) -> Optional[T]:
        """Clear the slot and return the event that was pending."""
        event = self._value
        self._emit(None)
        return event
