"""
Live Queries

A LiveQuery is a read whose result is re-delivered whenever the tables it
reads from change. Stores publish table names on a ChangeNotifier after
every committed write; each attached LiveQuery re-runs its query and
pushes the new result if it differs from the last one.

Lifetime:
- Attached to the notifier while at least one subscriber is present.
- After the last subscriber leaves it stays warm for `stop_timeout`
  seconds (when an event loop is running), then detaches and forgets
  its cached value. A later subscriber triggers a fresh query.
"""

import asyncio
from typing import Callable, Iterable, Optional, TypeVar

import structlog

from src.reactive.observable import _UNSET, Observable

T = TypeVar("T")

logger = structlog.get_logger(__name__)


class ChangeNotifier:
    """Fan-out of 'these tables changed' signals from stores to live queries."""

    def __init__(self):
        self._listeners: list[tuple[frozenset[str], Callable[[], None]]] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def add_listener(self, tables: Iterable[str], callback: Callable[[], None]) -> None:
        self._listeners.append((frozenset(tables), callback))

    def remove_listener(self, callback: Callable[[], None]) -> None:
        self._listeners = [
            (tables, listener)
            for tables, listener in self._listeners
            if listener != callback
        ]

    def notify(self, tables: Iterable[str]) -> None:
        changed = frozenset(tables)
        for watched, callback in list(self._listeners):
            if watched & changed:
                callback()


class LiveQuery(Observable[T]):
    """An Observable backed by a query that re-runs on table changes."""

    def __init__(
        self,
        query: Callable[[], T],
        notifier: ChangeNotifier,
        tables: Iterable[str],
        stop_timeout: float = 0.0,
        name: str = "live_query",
    ):
        super().__init__()
        self._query = query
        self._notifier = notifier
        self._tables = frozenset(tables)
        self._stop_timeout = stop_timeout
        self._name = name
        self._attached = False
        self._stop_handle: Optional[asyncio.TimerHandle] = None

    @property
    def is_attached(self) -> bool:
        return self._attached

    def _is_hot(self) -> bool:
        return self._attached and self._value is not _UNSET

    def _compute(self) -> T:
        return self._query()

    def refresh(self) -> None:
        """Re-run the query and deliver the result if it changed."""
        try:
            result = self._query()
        except Exception as e:
            # The write that triggered this refresh is already committed;
            # subscribers keep the last good value.
            logger.error("live_query_refresh_failed", query=self._name, error=str(e))
            return
        self._emit(result)

    def _on_active(self) -> None:
        if self._stop_handle is not None:
            self._stop_handle.cancel()
            self._stop_handle = None
        if not self._attached:
            # A failing first query leaves nothing attached.
            result = self._query()
            self._attached = True
            self._notifier.add_listener(self._tables, self.refresh)
            self._emit(result)
            logger.debug("live_query_started", query=self._name)

    def _on_inactive(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None or self._stop_timeout <= 0:
            self._teardown()
        else:
            self._stop_handle = loop.call_later(self._stop_timeout, self._teardown)

    def _teardown(self) -> None:
        self._stop_handle = None
        if self._subscribers or not self._attached:
            return
        self._notifier.remove_listener(self.refresh)
        self._attached = False
        self._value = _UNSET
        logger.debug("live_query_stopped", query=self._name)
