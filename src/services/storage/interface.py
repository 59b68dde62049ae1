"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep views and the entry workflow decoupled from SQLite
2. Use a throwaway database file in tests
3. Swap the backend later without touching business logic

Writes are coroutines. Reads return LiveQuery objects: live views that
re-deliver their result whenever the underlying table changes, rather
than one-shot snapshots.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from src.models.audit import AuditEvent
from src.models.expense import (
    CategoryTotal,
    DailyTotal,
    Expense,
    ExpenseCategory,
    ThemeMode,
)
from src.reactive import LiveQuery


class ExpenseStoreInterface(ABC):
    """
    Abstract interface for expense storage operations.

    Any storage implementation must implement these methods.
    Day arguments are local calendar days in the configured timezone;
    millisecond bounds are inclusive on both ends.
    """

    @abstractmethod
    async def insert(self, expense: Expense) -> int:
        """
        Persist an expense and return its id.

        Args:
            expense: The expense to save. If it already carries an id,
                     the row with that id is replaced.

        Returns:
            The id of the stored row

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, expense: Expense) -> bool:
        """
        Delete an expense by id.

        Args:
            expense: The expense to remove

        Returns:
            True if a row was removed, False if it was already absent
        """
        pass

    @abstractmethod
    def query_by_day(self, day: date) -> LiveQuery[list[Expense]]:
        """Expenses on a local day, newest first."""
        pass

    @abstractmethod
    def query_by_category_and_day(
        self,
        category: ExpenseCategory,
        day: date,
    ) -> LiveQuery[list[Expense]]:
        """Expenses of one category on a local day, newest first."""
        pass

    @abstractmethod
    def sum_by_day(self, day: date) -> LiveQuery[Optional[Decimal]]:
        """Total spent on a local day; None when nothing was recorded."""
        pass

    @abstractmethod
    def query_all(self) -> LiveQuery[list[Expense]]:
        """Every expense, newest first."""
        pass

    @abstractmethod
    def query_range(self, start_millis: int, end_millis: int) -> LiveQuery[list[Expense]]:
        """Expenses with start <= timestamp <= end, newest first."""
        pass

    @abstractmethod
    async def count_duplicates(self, title: str, amount: Decimal, day: date) -> int:
        """
        Count expenses with this exact title and amount on a local day.

        Args:
            title: Title to match exactly
            amount: Amount to match exactly
            day: Local calendar day

        Returns:
            Number of matching rows
        """
        pass

    @abstractmethod
    def category_totals(
        self,
        start_millis: int,
        end_millis: int,
    ) -> LiveQuery[list[CategoryTotal]]:
        """Per-category sums in a window; categories with no rows are omitted."""
        pass

    @abstractmethod
    def daily_totals(
        self,
        start_millis: int,
        end_millis: int,
    ) -> LiveQuery[list[DailyTotal]]:
        """Per-local-day sums in a window, oldest day first."""
        pass


class SettingsStoreInterface(ABC):
    """
    Abstract interface for the preference store.

    Holds a single scalar today: the theme mode.
    """

    @abstractmethod
    async def get_theme_mode(self) -> ThemeMode:
        """Read the stored theme mode, SYSTEM if never set."""
        pass

    @abstractmethod
    async def set_theme_mode(self, mode: ThemeMode) -> None:
        """
        Persist the theme mode.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def theme_mode(self) -> LiveQuery[ThemeMode]:
        """Live view of the stored theme mode."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one submit attempt).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not open the storage backend."""
    pass
