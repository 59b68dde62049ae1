"""Integration tests for the SQLite stores against a temporary database file."""

import asyncio
from datetime import date, datetime, timedelta
from decimal import Decimal
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import select, update

from src.models.audit import AuditEventBuilder
from src.models.expense import ExpenseCategory, ThemeMode
from src.services.storage import (
    SCHEMA_VERSION,
    ConnectionError,
    Database,
    StorageError,
)
from src.services.storage.database import schema_meta_table

KOLKATA = ZoneInfo("Asia/Kolkata")
MAY_1 = date(2024, 5, 1)


def at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=KOLKATA)


class TestDatabase:
    """Tests for engine setup and schema versioning."""

    def test_creates_parent_directory(self, tmp_path):
        db = Database(f"sqlite:///{tmp_path / 'nested' / 'dir' / 'expenses.db'}")
        try:
            assert (tmp_path / "nested" / "dir" / "expenses.db").exists()
        finally:
            db.dispose()

    def test_schema_version_recorded(self, database):
        with database.transaction("read version") as conn:
            stored = conn.execute(
                select(schema_meta_table.c.value).where(schema_meta_table.c.key == "version")
            ).scalar_one()
        assert stored == str(SCHEMA_VERSION)

    def test_version_mismatch_wipes_data(self, tmp_path, make_expense, clock):
        """Test that an unknown stored schema version recreates the tables."""
        from src.services.storage import SQLiteExpenseStore

        url = f"sqlite:///{tmp_path / 'old.db'}"
        db = Database(url)
        store = SQLiteExpenseStore(db, clock=clock, stop_timeout=0.0)
        asyncio.run(store.insert(make_expense()))
        with db.transaction("fake old version") as conn:
            conn.execute(
                update(schema_meta_table)
                .where(schema_meta_table.c.key == "version")
                .values(value="0")
            )
        db.dispose()

        reopened = Database(url)
        try:
            store = SQLiteExpenseStore(reopened, clock=clock, stop_timeout=0.0)
            assert store.query_all().value == []
        finally:
            reopened.dispose()

    def test_reopen_keeps_data(self, tmp_path, make_expense, clock):
        from src.services.storage import SQLiteExpenseStore

        url = f"sqlite:///{tmp_path / 'keep.db'}"
        db = Database(url)
        asyncio.run(SQLiteExpenseStore(db, clock=clock).insert(make_expense()))
        db.dispose()

        reopened = Database(url)
        try:
            assert len(SQLiteExpenseStore(reopened, clock=clock).query_all().value) == 1
        finally:
            reopened.dispose()

    def test_unsupported_url_raises_connection_error(self):
        with pytest.raises(ConnectionError):
            Database("notadialect://nowhere")

    def test_connection_error_is_storage_error(self):
        assert issubclass(ConnectionError, StorageError)


class TestExpenseStoreWrites:
    """Tests for insert and delete."""

    def test_insert_assigns_increasing_ids(self, store, make_expense):
        first = asyncio.run(store.insert(make_expense(title="Tea")))
        second = asyncio.run(store.insert(make_expense(title="Coffee")))
        assert first >= 1
        assert second > first

    def test_insert_round_trip_fields(self, store, make_expense):
        """Test a stored expense reads back with the same fields."""
        expense = make_expense(
            title="Cab",
            amount="120.50",
            category=ExpenseCategory.TRAVEL,
            notes="Airport",
        )
        expense_id = asyncio.run(store.insert(expense))

        [stored] = store.query_by_day(MAY_1).value
        assert stored == expense.with_id(expense_id)
        assert stored.amount == Decimal("120.50")

    def test_insert_with_id_replaces_row(self, store, make_expense):
        """Test upsert-by-id keeps one row with the new values."""
        expense_id = asyncio.run(store.insert(make_expense(title="Tea")))
        asyncio.run(store.insert(make_expense(title="Green tea", expense_id=expense_id)))

        rows = store.query_all().value
        assert [(e.id, e.title) for e in rows] == [(expense_id, "Green tea")]

    def test_ids_are_never_reused(self, store, make_expense):
        first = asyncio.run(store.insert(make_expense(title="Tea")))
        asyncio.run(store.delete(make_expense(expense_id=first)))
        second = asyncio.run(store.insert(make_expense(title="Coffee")))
        assert second > first

    def test_delete_removes_row(self, store, make_expense):
        expense_id = asyncio.run(store.insert(make_expense()))
        assert asyncio.run(store.delete(make_expense(expense_id=expense_id))) is True
        assert store.query_all().value == []

    def test_delete_missing_row_is_a_no_op(self, store, make_expense):
        """Test deleting an absent record changes nothing and raises nothing."""
        asyncio.run(store.insert(make_expense()))
        assert asyncio.run(store.delete(make_expense(expense_id=999))) is False
        assert asyncio.run(store.delete(make_expense())) is False
        assert len(store.query_all().value) == 1


class TestExpenseStoreReads:
    """Tests for point and range queries."""

    def test_query_by_day_respects_local_midnight(self, store, make_expense):
        asyncio.run(store.insert(make_expense(title="Late", at=at(MAY_1, 23, 59))))
        asyncio.run(store.insert(make_expense(title="Early", at=at(MAY_1, 0, 0))))
        asyncio.run(store.insert(make_expense(title="Next", at=at(MAY_1 + timedelta(days=1), 0, 0))))
        asyncio.run(store.insert(make_expense(title="Prev", at=at(MAY_1, 0) - timedelta(milliseconds=1))))

        titles = [e.title for e in store.query_by_day(MAY_1).value]
        assert titles == ["Late", "Early"]

    def test_same_timestamp_orders_by_id_descending(self, store, make_expense):
        asyncio.run(store.insert(make_expense(title="A")))
        asyncio.run(store.insert(make_expense(title="B")))
        assert [e.title for e in store.query_by_day(MAY_1).value] == ["B", "A"]

    def test_query_by_category_and_day(self, store, make_expense):
        asyncio.run(store.insert(make_expense(title="Lunch", category=ExpenseCategory.FOOD)))
        asyncio.run(store.insert(make_expense(title="Cab", category=ExpenseCategory.TRAVEL)))
        asyncio.run(store.insert(make_expense(
            title="Dinner",
            category=ExpenseCategory.FOOD,
            at=at(MAY_1 + timedelta(days=1), 20),
        )))

        rows = store.query_by_category_and_day(ExpenseCategory.FOOD, MAY_1).value
        assert [e.title for e in rows] == ["Lunch"]

    def test_sum_by_day(self, store, make_expense):
        assert store.sum_by_day(MAY_1).value is None

        asyncio.run(store.insert(make_expense(amount="250.00")))
        asyncio.run(store.insert(make_expense(title="Tea", amount="0.10")))
        asyncio.run(store.insert(make_expense(title="Tea", amount="0.20")))
        assert store.sum_by_day(MAY_1).value == Decimal("250.30")

    def test_query_range_is_inclusive(self, store, make_expense):
        expense = make_expense()
        asyncio.run(store.insert(expense))
        ts = expense.timestamp

        assert len(store.query_range(ts, ts).value) == 1
        assert store.query_range(ts + 1, ts + 10).value == []

    def test_count_duplicates(self, store, make_expense):
        """Test duplicates match title and amount on the same day only."""
        asyncio.run(store.insert(make_expense(title="Lunch", amount="250")))

        assert asyncio.run(store.count_duplicates("Lunch", Decimal("250.00"), MAY_1)) == 1
        assert asyncio.run(store.count_duplicates("Lunch", Decimal("250.01"), MAY_1)) == 0
        assert asyncio.run(store.count_duplicates("lunch", Decimal("250"), MAY_1)) == 0
        assert asyncio.run(
            store.count_duplicates("Lunch", Decimal("250"), MAY_1 + timedelta(days=1))
        ) == 0


class TestExpenseStoreAggregates:
    """Tests for category and daily totals."""

    def test_category_totals_in_enum_order(self, store, make_expense, clock):
        asyncio.run(store.insert(make_expense(amount="100", category=ExpenseCategory.UTILITY)))
        asyncio.run(store.insert(make_expense(amount="50", category=ExpenseCategory.FOOD)))
        asyncio.run(store.insert(make_expense(amount="25", category=ExpenseCategory.FOOD)))

        start, end = clock.day_bounds(MAY_1)
        totals = store.category_totals(start, end).value

        assert [(t.category, t.total) for t in totals] == [
            (ExpenseCategory.FOOD, Decimal("75.00")),
            (ExpenseCategory.UTILITY, Decimal("100.00")),
        ]

    def test_daily_totals_group_by_local_day(self, store, make_expense, clock):
        """Test grouping uses the clock's timezone, oldest day first."""
        asyncio.run(store.insert(make_expense(amount="10", at=at(MAY_1, 0, 30))))
        asyncio.run(store.insert(make_expense(amount="5", at=at(MAY_1, 23, 30))))
        asyncio.run(store.insert(make_expense(amount="7", at=at(date(2024, 4, 29), 8))))

        start, _ = clock.day_bounds(date(2024, 4, 25))
        _, end = clock.day_bounds(MAY_1)
        totals = store.daily_totals(start, end).value

        assert [(t.day, t.total) for t in totals] == [
            (date(2024, 4, 29), Decimal("7.00")),
            (MAY_1, Decimal("15.00")),
        ]


class TestLiveUpdates:
    """Tests that live queries follow committed writes."""

    def test_subscriber_sees_inserts_and_deletes(self, store, make_expense):
        seen = []
        subscription = store.query_by_day(MAY_1).subscribe(
            lambda rows: seen.append([e.title for e in rows])
        )

        expense_id = asyncio.run(store.insert(make_expense(title="Lunch")))
        asyncio.run(store.delete(make_expense(expense_id=expense_id)))
        subscription.cancel()

        assert seen == [[], ["Lunch"], []]

    def test_insert_on_other_day_does_not_redeliver(self, store, make_expense):
        seen = []
        store.query_by_day(MAY_1).subscribe(seen.append)
        asyncio.run(store.insert(make_expense(at=at(date(2024, 5, 3), 9))))
        assert seen == [[]]


class TestSettingsStore:
    """Tests for the theme-mode preference."""

    def test_default_is_system(self, settings_store):
        assert asyncio.run(settings_store.get_theme_mode()) == ThemeMode.SYSTEM

    def test_set_and_get(self, settings_store):
        asyncio.run(settings_store.set_theme_mode(ThemeMode.DARK))
        asyncio.run(settings_store.set_theme_mode(ThemeMode.LIGHT))
        assert asyncio.run(settings_store.get_theme_mode()) == ThemeMode.LIGHT

    def test_unknown_stored_value_falls_back(self, settings_store, database):
        from src.services.storage.database import preferences_table

        with database.transaction("corrupt preference") as conn:
            conn.execute(preferences_table.insert().values(key="theme_mode", value="sepia"))
        assert asyncio.run(settings_store.get_theme_mode()) == ThemeMode.SYSTEM

    def test_live_theme_mode(self, settings_store):
        seen = []
        settings_store.theme_mode().subscribe(seen.append)
        asyncio.run(settings_store.set_theme_mode(ThemeMode.DARK))
        assert seen == [ThemeMode.SYSTEM, ThemeMode.DARK]


class TestAuditStorage:
    """Tests for the append-only audit log."""

    def test_append_and_read_back(self, audit_storage):
        correlation_id = uuid4()
        saved = AuditEventBuilder.expense_saved(
            expense_id=1,
            title="Lunch",
            amount="250.00",
            category="Food",
            correlation_id=correlation_id,
        )
        rejected = AuditEventBuilder.submission_rejected(
            kind="duplicate_expense",
            message="Duplicate expense detected",
            correlation_id=correlation_id,
        )
        assert asyncio.run(audit_storage.append_event(saved)) is True
        assert asyncio.run(audit_storage.append_event(rejected)) is True

        events = asyncio.run(audit_storage.get_events_by_correlation_id(correlation_id))
        assert [e.event_id for e in events] == [saved.event_id, rejected.event_id]
        assert events[0].details["title"] == "Lunch"

        by_entity = asyncio.run(audit_storage.get_events_by_entity("expense", "1"))
        assert [e.event_id for e in by_entity] == [saved.event_id]

    def test_recent_events_newest_first(self, audit_storage):
        first = AuditEventBuilder.theme_changed("system", "dark")
        second = AuditEventBuilder.theme_changed("dark", "light")
        second = second.model_copy(update={"timestamp": first.timestamp + timedelta(seconds=1)})
        asyncio.run(audit_storage.append_event(first))
        asyncio.run(audit_storage.append_event(second))

        recent = asyncio.run(audit_storage.get_recent_events(limit=1))
        assert [e.event_id for e in recent] == [second.event_id]

    def test_append_failure_returns_false(self, audit_storage, database):
        """Test that a broken audit table does not raise."""
        with database.transaction("drop audit table") as conn:
            conn.exec_driver_sql("DROP TABLE audit_log")

        event = AuditEventBuilder.theme_changed("system", "dark")
        assert asyncio.run(audit_storage.append_event(event)) is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
