"""Shared fixtures: a throwaway SQLite file and a clock pinned in time."""

from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from src.clock import Clock, to_millis
from src.config import get_settings
from src.models.expense import Expense, ExpenseCategory
from src.repository import ExpenseRepository
from src.services.storage import (
    Database,
    SQLiteAuditStorage,
    SQLiteExpenseStore,
    SQLiteSettingsStore,
)

KOLKATA = ZoneInfo("Asia/Kolkata")

# Wednesday 2024-05-01, 12:00 local time
NOON_MAY_1 = datetime(2024, 5, 1, 12, 0, tzinfo=KOLKATA)


class FakeNow:
    """Mutable 'now' for a Clock; tests move it with set()."""

    def __init__(self, moment: datetime):
        self.moment = moment

    def set(self, moment: datetime) -> None:
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    """Keep tests independent of the developer's environment and .env file."""
    for name in (
        "EXPENSES_TIMEZONE",
        "EXPENSES_DATABASE_URL",
        "EXPENSES_MAX_NOTES_LENGTH",
        "EXPENSES_REPORT_WINDOW_DAYS",
        "EXPENSES_CURRENCY_SYMBOL",
        "EXPENSES_LIVE_QUERY_STOP_TIMEOUT",
        "EXPENSES_PERSIST_AUDIT_EVENTS",
        "EXPENSES_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_now():
    return FakeNow(NOON_MAY_1)


@pytest.fixture
def clock(fake_now):
    return Clock(tz=KOLKATA, now=fake_now)


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'expenses.db'}")
    yield db
    db.dispose()


@pytest.fixture
def store(database, clock):
    return SQLiteExpenseStore(database, clock=clock, stop_timeout=0.0)


@pytest.fixture
def repository(store):
    return ExpenseRepository(store)


@pytest.fixture
def settings_store(database):
    return SQLiteSettingsStore(database, stop_timeout=0.0)


@pytest.fixture
def audit_storage(database):
    return SQLiteAuditStorage(database)


@pytest.fixture
def make_expense():
    """Build an unsaved Expense; `at` is an aware datetime."""

    def _make(
        title="Lunch",
        amount="250.00",
        category=ExpenseCategory.FOOD,
        at=NOON_MAY_1,
        notes=None,
        expense_id=None,
    ):
        return Expense(
            id=expense_id,
            title=title,
            amount=Decimal(amount),
            category=category,
            notes=notes,
            timestamp=to_millis(at),
        )

    return _make
