"""
Main Orchestrator for the Expense Tracker

This module ties together all the components:
1. Settings → Clock (timezone policy)
2. Database → expense, preference and audit stores
3. Repository → entry, list, report and settings views

DESIGN DECISION: The orchestrator enforces the boundaries:
- Views only ever see the repository, never the store
- Every view shares one Clock, so all day boundaries agree
- Every write is audited through one AuditLogger

Presentation code builds one AppComponents at startup and reads the
views from it.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from src.audit import AuditLogger, configure_logging
from src.clock import Clock
from src.config import get_settings
from src.repository import ExpenseRepository
from src.services.storage import (
    Database,
    SQLiteAuditStorage,
    SQLiteExpenseStore,
    SQLiteSettingsStore,
)
from src.validation import ExpenseValidator
from src.views import ExpenseEntryView, ExpenseListView, ReportView, SettingsView

logger = structlog.get_logger(__name__)


@dataclass
class AppComponents:
    """Everything the presentation layer needs, wired together."""

    database: Database
    clock: Clock
    repository: ExpenseRepository
    settings_store: SQLiteSettingsStore
    audit_logger: AuditLogger
    entry: ExpenseEntryView
    expense_list: ExpenseListView
    report: ReportView
    settings: SettingsView

    def close(self) -> None:
        """Release the database engine."""
        self.database.dispose()


def create_app_components(
    database_url: Optional[str] = None,
    clock: Optional[Clock] = None,
    persist_audit_events: Optional[bool] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        database_url: Override for the configured database URL.
        clock: Clock to share across views. Defaults to the configured timezone.
        persist_audit_events: Override for appending audit events to the
                              database. False keeps audit logging local.

    Returns:
        AppComponents

    Raises:
        ConnectionError: If the database cannot be opened
        StorageError: If the schema cannot be initialized
    """
    app_settings = get_settings().app
    configure_logging(app_settings.log_level)

    if persist_audit_events is None:
        persist_audit_events = app_settings.persist_audit_events

    database = Database(database_url)
    clock = clock or Clock()

    expense_store = SQLiteExpenseStore(database, clock=clock)
    settings_store = SQLiteSettingsStore(database)
    repository = ExpenseRepository(expense_store)

    if persist_audit_events:
        audit_logger = AuditLogger(SQLiteAuditStorage(database))
    else:
        audit_logger = AuditLogger()  # Local-only logging

    components = AppComponents(
        database=database,
        clock=clock,
        repository=repository,
        settings_store=settings_store,
        audit_logger=audit_logger,
        entry=ExpenseEntryView(
            repository,
            clock=clock,
            validator=ExpenseValidator(repository),
            audit_logger=audit_logger,
        ),
        expense_list=ExpenseListView(repository, clock=clock, audit_logger=audit_logger),
        report=ReportView(repository, clock=clock, audit_logger=audit_logger),
        settings=SettingsView(settings_store, audit_logger=audit_logger),
    )

    logger.info(
        "app_components_created",
        database_url=database.database_url,
        timezone=str(clock.tz),
        persist_audit_events=persist_audit_events,
    )
    return components
