"""Services package."""

from src.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    Database,
    ExpenseStoreInterface,
    SettingsStoreInterface,
    SQLiteAuditStorage,
    SQLiteExpenseStore,
    SQLiteSettingsStore,
    StorageError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "Database",
    "ExpenseStoreInterface",
    "SettingsStoreInterface",
    "SQLiteAuditStorage",
    "SQLiteExpenseStore",
    "SQLiteSettingsStore",
    "StorageError",
]
