"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements SQLite (through SQLAlchemy Core) as the backend.
"""

from src.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    ExpenseStoreInterface,
    SettingsStoreInterface,
    StorageError,
)
from src.services.storage.database import SCHEMA_VERSION, Database
from src.services.storage.sqlite_store import SQLiteExpenseStore
from src.services.storage.preferences import THEME_MODE_KEY, SQLiteSettingsStore
from src.services.storage.audit_store import SQLiteAuditStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "ExpenseStoreInterface",
    "SettingsStoreInterface",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # SQLite implementation
    "Database",
    "SCHEMA_VERSION",
    "SQLiteAuditStorage",
    "SQLiteExpenseStore",
    "SQLiteSettingsStore",
    "THEME_MODE_KEY",
]
