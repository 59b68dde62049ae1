"""
SQLite Database Handle

Owns the SQLAlchemy engine, the table definitions and the ChangeNotifier
that live queries listen on.

DESIGN DECISION: There is no migration framework. The schema carries a
version number in `schema_meta`; when it does not match the code, every
table is dropped and recreated. This is acceptable for single-device,
non-critical data.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional

import structlog
from sqlalchemy import (
    CheckConstraint,
    Column,
    Connection,
    Engine,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    event,
    select,
)
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError

from src.config import get_settings
from src.reactive import ChangeNotifier
from src.services.storage.interface import ConnectionError, StorageError

logger = structlog.get_logger(__name__)

SCHEMA_VERSION = 1

metadata = MetaData()

expenses_table = Table(
    "expenses",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("title", String, nullable=False),
    Column("amount_cents", Integer, nullable=False),
    Column("category", String, nullable=False),
    Column("notes", String, nullable=True),
    Column("receipt_image_ref", String, nullable=True),
    Column("timestamp", Integer, nullable=False),
    CheckConstraint("amount_cents > 0", name="ck_expenses_amount_positive"),
    CheckConstraint("length(trim(title)) > 0", name="ck_expenses_title_not_blank"),
    Index("idx_expenses_timestamp", "timestamp"),
    sqlite_autoincrement=True,
)

preferences_table = Table(
    "preferences",
    metadata,
    Column("key", String, primary_key=True),
    Column("value", String, nullable=False),
)

audit_log_table = Table(
    "audit_log",
    metadata,
    Column("event_id", String, primary_key=True),
    Column("timestamp", String, nullable=False),
    Column("event_type", String, nullable=False),
    Column("severity", String, nullable=False),
    Column("entity_type", String, nullable=True),
    Column("entity_id", String, nullable=True),
    Column("correlation_id", String, nullable=True),
    Column("description", String, nullable=False),
    Column("details_json", String, nullable=False, default="{}"),
    Column("error_message", String, nullable=True),
    Column("is_user_action", Integer, nullable=False, default=0),
    Index("idx_audit_correlation_id", "correlation_id"),
    Index("idx_audit_entity", "entity_type", "entity_id"),
)

# Kept outside `metadata` so dropping the data tables never loses it
_meta_metadata = MetaData()

schema_meta_table = Table(
    "schema_meta",
    _meta_metadata,
    Column("key", String, primary_key=True),
    Column("value", String, nullable=False),
)


def _ensure_sqlite_directory(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return
    database = url.database
    if not database or database == ":memory:" or database.startswith("file:"):
        return
    Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)


class Database:
    """
    Engine plus change notification for the local expense database.

    Usage:
        db = Database("sqlite:///data/expenses.db")
        with db.transaction("save expense") as conn:
            conn.execute(...)
        db.notify_changed(["expenses"])
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        notifier: Optional[ChangeNotifier] = None,
        init_schema: bool = True,
    ):
        self.database_url = database_url or get_settings().app.database_url
        self.notifier = notifier or ChangeNotifier()
        self.engine = self._create_engine()
        if init_schema:
            self.init_schema()

    def _create_engine(self) -> Engine:
        try:
            _ensure_sqlite_directory(self.database_url)
            engine = create_engine(
                self.database_url,
                connect_args={"check_same_thread": False, "timeout": 30},
            )
        except (SQLAlchemyError, OSError) as e:
            raise ConnectionError(f"Failed to open database {self.database_url}: {e}") from e

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.execute("PRAGMA busy_timeout=5000;")
            cursor.close()

        return engine

    @contextmanager
    def transaction(self, operation: str) -> Iterator[Connection]:
        """
        Run a block in one transaction.

        Commits on success, rolls back on error. Database errors are
        re-raised as StorageError naming the failed operation.
        """
        try:
            with self.engine.begin() as conn:
                yield conn
        except SQLAlchemyError as e:
            logger.error("database_error", operation=operation, error=str(e))
            raise StorageError(f"Failed to {operation}: {e}") from e

    def notify_changed(self, tables: Iterable[str]) -> None:
        """Tell live queries that committed data in `tables` changed."""
        self.notifier.notify(tables)

    def init_schema(self) -> None:
        """Create tables, wiping them first if the stored schema version differs."""
        with self.transaction("initialize schema") as conn:
            _meta_metadata.create_all(conn)
            stored = conn.execute(
                select(schema_meta_table.c.value).where(schema_meta_table.c.key == "version")
            ).scalar_one_or_none()

            if stored is not None and stored != str(SCHEMA_VERSION):
                logger.warning(
                    "schema_version_mismatch",
                    stored_version=stored,
                    expected_version=SCHEMA_VERSION,
                )
                metadata.drop_all(conn)

            metadata.create_all(conn)

            if stored != str(SCHEMA_VERSION):
                conn.execute(schema_meta_table.delete().where(schema_meta_table.c.key == "version"))
                conn.execute(
                    schema_meta_table.insert().values(key="version", value=str(SCHEMA_VERSION))
                )

        logger.debug("schema_initialized", version=SCHEMA_VERSION)

    def dispose(self) -> None:
        self.engine.dispose()
