"""
SQLite Preference Store

A tiny key-value store in the `preferences` table. The only key in use is
`theme_mode`, one of "light", "dark" or "system" (the default).
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from src.config import get_settings
from src.models.expense import ThemeMode
from src.reactive import LiveQuery
from src.services.storage.database import Database, preferences_table
from src.services.storage.interface import SettingsStoreInterface

logger = structlog.get_logger(__name__)

PREFERENCES = "preferences"
THEME_MODE_KEY = "theme_mode"


class SQLiteSettingsStore(SettingsStoreInterface):
    """Preference storage backed by the shared SQLite database."""

    def __init__(self, database: Database, stop_timeout: Optional[float] = None):
        self._db = database
        self._stop_timeout = (
            stop_timeout
            if stop_timeout is not None
            else get_settings().app.live_query_stop_timeout
        )

    def _read(self, key: str) -> Optional[str]:
        stmt = select(preferences_table.c.value).where(preferences_table.c.key == key)
        with self._db.transaction(f"read preference {key}") as conn:
            return conn.execute(stmt).scalar_one_or_none()

    def _write(self, key: str, value: str) -> None:
        stmt = sqlite_insert(preferences_table).values(key=key, value=value)
        stmt = stmt.on_conflict_do_update(
            index_elements=[preferences_table.c.key],
            set_={"value": value},
        )
        with self._db.transaction(f"write preference {key}") as conn:
            conn.execute(stmt)
        self._db.notify_changed([PREFERENCES])

    def _read_theme_mode(self) -> ThemeMode:
        return ThemeMode.parse(self._read(THEME_MODE_KEY))

    async def get_theme_mode(self) -> ThemeMode:
        return self._read_theme_mode()

    async def set_theme_mode(self, mode: ThemeMode) -> None:
        self._write(THEME_MODE_KEY, ThemeMode(mode).value)
        logger.debug("preference_written", key=THEME_MODE_KEY, value=ThemeMode(mode).value)

    def theme_mode(self) -> LiveQuery[ThemeMode]:
        return LiveQuery(
            self._read_theme_mode,
            notifier=self._db.notifier,
            tables=[PREFERENCES],
            stop_timeout=self._stop_timeout,
            name="theme_mode",
        )
