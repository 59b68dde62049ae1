"""Settings View: the persisted theme-mode preference."""

from typing import Optional

from src.audit import AuditLogger
from src.models.expense import ThemeMode
from src.reactive import Observable
from src.services.storage import SettingsStoreInterface


class SettingsView:
    """Exposes theme_mode as a live value and persists changes."""

    def __init__(
        self,
        store: SettingsStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self.theme_mode: Observable[ThemeMode] = store.theme_mode()

    async def set_theme_mode(self, mode: ThemeMode) -> None:
        new_mode = ThemeMode(mode)
        old_mode = await self._store.get_theme_mode()
        await self._store.set_theme_mode(new_mode)
        if self._audit_logger and old_mode != new_mode:
            await self._audit_logger.log_theme_changed(old_mode.value, new_mode.value)
