"""Process-wide session configuration with an explicit lifecycle."""

from __future__ import annotations

from filesmith.engine.models import Mode, SessionSnapshot
from filesmith.storage.settings import SettingsStore
from filesmith.utils.exceptions import InvalidModeError
from filesmith.utils.logging import get_logger

logger = get_logger("engine.session")


class SessionManager:
    """Sole owner of the :class:`SessionSnapshot`.

    *defaults* is the configuration-level snapshot restored by
    :meth:`reset`.  Persisted user preferences, when a *settings_store* is
    given, are layered on top at construction time and written back
    whenever the output folder or naming pattern changes.
    """

    def __init__(
        self,
        defaults: SessionSnapshot | None = None,
        settings_store: SettingsStore | None = None,
    ) -> None:
        self._defaults = (defaults or SessionSnapshot()).model_copy()
        self._settings_store = settings_store
        self._snapshot = self._defaults.model_copy()

        if settings_store is not None:
            saved = settings_store.load()
            if saved.output_folder is not None:
                self._snapshot.output_folder = saved.output_folder
            if saved.naming_pattern:
                self._snapshot.naming_pattern = saved.naming_pattern

    def snapshot(self) -> SessionSnapshot:
        return self._snapshot.model_copy()

    def set_mode(self, mode: str | Mode) -> SessionSnapshot:
        try:
            new_mode = Mode(mode)
        except ValueError:
            raise InvalidModeError(str(mode)) from None

        previous = self._snapshot.mode
        self._snapshot.mode = new_mode
        logger.info("session_mode_changed", previous=previous.value, mode=new_mode.value)
        return self.snapshot()

    def set_output_folder(self, folder: str) -> SessionSnapshot:
        self._snapshot.output_folder = folder.strip()
        self._persist()
        logger.info("session_output_folder_changed", output_folder=self._snapshot.output_folder)
        return self.snapshot()

    def set_naming_pattern(self, pattern: str) -> SessionSnapshot:
        """Replace the naming template; a blank pattern is ignored."""
        if pattern.strip():
            self._snapshot.naming_pattern = pattern.strip()
            self._persist()
            logger.info("session_naming_pattern_changed", naming_pattern=self._snapshot.naming_pattern)
        return self.snapshot()

    def reset(self) -> SessionSnapshot:
        """Back to configuration defaults; persisted preferences are left alone."""
        self._snapshot = self._defaults.model_copy()
        logger.info("session_reset")
        return self.snapshot()

    def _persist(self) -> None:
        if self._settings_store is None:
            return
        self._settings_store.update(
            output_folder=self._snapshot.output_folder,
            naming_pattern=self._snapshot.naming_pattern,
        )
