"""Persisted user preferences (output folder, naming pattern)."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from filesmith.utils.file_utils import atomic_write_text, ensure_dir
from filesmith.utils.logging import get_logger

logger = get_logger(__name__)

SETTINGS_FILENAME = "settings.json"


class UserSettings(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    output_folder: str | None = None
    naming_pattern: str | None = None


class SettingsStore:
    """Reads and writes ``settings.json`` under the config directory.

    A missing or corrupt file yields empty settings; it is rewritten on the
    next save.
    """

    def __init__(self, config_dir: str | Path) -> None:
        self.path = Path(config_dir) / SETTINGS_FILENAME

    def load(self) -> UserSettings:
        if not self.path.exists():
            return UserSettings()
        try:
            return UserSettings.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            logger.warning("settings_unreadable", path=str(self.path), error=str(exc))
            return UserSettings()

    def save(self, data: UserSettings) -> None:
        ensure_dir(self.path.parent)
        atomic_write_text(self.path, data.model_dump_json(by_alias=True, indent=2))
        logger.debug("settings_saved", path=str(self.path))

    def update(self, **changes: str) -> UserSettings:
        current = self.load()
        updated = current.model_copy(update=changes)
        self.save(updated)
        return updated
