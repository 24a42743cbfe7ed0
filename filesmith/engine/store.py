"""In-memory ownership of every working file in the session.

The store is the single point of visibility for derived state: callers read
copies, compute new state outside it, and publish with :meth:`commit`.
Writers to the same file serialise on that file's lock.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path

from filesmith.engine.models import WorkingFile
from filesmith.utils.exceptions import WorkingFileNotFoundError
from filesmith.utils.logging import get_logger

logger = get_logger("engine.store")


@dataclass
class _Entry:
    data: WorkingFile
    base_path: Path
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class WorkingFileStore:
    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}

    def add(self, data: WorkingFile, base_path: Path) -> WorkingFile:
        self._entries[data.id] = _Entry(data=data, base_path=base_path)
        logger.info("file_added", file_id=data.id, name=data.name, extension=data.extension)
        return data.model_copy(deep=True)

    def get(self, file_id: str) -> WorkingFile:
        return self._entry(file_id).data.model_copy(deep=True)

    def base_path(self, file_id: str) -> Path:
        return self._entry(file_id).base_path

    def lock(self, file_id: str) -> asyncio.Lock:
        """Per-file writer lock; hold it across read -> transform -> commit."""
        return self._entry(file_id).lock

    def commit(self, updated: WorkingFile) -> WorkingFile:
        """Publish *updated* as the file's new state.

        Raises :class:`WorkingFileNotFoundError` if the file was discarded
        (e.g. by ``clear``) while the caller was working on it.
        """
        entry = self._entry(updated.id)
        entry.data = updated.model_copy(deep=True)
        logger.debug(
            "file_committed",
            file_id=updated.id,
            history=len(updated.applied_skills),
            current_extension=updated.current_extension,
        )
        return updated

    def list_files(self) -> list[WorkingFile]:
        """All files in import order."""
        return [e.data.model_copy(deep=True) for e in self._entries.values()]

    def file_ids(self) -> list[str]:
        return list(self._entries)

    def clear(self) -> int:
        count = len(self._entries)
        self._entries = {}
        return count

    def _entry(self, file_id: str) -> _Entry:
        entry = self._entries.get(file_id)
        if entry is None:
            raise WorkingFileNotFoundError(file_id)
        return entry

    def __contains__(self, file_id: str) -> bool:
        return file_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
