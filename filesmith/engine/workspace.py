"""On-disk layout for one session's working artifacts.

::

    <workspace_dir>/<session stamp>/<file id>/base.<ext>      immutable replay origin
    <workspace_dir>/<session stamp>/<file id>/rev-<hex>.<ext> derived revisions
"""

from __future__ import annotations

import shutil
import uuid
from datetime import datetime
from pathlib import Path

from filesmith.utils.file_utils import ensure_dir


def _session_stamp() -> str:
    return f"{datetime.now():%Y%m%d-%H%M%S}-{uuid.uuid4().hex[:6]}"


class Workspace:
    def __init__(self, workspace_dir: str | Path) -> None:
        self.base_dir = Path(workspace_dir)
        self.root = ensure_dir(self.base_dir / _session_stamp())

    def file_dir(self, file_id: str) -> Path:
        return self.root / file_id

    def ensure_file_dir(self, file_id: str) -> Path:
        return ensure_dir(self.file_dir(file_id))

    def base_path(self, file_id: str, extension: str) -> Path:
        name = f"base.{extension}" if extension else "base"
        return self.file_dir(file_id) / name

    def new_revision_path(self, file_id: str, extension: str) -> Path:
        stem = f"rev-{uuid.uuid4().hex[:12]}"
        return self.file_dir(file_id) / (f"{stem}.{extension}" if extension else stem)

    def owns(self, path: str | Path) -> bool:
        return Path(path).resolve().is_relative_to(self.root.resolve())

    def rotate(self) -> Path:
        """Switch to a fresh session directory and return the old one."""
        old = self.root
        self.root = ensure_dir(self.base_dir / _session_stamp())
        return old

    @staticmethod
    def discard(root: Path) -> None:
        shutil.rmtree(root, ignore_errors=True)
