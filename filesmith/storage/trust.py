"""Trust decisions for community skills that declare elevated permissions."""

from __future__ import annotations

import json
from pathlib import Path

from filesmith.utils.file_utils import atomic_write_text, ensure_dir
from filesmith.utils.logging import get_logger

logger = get_logger(__name__)

TRUST_FILENAME = "trust.json"


class TrustStore:
    def __init__(self, config_dir: str | Path) -> None:
        self.path = Path(config_dir) / TRUST_FILENAME

    def _read(self) -> dict[str, bool]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("trust_unreadable", path=str(self.path), error=str(exc))
            return {}
        trusted = raw.get("trustedSkills", {}) if isinstance(raw, dict) else {}
        return {str(k): bool(v) for k, v in trusted.items()}

    def is_trusted(self, skill_id: str) -> bool:
        return self._read().get(skill_id, False)

    def set_trusted(self, skill_id: str, trusted: bool) -> None:
        data = self._read()
        if trusted:
            data[skill_id] = True
        else:
            data.pop(skill_id, None)
        ensure_dir(self.path.parent)
        atomic_write_text(self.path, json.dumps({"trustedSkills": data}, indent=2))
        logger.info("skill_trust_changed", skill_id=skill_id, trusted=trusted)
