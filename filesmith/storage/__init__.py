"""Small JSON-backed stores for user preferences that outlive a session."""

from filesmith.storage.settings import SettingsStore, UserSettings
from filesmith.storage.trust import TrustStore

__all__ = ["SettingsStore", "TrustStore", "UserSettings"]
