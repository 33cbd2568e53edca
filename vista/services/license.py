"""
License key provider.

The entitlement subsystem (activation, tier checks) lives outside this
package. The API client only needs the caller's license token; an empty
token makes the proxy answer with demo data.
"""

from typing import Protocol

from vista.constants import LICENSE_KEY_SETTING, LICENSE_TIER_SETTING, LICENSE_VALID_SETTING
from vista.services.settings_store import SettingsStore


class LicenseProvider(Protocol):
    def get_key(self) -> str:
        ...


class StaticLicense:
    """Fixed license token, e.g. from the CLI or tests."""

    def __init__(self, key: str = ""):
        self.key = key

    def get_key(self) -> str:
        return self.key


class StoredLicense:
    """License key/validity/tier read from the settings store."""

    def __init__(self, settings: SettingsStore):
        self.settings = settings

    def get_key(self) -> str:
        return self.settings.get(LICENSE_KEY_SETTING, "")

    @property
    def is_valid(self) -> bool:
        return self.settings.get(LICENSE_VALID_SETTING, "").lower() in ("1", "true", "yes")

    @property
    def tier(self) -> str:
        return self.settings.get(LICENSE_TIER_SETTING, "")
