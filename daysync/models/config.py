"""Configuration models for the sync system."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Settings-store keys
CONFIG_KEY = "webdav_config"
LAST_SYNC_KEY = "last_sync_time"

# Keyring entry names
PASSWORD_SECRET = "webdav_password"
ENCRYPTION_KEY_SECRET = "encryption_key"

# Fields that older releases kept inline in the config record
LEGACY_PASSWORD_FIELD = "password"
LEGACY_KEY_FIELD = "encryptionKey"

DEFAULT_KEYRING_SERVICE = "daysync"


@dataclass
class SyncConfig:
    """Non-secret WebDAV sync configuration.

    Secrets are referenced by fixed keyring names, never stored here.
    """

    url: str = ""
    username: str = ""
    enabled: bool = False
    encryption_enabled: bool = False

    @property
    def is_active(self) -> bool:
        """True when sync is switched on and points somewhere."""
        return self.enabled and bool(self.url)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted JSON record."""
        return {
            "url": self.url,
            "username": self.username,
            "enabled": self.enabled,
            "encryptionEnabled": self.encryption_enabled,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncConfig":
        """Create from a persisted record, ignoring unknown or legacy fields."""
        return cls(
            url=(data.get("url") or "").strip(),
            username=(data.get("username") or "").strip(),
            enabled=bool(data.get("enabled", False)),
            encryption_enabled=bool(data.get("encryptionEnabled", False)),
        )


@dataclass
class AppSettings:
    """Filesystem locations and keyring service for one diary."""

    home: Path
    keyring_service: str = DEFAULT_KEYRING_SERVICE

    @property
    def diary_dir(self) -> Path:
        return self.home / "diary"

    @property
    def settings_dir(self) -> Path:
        return self.home / ".settings"

    @classmethod
    def from_env(cls, home: str | None = None) -> "AppSettings":
        """Resolve settings from arguments, environment, or defaults.

        Args:
            home: Data directory (or load from DAYSYNC_HOME env)

        Returns:
            AppSettings instance
        """
        load_dotenv()

        resolved = home or os.getenv("DAYSYNC_HOME") or str(Path.home() / ".daysync")
        service = os.getenv("DAYSYNC_KEYRING_SERVICE", DEFAULT_KEYRING_SERVICE)
        return cls(home=Path(resolved).expanduser(), keyring_service=service)
