"""File-backed settings store with a read-through cache."""

import json
import logging
import re
import shutil
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Exception raised when the local filesystem rejects an operation."""


class SettingsStore:
    """Stores each setting as its own JSON file in a settings directory.

    Values are cached after the first read. There is no locking; a single
    foreground caller is assumed.
    """

    def __init__(self, settings_dir: Path) -> None:
        """Initialize settings store.

        Args:
            settings_dir: Directory holding one ``<key>.json`` file per setting
        """
        self.settings_dir = Path(settings_dir)
        self._cache: dict[str, str] = {}

    def _path_for(self, key: str) -> Path:
        """Map a key to a filesystem-safe file path."""
        safe_key = re.sub(r"[^a-zA-Z0-9_-]", "_", key)
        return self.settings_dir / f"{safe_key}.json"

    def get_item(self, key: str) -> str | None:
        """Read a raw string value, or None if unset or unreadable."""
        if key in self._cache:
            return self._cache[key]

        path = self._path_for(key)
        if not path.exists():
            return None

        try:
            value = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("Error reading setting %s: %s", key, e)
            return None

        self._cache[key] = value
        return value

    def set_item(self, key: str, value: str) -> None:
        """Write a raw string value."""
        try:
            self.settings_dir.mkdir(parents=True, exist_ok=True)
            self._path_for(key).write_text(value, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Error writing setting {key}: {e}") from e
        self._cache[key] = value

    def remove_item(self, key: str) -> None:
        """Delete a value if present."""
        try:
            self._path_for(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Error removing setting {key}: {e}") from e
        self._cache.pop(key, None)

    def get_json(self, key: str) -> dict[str, Any] | None:
        """Read a JSON object value; corrupt JSON is logged and treated as unset."""
        raw = self.get_item(key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("Setting %s is not valid JSON: %s", key, e)
            return None
        return data if isinstance(data, dict) else None

    def set_json(self, key: str, data: dict[str, Any]) -> None:
        self.set_item(key, json.dumps(data, indent=2))

    def clear(self) -> None:
        """Remove every stored setting."""
        if self.settings_dir.exists():
            try:
                shutil.rmtree(self.settings_dir)
            except OSError as e:
                raise StorageError(f"Error clearing settings: {e}") from e
        self._cache.clear()
