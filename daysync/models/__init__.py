"""Data models for sync system."""

from .config import (
    CONFIG_KEY,
    ENCRYPTION_KEY_SECRET,
    LAST_SYNC_KEY,
    PASSWORD_SECRET,
    AppSettings,
    SyncConfig,
)
from .entry import EntryName, entry_filename, parse_entry_filename, sanitize_title

__all__ = [
    "AppSettings",
    "CONFIG_KEY",
    "ENCRYPTION_KEY_SECRET",
    "EntryName",
    "LAST_SYNC_KEY",
    "PASSWORD_SECRET",
    "SyncConfig",
    "entry_filename",
    "parse_entry_filename",
    "sanitize_title",
]
