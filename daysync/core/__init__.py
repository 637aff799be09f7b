"""Core sync functionality."""

from .auth import WebDAVAuth
from .client import WebDAVClient, WebDAVError
from .credentials import CredentialStore, migrate
from .crypto import CryptoError
from .engine import BatchResult, SyncEngine, SyncStatus
from .local import LocalStore
from .secrets import SecretStore
from .settings import SettingsStore, StorageError

__all__ = [
    "BatchResult",
    "CredentialStore",
    "CryptoError",
    "LocalStore",
    "SecretStore",
    "SettingsStore",
    "StorageError",
    "SyncEngine",
    "SyncStatus",
    "WebDAVAuth",
    "WebDAVClient",
    "WebDAVError",
    "migrate",
]
