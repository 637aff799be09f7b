"""Shared fixtures: in-memory keyring and a fake WebDAV server."""

from pathlib import Path

import pytest
from keyring.backend import KeyringBackend
from keyring.errors import NoKeyringError, PasswordDeleteError

from daysync.core.client import WebDAVError
from daysync.core.credentials import CredentialStore
from daysync.core.engine import SyncEngine
from daysync.core.local import LocalStore
from daysync.core.secrets import SecretStore
from daysync.core.settings import SettingsStore
from daysync.models.config import SyncConfig


class MemoryKeyring(KeyringBackend):
    """Keyring backend that keeps passwords in a dict."""

    priority = 1  # type: ignore[assignment]

    def __init__(self) -> None:
        super().__init__()
        self.passwords: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, username: str) -> str | None:
        return self.passwords.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self.passwords[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        try:
            del self.passwords[(service, username)]
        except KeyError:
            raise PasswordDeleteError(username) from None


class BrokenKeyring(KeyringBackend):
    """Keyring backend that fails like a headless machine without one."""

    priority = 1  # type: ignore[assignment]

    def get_password(self, service: str, username: str) -> str | None:
        raise NoKeyringError("No recommended backend was available")

    def set_password(self, service: str, username: str, password: str) -> None:
        raise NoKeyringError("No recommended backend was available")

    def delete_password(self, service: str, username: str) -> None:
        raise NoKeyringError("No recommended backend was available")


class FakeWebDAVClient:
    """Stands in for WebDAVClient with an in-memory folder."""

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}
        self.fail_on: set[str] = set()
        self.unreachable = False
        self.uploads: list[str] = []
        self.downloads: list[str] = []
        self.deletes: list[str] = []

    def _check(self, name: str = "") -> None:
        if self.unreachable:
            raise WebDAVError("Request failed: connection refused")
        if name in self.fail_on:
            raise WebDAVError(f"{name} failed: 500", 500)

    def list_files(self, extension: str = ".md", suffix: str | None = None) -> set[str]:
        self._check()
        return {
            name for name in self.files
            if name.endswith(extension) or (suffix and name.endswith(extension + suffix))
        }

    def upload(self, name: str, data: bytes, content_type: str = "text/markdown") -> None:
        self._check(name)
        self.files[name] = data
        self.uploads.append(name)

    def download(self, name: str) -> bytes:
        self._check(name)
        if name not in self.files:
            raise WebDAVError(f"GET {name} failed: 404", 404)
        self.downloads.append(name)
        return self.files[name]

    def delete(self, name: str) -> None:
        self._check(name)
        self.files.pop(name, None)
        self.deletes.append(name)

    def verify_connection(self) -> bool:
        self._check()
        return True


@pytest.fixture
def memory_keyring() -> MemoryKeyring:
    return MemoryKeyring()


@pytest.fixture
def secret_store(memory_keyring: MemoryKeyring) -> SecretStore:
    return SecretStore("daysync-test", backend=memory_keyring)


@pytest.fixture
def settings_store(tmp_path: Path) -> SettingsStore:
    return SettingsStore(tmp_path / ".settings")


@pytest.fixture
def credentials(settings_store: SettingsStore, secret_store: SecretStore) -> CredentialStore:
    return CredentialStore(settings_store, secret_store)


@pytest.fixture
def local_store(tmp_path: Path) -> LocalStore:
    return LocalStore(tmp_path / "diary")


@pytest.fixture
def remote() -> FakeWebDAVClient:
    return FakeWebDAVClient()


@pytest.fixture
def configured(credentials: CredentialStore) -> CredentialStore:
    """Credentials with sync switched on."""
    credentials.save(
        SyncConfig(url="https://dav.example.com/diary", username="alice", enabled=True),
        password="hunter2",
    )
    return credentials


@pytest.fixture
def engine(configured: CredentialStore, local_store: LocalStore, remote: FakeWebDAVClient):
    sync_engine = SyncEngine(
        configured,
        local_store,
        client_factory=lambda config, password: remote,  # type: ignore[arg-type,return-value]
    )
    yield sync_engine
    sync_engine.close()
