"""Presence-based sync between the local diary and a WebDAV folder."""

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from keyring.errors import KeyringError

from ..models.config import SyncConfig
from ..models.entry import ENTRY_EXTENSION, is_safe_filename
from .auth import WebDAVAuth
from .client import WebDAVClient, WebDAVError
from .credentials import CredentialStore
from .crypto import (
    ENCRYPTED_SUFFIX,
    CryptoError,
    add_suffix,
    decrypt,
    encrypt,
    has_suffix,
    strip_suffix,
)
from .local import LocalStore
from .settings import StorageError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]
ClientFactory = Callable[[SyncConfig, str], WebDAVClient]

NOT_CONFIGURED = "WebDAV sync is not configured"

# Per-file failures that never stop a batch
TRANSFER_ERRORS = (WebDAVError, CryptoError, KeyringError)

PLAIN_CONTENT_TYPE = "text/markdown"
ENCRYPTED_CONTENT_TYPE = "application/octet-stream"


@dataclass
class SyncStatus:
    """Which entries exist on only one side. Derived, never persisted."""

    local_only: set[str] = field(default_factory=set)
    remote_only: set[str] = field(default_factory=set)

    @property
    def in_sync(self) -> bool:
        return not self.local_only and not self.remote_only


@dataclass
class BatchResult:
    """Outcome of a best-effort batch transfer."""

    count: int = 0
    errors: list[str] = field(default_factory=list)
    message: str = ""  # Set when the batch did not run at all

    @property
    def success(self) -> bool:
        return not self.errors


def default_client_factory(config: SyncConfig, password: str) -> WebDAVClient:
    """Build a WebDAVClient for a config and its password."""
    return WebDAVClient(WebDAVAuth(config.username, password, config.url))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SyncEngine:
    """Reconciles the local diary directory with the configured WebDAV folder.

    Entries are compared by filename only; a file present on both sides is
    treated as in sync whatever its content. Batches run one file at a time
    on the caller's thread. Single-file syncs triggered by local saves and
    deletes run on a background executor.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        local: LocalStore,
        client_factory: ClientFactory | None = None,
        clock: Callable[[], datetime] | None = None,
        executor: Executor | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            credentials: Config and secret access
            local: Local diary directory
            client_factory: Builds the WebDAV client (default: requests-based)
            clock: Returns the current UTC time
            executor: Runs background single-file syncs (default: one worker thread)
        """
        self.credentials = credentials
        self.local = local
        self.client_factory = client_factory or default_client_factory
        self.clock = clock or utc_now
        self._executor = executor
        self._owns_executor = executor is None

    @property
    def executor(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="daysync-sync")
        return self._executor

    def close(self) -> None:
        """Wait for pending background syncs and release the worker thread."""
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "SyncEngine":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _connect(self) -> tuple[SyncConfig, WebDAVClient] | None:
        """Load the config and build a client, or None when sync is off."""
        config = self.credentials.load()
        if not config.is_active:
            return None
        password = self.credentials.get_password() or ""
        return config, self.client_factory(config, password)

    def _require_key(self) -> str:
        key = self.credentials.get_encryption_key()
        if not key:
            raise CryptoError("Encryption is enabled but no encryption key is stored")
        return key

    def _remote_index(self, config: SyncConfig, client: WebDAVClient) -> dict[str, str]:
        """Map entry filename -> remote object name.

        With encryption on, ``X.md.enc`` lists as ``X.md`` and wins over a
        plain ``X.md`` copy. With encryption off, encrypted copies are ignored.
        """
        suffix = ENCRYPTED_SUFFIX if config.encryption_enabled else None
        index: dict[str, str] = {}

        for name in sorted(client.list_files(ENTRY_EXTENSION, suffix)):
            entry = strip_suffix(name) if suffix else name
            if not is_safe_filename(entry):
                logger.warning("Ignoring remote file with unusable name: %r", name)
                continue
            if entry in index and not has_suffix(name):
                continue
            index[entry] = name

        return index

    def _touch_last_sync(self) -> None:
        try:
            self.credentials.set_last_sync(self.clock())
        except StorageError as e:
            logger.error("Failed to update sync time: %s", e)

    def _upload(self, config: SyncConfig, client: WebDAVClient, filename: str) -> None:
        content = self.local.read(filename)
        if config.encryption_enabled:
            payload = encrypt(content, self._require_key())
            client.upload(add_suffix(filename), payload.encode("ascii"), ENCRYPTED_CONTENT_TYPE)
        else:
            client.upload(filename, content.encode("utf-8"), PLAIN_CONTENT_TYPE)

    def _download(self, client: WebDAVClient, remote_name: str) -> str:
        filename = strip_suffix(remote_name)
        data = client.download(remote_name)

        if has_suffix(remote_name):
            content = decrypt(data.decode("ascii", errors="replace"), self._require_key())
        else:
            try:
                content = data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise WebDAVError(f"{remote_name} is not UTF-8 text: {e}") from e

        self.local.write(filename, content)
        return filename

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def is_configured(self) -> bool:
        return self.credentials.load().is_active

    def last_sync_time(self) -> str | None:
        return self.credentials.get_last_sync()

    def check_sync_status(self) -> SyncStatus:
        """Compare local and remote entry names.

        This is advisory: when the server cannot be listed or the keyring
        cannot be read, the result is an empty, in-sync snapshot.
        """
        try:
            session = self._connect()
        except KeyringError as e:
            logger.warning("Could not read credentials: %s", e)
            return SyncStatus()
        if session is None:
            return SyncStatus()
        config, client = session

        local = self.local.list_files()
        try:
            remote = set(self._remote_index(config, client))
        except WebDAVError as e:
            logger.warning("Could not list remote files: %s", e)
            return SyncStatus()

        return SyncStatus(local_only=local - remote, remote_only=remote - local)

    def verify_connection(
        self,
        config: SyncConfig | None = None,
        password: str | None = None,
    ) -> bool:
        """Check that the WebDAV folder answers with the given or stored settings.

        Raises:
            WebDAVError: When the server cannot be reached
        """
        config = config or self.credentials.load()
        if not config.url:
            return False
        if password is None:
            password = self.credentials.get_password() or ""
        return self.client_factory(config, password).verify_connection()

    # -------------------------------------------------------------------------
    # Batch Operations
    # -------------------------------------------------------------------------

    def import_from_webdav(self, on_progress: ProgressCallback | None = None) -> BatchResult:
        """Download every remote entry missing locally.

        Existing local files are never overwritten. Files are processed in
        name order and ``on_progress(current, total, filename)`` is called
        after each attempt, failed or not.
        """
        try:
            session = self._connect()
        except KeyringError as e:
            return BatchResult(errors=[f"Could not read credentials: {e}"])
        if session is None:
            return BatchResult(message=NOT_CONFIGURED)
        config, client = session

        try:
            remote = self._remote_index(config, client)
        except WebDAVError as e:
            return BatchResult(errors=[f"Failed to list remote files: {e}"])

        pending = sorted(set(remote) - self.local.list_files())
        result = BatchResult()

        for current, filename in enumerate(pending, start=1):
            try:
                self._download(client, remote[filename])
                result.count += 1
            except TRANSFER_ERRORS as e:
                logger.warning("Download of %s failed: %s", filename, e)
                result.errors.append(f"{filename}: {e}")
            if on_progress:
                on_progress(current, len(pending), filename)

        if result.count:
            self._touch_last_sync()
        logger.info("Imported %d of %d file(s)", result.count, len(pending))
        return result

    def sync_all_to_webdav(self, on_progress: ProgressCallback | None = None) -> BatchResult:
        """Upload every local entry missing remotely.

        Same ordering, progress and best-effort rules as the import.
        """
        try:
            session = self._connect()
        except KeyringError as e:
            return BatchResult(errors=[f"Could not read credentials: {e}"])
        if session is None:
            return BatchResult(message=NOT_CONFIGURED)
        config, client = session

        try:
            remote = self._remote_index(config, client)
        except WebDAVError as e:
            return BatchResult(errors=[f"Failed to list remote files: {e}"])

        pending = sorted(self.local.list_files() - set(remote))
        result = BatchResult()

        for current, filename in enumerate(pending, start=1):
            try:
                self._upload(config, client, filename)
                result.count += 1
            except TRANSFER_ERRORS as e:
                logger.warning("Upload of %s failed: %s", filename, e)
                result.errors.append(f"{filename}: {e}")
            if on_progress:
                on_progress(current, len(pending), filename)

        if result.count:
            self._touch_last_sync()
        logger.info("Uploaded %d of %d file(s)", result.count, len(pending))
        return result

    # -------------------------------------------------------------------------
    # Single-file Operations
    # -------------------------------------------------------------------------

    def upload_file(self, filename: str) -> bool:
        """Upload one local entry, encrypting it when encryption is on.

        Returns:
            False when sync is not configured, True once uploaded

        Raises:
            WebDAVError, CryptoError, StorageError
        """
        session = self._connect()
        if session is None:
            return False
        config, client = session
        self._upload(config, client, filename)
        return True

    def download_file(self, filename: str, remote_name: str | None = None) -> bool:
        """Download one remote entry unless it already exists locally.

        Args:
            filename: Local entry name
            remote_name: Remote object name, when it differs (``X.md.enc``)

        Returns:
            True if the file was written locally
        """
        if self.local.exists(filename):
            return False
        session = self._connect()
        if session is None:
            return False
        _config, client = session
        self._download(client, remote_name or filename)
        return True

    def delete_remote(self, filename: str) -> bool:
        """Remove both the plain and the encrypted remote copy of an entry."""
        session = self._connect()
        if session is None:
            return False
        _config, client = session
        client.delete(filename)
        client.delete(add_suffix(filename))
        return True

    # -------------------------------------------------------------------------
    # Background Triggers
    # -------------------------------------------------------------------------

    def sync_after_save(self, filename: str) -> "Future[bool]":
        """Upload a just-saved entry in the background.

        The local save has already succeeded; the returned future resolves
        to whether the upload did too. Callers may ignore it.
        """
        return self._submit(self.upload_file, filename, "upload")

    def sync_after_delete(self, filename: str) -> "Future[bool]":
        """Delete a just-removed entry from the server in the background."""
        return self._submit(self.delete_remote, filename, "delete")

    def _submit(self, operation: Callable[[str], bool], filename: str, label: str) -> "Future[bool]":
        if not self.is_configured():
            done: Future[bool] = Future()
            done.set_result(False)
            return done
        return self.executor.submit(self._run_background, operation, filename, label)

    def _run_background(self, operation: Callable[[str], bool], filename: str, label: str) -> bool:
        try:
            if not operation(filename):
                return False
        except (WebDAVError, CryptoError, StorageError, KeyringError) as e:
            logger.error("Background %s of %s failed: %s", label, filename, e)
            return False

        self._touch_last_sync()
        return True
