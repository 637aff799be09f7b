"""Secret persistence in the platform keyring."""

import logging

import keyring
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, PasswordDeleteError

logger = logging.getLogger(__name__)


class SecretStore:
    """Named secrets kept in the OS keyring, separate from the settings files."""

    def __init__(self, service: str, backend: KeyringBackend | None = None) -> None:
        """Initialize the store.

        Args:
            service: Keyring service name the secrets are filed under
            backend: Explicit keyring backend (defaults to the active keyring)
        """
        self.service = service
        self._backend = backend

    @property
    def backend(self) -> KeyringBackend:
        if self._backend is None:
            self._backend = keyring.get_keyring()
        return self._backend

    def store_secret(self, name: str, value: str) -> None:
        """Store or replace a secret."""
        self.backend.set_password(self.service, name, value)

    def get_secret(self, name: str) -> str | None:
        """Read a secret, or None when it is not stored."""
        return self.backend.get_password(self.service, name)

    def delete_secret(self, name: str) -> None:
        """Remove a secret; removing an absent secret is not an error."""
        try:
            self.backend.delete_password(self.service, name)
        except PasswordDeleteError:
            logger.debug("Secret %s was not stored", name)

    def has_secret(self, name: str) -> bool:
        try:
            return self.get_secret(name) is not None
        except KeyringError as e:
            logger.warning("Keyring lookup for %s failed: %s", name, e)
            return False
