"""Sync configuration loading, saving and legacy secret migration."""

import logging
from datetime import datetime
from typing import Any

from ..models.config import (
    CONFIG_KEY,
    ENCRYPTION_KEY_SECRET,
    LAST_SYNC_KEY,
    LEGACY_KEY_FIELD,
    LEGACY_PASSWORD_FIELD,
    PASSWORD_SECRET,
    SyncConfig,
)
from .crypto import CryptoError, deobfuscate_legacy
from .secrets import SecretStore
from .settings import SettingsStore

logger = logging.getLogger(__name__)

# Legacy inline field -> keyring secret it moves to
LEGACY_FIELDS = {
    LEGACY_PASSWORD_FIELD: PASSWORD_SECRET,
    LEGACY_KEY_FIELD: ENCRYPTION_KEY_SECRET,
}


def has_legacy_secrets(raw: dict[str, Any]) -> bool:
    """True when a stored config record still carries an inline secret."""
    return any(raw.get(field) for field in LEGACY_FIELDS)


def _reveal(field: str, value: str) -> str:
    # Only the password was obfuscated; old configs held the key verbatim
    if field == LEGACY_PASSWORD_FIELD:
        return deobfuscate_legacy(value)
    return value


def extract_legacy_secrets(
    raw: dict[str, Any],
) -> tuple[dict[str, str], dict[str, CryptoError]]:
    """Recover each legacy inline secret independently.

    Returns:
        Tuple of ({secret name: plaintext value}, {legacy field: error}) where
        a field that fails to decode never stops the others
    """
    secrets: dict[str, str] = {}
    failures: dict[str, CryptoError] = {}

    for field, secret_name in LEGACY_FIELDS.items():
        value = raw.get(field)
        if not value:
            continue
        try:
            secrets[secret_name] = _reveal(field, value)
        except CryptoError as e:
            failures[field] = e

    return secrets, failures


def migrate(raw: dict[str, Any]) -> tuple[SyncConfig, dict[str, str]]:
    """Split a stored config record into a clean config and secrets to store.

    Older records kept the WebDAV password XOR-obfuscated in ``password`` and
    the encryption key verbatim in ``encryptionKey``. Neither survives in the
    returned config. A record without them yields no secrets, so running the
    step again on its own output changes nothing.

    Args:
        raw: Config record as read from the settings store

    Returns:
        Tuple of (clean config, {secret name: plaintext value})

    Raises:
        CryptoError: If the legacy password cannot be de-obfuscated
    """
    secrets, failures = extract_legacy_secrets(raw)
    if failures:
        raise next(iter(failures.values()))
    return SyncConfig.from_dict(raw), secrets


class CredentialStore:
    """Access to the sync configuration and its secrets."""

    def __init__(self, settings: SettingsStore, secrets: SecretStore) -> None:
        self.settings = settings
        self.secrets = secrets

    def load(self) -> SyncConfig:
        """Load the config, moving any legacy inline secrets to the keyring.

        Each legacy field is migrated on its own. A field that cannot be
        decoded is logged and left in the record; the others are stored and
        blanked. The record is rewritten only after the secrets are stored,
        so an interrupted migration is retried on the next load.
        """
        raw = self.settings.get_json(CONFIG_KEY)
        if raw is None:
            return SyncConfig()

        config = SyncConfig.from_dict(raw)
        if not has_legacy_secrets(raw):
            return config

        secrets, failures = extract_legacy_secrets(raw)
        for field, error in failures.items():
            logger.error("Error migrating legacy %s: %s", field, error)

        if not secrets:
            return config

        for name, value in secrets.items():
            self.secrets.store_secret(name, value)

        record = config.to_dict()
        for field in failures:
            record[field] = raw[field]
        self.settings.set_json(CONFIG_KEY, record)
        logger.info("Migrated %s to secure storage", ", ".join(sorted(secrets)))
        return config

    def save(
        self,
        config: SyncConfig,
        password: str | None = None,
        encryption_key: str | None = None,
    ) -> None:
        """Persist the config; secrets go to the keyring.

        Args:
            config: Non-secret configuration
            password: New password; "" deletes it, None leaves it unchanged
            encryption_key: New key; "" deletes it, None leaves it unchanged
        """
        if password is not None:
            if password:
                self.store_password(password)
            else:
                self.delete_password()

        if encryption_key is not None:
            if encryption_key:
                self.store_encryption_key(encryption_key)
            else:
                self.delete_encryption_key()

        self.settings.set_json(CONFIG_KEY, config.to_dict())

    # -------------------------------------------------------------------------
    # Secrets
    # -------------------------------------------------------------------------

    def get_password(self) -> str | None:
        return self.secrets.get_secret(PASSWORD_SECRET)

    def store_password(self, password: str) -> None:
        self.secrets.store_secret(PASSWORD_SECRET, password)

    def delete_password(self) -> None:
        self.secrets.delete_secret(PASSWORD_SECRET)

    def get_encryption_key(self) -> str | None:
        return self.secrets.get_secret(ENCRYPTION_KEY_SECRET)

    def store_encryption_key(self, key: str) -> None:
        self.secrets.store_secret(ENCRYPTION_KEY_SECRET, key)

    def delete_encryption_key(self) -> None:
        self.secrets.delete_secret(ENCRYPTION_KEY_SECRET)

    # -------------------------------------------------------------------------
    # Sync bookkeeping
    # -------------------------------------------------------------------------

    def get_last_sync(self) -> str | None:
        return self.settings.get_item(LAST_SYNC_KEY)

    def set_last_sync(self, when: datetime) -> None:
        self.settings.set_item(LAST_SYNC_KEY, when.isoformat())

    def reset(self) -> None:
        """Forget the config, bookkeeping and both secrets."""
        self.delete_password()
        self.delete_encryption_key()
        self.settings.clear()
