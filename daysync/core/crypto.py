"""AES-256-CBC payload encryption for remote copies of diary entries."""

import base64
import binascii
import secrets

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

# Appended to the entry filename for encrypted remote copies
ENCRYPTED_SUFFIX = ".enc"

KEY_SIZE = 32  # AES-256
IV_SIZE = 16
SALT_SIZE = 16

# Fixed key of the old inline credential obfuscation
LEGACY_XOR_KEY = "SimpleDay-2024-Secure-Key-XOR"


class CryptoError(Exception):
    """Exception raised for malformed payloads and failed decryption."""


def generate_key() -> str:
    """Generate a random 256-bit key, base64 encoded."""
    return base64.b64encode(secrets.token_bytes(KEY_SIZE)).decode("ascii")


def _decode_key(key: str) -> bytes:
    try:
        raw = base64.b64decode(key, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CryptoError(f"Encryption key is not valid base64: {e}") from e
    if len(raw) != KEY_SIZE:
        raise CryptoError(f"Encryption key must be {KEY_SIZE} bytes, got {len(raw)}")
    return raw


def validate_key(key: str) -> None:
    """Raise CryptoError unless key is a base64-encoded 256-bit key."""
    _decode_key(key)


def encrypt(plaintext: str, key: str) -> str:
    """Encrypt text into a ``salt:iv:ciphertext`` payload.

    A fresh salt and IV are drawn for every call. The salt only keeps the
    three-part format stable; the key is used as-is, there is no key
    derivation.

    Args:
        plaintext: Text to encrypt (UTF-8)
        key: Base64-encoded 256-bit key

    Returns:
        Colon-joined base64 salt, IV and ciphertext
    """
    raw_key = _decode_key(key)
    salt = secrets.token_bytes(SALT_SIZE)
    iv = secrets.token_bytes(IV_SIZE)

    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(raw_key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()

    return ":".join(
        base64.b64encode(part).decode("ascii") for part in (salt, iv, ciphertext)
    )


def decrypt(payload: str, key: str) -> str:
    """Decrypt a ``salt:iv:ciphertext`` payload.

    A wrong key shows up either as bad padding or as bytes that are not
    UTF-8; both raise instead of returning garbage.

    Raises:
        CryptoError: On a malformed payload or failed decryption
    """
    parts = payload.strip().split(":")
    if len(parts) != 3:
        raise CryptoError("Invalid encrypted payload format")

    raw_key = _decode_key(key)
    try:
        _salt, iv, ciphertext = (base64.b64decode(p, validate=True) for p in parts)
    except (binascii.Error, ValueError) as e:
        raise CryptoError(f"Invalid encrypted payload encoding: {e}") from e

    if len(iv) != IV_SIZE:
        raise CryptoError("Invalid encrypted payload format")

    try:
        decryptor = Cipher(algorithms.AES(raw_key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        plain = unpadder.update(padded) + unpadder.finalize()
        return plain.decode("utf-8")
    except (ValueError, UnicodeDecodeError) as e:
        raise CryptoError("Decryption failed - wrong key or corrupted data") from e


def has_suffix(name: str) -> bool:
    return name.endswith(ENCRYPTED_SUFFIX)


def add_suffix(name: str) -> str:
    """Name of the encrypted remote copy; already-suffixed names are unchanged."""
    return name if has_suffix(name) else name + ENCRYPTED_SUFFIX


def strip_suffix(name: str) -> str:
    """Local name for a remote copy; names without the suffix are unchanged."""
    return name[: -len(ENCRYPTED_SUFFIX)] if has_suffix(name) else name


# -------------------------------------------------------------------------
# Legacy obfuscation
# -------------------------------------------------------------------------


def _xor(text: str) -> str:
    key = LEGACY_XOR_KEY
    return "".join(chr(ord(c) ^ ord(key[i % len(key)])) for i, c in enumerate(text))


def obfuscate_legacy(text: str) -> str:
    """Produce the old XOR + base64 form of a secret."""
    try:
        return base64.b64encode(_xor(text).encode("latin-1")).decode("ascii")
    except UnicodeEncodeError as e:
        raise CryptoError(f"Cannot obfuscate non-Latin-1 text: {e}") from e


def deobfuscate_legacy(text: str) -> str:
    """Recover a secret stored in the old XOR + base64 form."""
    try:
        decoded = base64.b64decode(text, validate=True).decode("latin-1")
    except (binascii.Error, ValueError) as e:
        raise CryptoError(f"Legacy secret is not valid base64: {e}") from e
    return _xor(decoded)
