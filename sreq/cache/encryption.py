"""AES-256-GCM envelope and key file management for the credential cache.

Security Model:
- One random 256-bit key per configuration root, stored at ``<config_dir>/.key``
- Key file permissions restricted to the owner (0600)
- Every encryption uses a fresh 96-bit nonce, prepended to the ciphertext
- Truncated input and authentication failures are rejected, never partially decoded
"""

import os
import secrets
from pathlib import Path

import structlog
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from sreq.exceptions import EncryptionError, encryption_key_not_found

log = structlog.get_logger(__name__)

KEY_SIZE = 32
NONCE_SIZE = 12
KEY_FILE_NAME = ".key"


def key_path(config_dir: Path) -> Path:
    """Return the key file location for a configuration root."""
    return config_dir / KEY_FILE_NAME


def generate_key() -> bytes:
    """Generate a new random 256-bit key."""
    return secrets.token_bytes(KEY_SIZE)


def key_exists(config_dir: Path) -> bool:
    return key_path(config_dir).exists()


def save_key(config_dir: Path, key: bytes) -> Path:
    """Write ``key`` to the key file with owner-only permissions.

    Raises:
        EncryptionError: If the key has the wrong size or cannot be written
    """
    if len(key) != KEY_SIZE:
        raise EncryptionError(f"Invalid key size: expected {KEY_SIZE} bytes, got {len(key)}")

    path = key_path(config_dir)
    try:
        config_dir.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as f:
            f.write(key)
        path.chmod(0o600)
    except OSError as e:
        raise EncryptionError(f"Failed to write encryption key: {path}", cause=e) from e

    log.info("encryption_key_saved", path=str(path))
    return path


def load_key(config_dir: Path) -> bytes:
    """Read the key for a configuration root.

    Raises:
        EncryptionError: If the key file is missing, unreadable or not 32 bytes
    """
    path = key_path(config_dir)
    if not path.exists():
        raise encryption_key_not_found(str(path))

    try:
        key = path.read_bytes()
    except OSError as e:
        raise EncryptionError(f"Failed to read encryption key: {path}", cause=e) from e

    if len(key) != KEY_SIZE:
        raise EncryptionError(
            f"Invalid key size: expected {KEY_SIZE} bytes, got {len(key)}",
            suggestion=f"Delete {path} and run 'sreq init' to create a new key.",
        )
    return key


def ensure_key(config_dir: Path) -> bool:
    """Create the key file if it does not exist yet.

    Returns:
        True when a new key was generated
    """
    if key_exists(config_dir):
        return False
    save_key(config_dir, generate_key())
    return True


def encrypt(plaintext: bytes, key: bytes) -> bytes:
    """Encrypt ``plaintext``, returning ``nonce || ciphertext || tag``."""
    if len(key) != KEY_SIZE:
        raise EncryptionError(f"Invalid key size: expected {KEY_SIZE} bytes, got {len(key)}")

    nonce = os.urandom(NONCE_SIZE)
    return nonce + AESGCM(key).encrypt(nonce, plaintext, None)


def decrypt(ciphertext: bytes, key: bytes) -> bytes:
    """Decrypt data produced by ``encrypt``.

    Raises:
        EncryptionError: If the input is truncated, or was not encrypted
            under ``key``, or was tampered with
    """
    if len(key) != KEY_SIZE:
        raise EncryptionError(f"Invalid key size: expected {KEY_SIZE} bytes, got {len(key)}")
    if len(ciphertext) < NONCE_SIZE:
        raise EncryptionError("Ciphertext too short")

    nonce, body = ciphertext[:NONCE_SIZE], ciphertext[NONCE_SIZE:]
    try:
        return AESGCM(key).decrypt(nonce, body, None)
    except InvalidTag as e:
        raise EncryptionError("Decryption failed: authentication tag mismatch", cause=e) from e
