"""Tests for the cache encryption envelope and key file."""

import stat

import pytest

from sreq.cache.encryption import (
    KEY_SIZE,
    NONCE_SIZE,
    decrypt,
    encrypt,
    ensure_key,
    generate_key,
    key_exists,
    load_key,
    save_key,
)
from sreq.exceptions import EncryptionError


class TestEnvelope:
    """Test AES-GCM encrypt/decrypt."""

    @pytest.fixture
    def key(self):
        """Random key."""
        return generate_key()

    def test_round_trip(self, key):
        """Test decrypt(encrypt(x)) == x."""
        assert decrypt(encrypt(b"secret payload", key), key) == b"secret payload"

    def test_fresh_nonce_per_encryption(self, key):
        """Test identical plaintexts encrypt differently."""
        first = encrypt(b"same", key)
        second = encrypt(b"same", key)

        assert first[:NONCE_SIZE] != second[:NONCE_SIZE]
        assert first != second

    def test_wrong_key_rejected(self, key):
        """Test ciphertext from another key fails authentication."""
        ciphertext = encrypt(b"secret", key)

        with pytest.raises(EncryptionError, match="authentication"):
            decrypt(ciphertext, generate_key())

    def test_tampered_ciphertext_rejected(self, key):
        """Test a flipped bit fails authentication."""
        ciphertext = bytearray(encrypt(b"secret", key))
        ciphertext[-1] ^= 0x01

        with pytest.raises(EncryptionError):
            decrypt(bytes(ciphertext), key)

    def test_shorter_than_nonce_rejected(self, key):
        """Test input shorter than the nonce is rejected."""
        with pytest.raises(EncryptionError, match="too short"):
            decrypt(b"short", key)

    def test_truncated_ciphertext_rejected(self, key):
        """Test input cut inside the tag is rejected."""
        ciphertext = encrypt(b"secret", key)

        with pytest.raises(EncryptionError):
            decrypt(ciphertext[: NONCE_SIZE + 4], key)

    def test_invalid_key_size(self):
        """Test keys must be 32 bytes."""
        with pytest.raises(EncryptionError, match="Invalid key size"):
            encrypt(b"x", b"short-key")


class TestKeyFile:
    """Test key persistence."""

    def test_generate_key_size(self):
        """Test generated keys are 256-bit."""
        assert len(generate_key()) == KEY_SIZE

    def test_save_and_load(self, tmp_path):
        """Test a saved key loads back with owner-only permissions."""
        key = generate_key()

        path = save_key(tmp_path / "sreq", key)

        assert load_key(tmp_path / "sreq") == key
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_load_missing_key(self, tmp_path):
        """Test a missing key file is an EncryptionError."""
        with pytest.raises(EncryptionError, match="Encryption key not found"):
            load_key(tmp_path)

    def test_load_wrong_size(self, tmp_path):
        """Test a key file with the wrong length is rejected."""
        (tmp_path / ".key").write_bytes(b"0" * 16)

        with pytest.raises(EncryptionError, match="Invalid key size"):
            load_key(tmp_path)

    def test_save_wrong_size(self, tmp_path):
        """Test only 32-byte keys can be saved."""
        with pytest.raises(EncryptionError):
            save_key(tmp_path, b"0" * 31)

    def test_ensure_key_is_idempotent(self, tmp_path):
        """Test an existing key is never replaced."""
        assert not key_exists(tmp_path)
        assert ensure_key(tmp_path) is True
        key = load_key(tmp_path)

        assert ensure_key(tmp_path) is False
        assert load_key(tmp_path) == key
