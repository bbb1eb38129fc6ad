"""Encrypted on-disk credential cache.

Each ``(service, env)`` pair is stored as one AES-GCM encrypted JSON file at
``<config_dir>/cache/<env>/<service>-<env>.enc``. Expiry is detected lazily
on read. Corrupt, undecryptable and expired entries are treated as misses
and removed.

Writes replace whole files atomically and no locking is used: concurrent
writers race with last-writer-wins semantics, and readers see either the old
or the new file, never a partial one.
"""

from __future__ import annotations

import os
import shutil
from datetime import UTC, datetime, timedelta
from pathlib import Path

import structlog
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from sreq.cache.encryption import decrypt, encrypt, load_key
from sreq.exceptions import EncryptionError, SreqError, ValidationError
from sreq.models.domain import ResolvedCredentials

log = structlog.get_logger(__name__)

DEFAULT_TTL = 3600
CACHE_DIR_NAME = "cache"
CACHE_FILE_EXTENSION = ".enc"


class CacheEntry(BaseModel):
    """One cached resolution result."""

    service: str
    env: str
    cached_at: datetime
    ttl_seconds: int
    credentials: ResolvedCredentials

    @property
    def expires_at(self) -> datetime:
        return self.cached_at + timedelta(seconds=self.ttl_seconds)

    def is_expired(self, now: datetime | None = None) -> bool:
        """True once more than ``ttl_seconds`` have passed since ``cached_at``."""
        now = now or datetime.now(UTC)
        return now - self.cached_at > timedelta(seconds=self.ttl_seconds)


class CacheEntryInfo(BaseModel):
    """Decrypted metadata for one cache file, as shown by ``status``."""

    service: str
    env: str
    cached_at: datetime
    expires_at: datetime
    size: int
    expired: bool


class CacheStatus(BaseModel):
    """Summary of the cache directory."""

    enabled: bool
    directory: Path
    ttl: int
    count: int = 0
    total_bytes: int = 0
    entries: list[CacheEntryInfo] = Field(default_factory=list)


def is_cache_disabled() -> bool:
    """True when ``SREQ_NO_CACHE=1`` or running under CI (``CI=true``/``CI=1``)."""
    if os.getenv("SREQ_NO_CACHE") == "1":
        return True
    return os.getenv("CI", "").lower() in ("true", "1")


class CredentialCache:
    """Encrypted file cache for resolved credentials.

    Example:
        >>> cache = CredentialCache(Path("~/.sreq").expanduser())
        >>> cache.set("billing", "dev", creds)
        >>> cache.get("billing", "dev")
    """

    def __init__(self, config_dir: Path, ttl: int = DEFAULT_TTL) -> None:
        """Open the cache under a configuration root.

        Args:
            config_dir: Configuration root holding the key file
            ttl: Time-to-live in seconds for new entries (0 selects the default)

        Raises:
            EncryptionError: If the key file is missing or invalid, or the
                cache directory cannot be created
        """
        self.config_dir = config_dir
        self.cache_dir = config_dir / CACHE_DIR_NAME
        self.ttl = ttl or DEFAULT_TTL
        self._key = load_key(config_dir)

        try:
            self.cache_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            raise EncryptionError(f"Failed to create cache directory: {self.cache_dir}", cause=e) from e

    def entry_path(self, service: str, env: str) -> Path:
        """Return the entry file for one pair.

        Raises:
            ValidationError: If ``service`` or ``env`` is not a plain name
        """
        _check_name("service", service)
        _check_name("env", env)
        return self.cache_dir / env / f"{service}-{env}{CACHE_FILE_EXTENSION}"

    def get(self, service: str, env: str) -> ResolvedCredentials | None:
        """Return cached credentials, or None on a miss.

        A missing file, an undecryptable or unparsable file, and an expired
        entry are all misses. Everything but the missing file is also
        deleted from disk.
        """
        path = self.entry_path(service, env)
        entry = self._read_entry(path)
        if entry is None:
            log.debug("cache_miss", service=service, env=env)
            return None

        if entry.is_expired():
            log.debug("cache_expired", service=service, env=env, cached_at=entry.cached_at.isoformat())
            self._discard(path)
            return None

        log.debug("cache_hit", service=service, env=env)
        return entry.credentials

    def set(self, service: str, env: str, credentials: ResolvedCredentials) -> None:
        """Encrypt and store credentials, replacing any previous entry.

        Raises:
            EncryptionError: If the entry cannot be encrypted or written
        """
        entry = CacheEntry(
            service=service,
            env=env,
            cached_at=datetime.now(UTC),
            ttl_seconds=self.ttl,
            credentials=credentials,
        )
        ciphertext = encrypt(entry.model_dump_json().encode("utf-8"), self._key)

        path = self.entry_path(service, env)
        temp_file = path.with_name(f".{path.name}.{os.getpid()}.tmp")
        try:
            path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            fd = os.open(temp_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "wb") as f:
                f.write(ciphertext)
            temp_file.replace(path)
        except OSError as e:
            temp_file.unlink(missing_ok=True)
            raise EncryptionError(f"Failed to write cache entry: {path}", cause=e) from e

        log.debug("cache_set", service=service, env=env, ttl=self.ttl)

    def delete(self, service: str, env: str) -> None:
        """Remove one entry. A missing entry is not an error."""
        path = self.entry_path(service, env)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise EncryptionError(f"Failed to delete cache entry: {path}", cause=e) from e

    def clear(self) -> None:
        """Remove every entry and recreate an empty cache directory."""
        _remove_tree(self.cache_dir)
        self.cache_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        log.info("cache_cleared", directory=str(self.cache_dir))

    def clear_env(self, env: str) -> None:
        """Remove every entry for one environment."""
        _check_name("env", env)
        _remove_tree(self.cache_dir / env)
        log.info("cache_env_cleared", env=env)

    def status(self) -> CacheStatus:
        """Describe the cache. Entries that cannot be decrypted are left out."""
        status = CacheStatus(enabled=not is_cache_disabled(), directory=self.cache_dir, ttl=self.ttl)
        if not self.cache_dir.exists():
            return status

        for path in self.cache_dir.rglob(f"*{CACHE_FILE_EXTENSION}"):
            if not path.is_file():
                continue
            entry = self._load(path)
            if entry is None:
                continue
            size = path.stat().st_size
            status.count += 1
            status.total_bytes += size
            status.entries.append(
                CacheEntryInfo(
                    service=entry.service,
                    env=entry.env,
                    cached_at=entry.cached_at,
                    expires_at=entry.expires_at,
                    size=size,
                    expired=entry.is_expired(),
                )
            )

        status.entries.sort(key=lambda info: (info.env, info.service))
        return status

    def _read_entry(self, path: Path) -> CacheEntry | None:
        if not path.exists():
            return None
        entry = self._load(path)
        if entry is None:
            self._discard(path)
        return entry

    def _load(self, path: Path) -> CacheEntry | None:
        """Read and decrypt one entry file, or None when it is unusable."""
        try:
            plaintext = decrypt(path.read_bytes(), self._key)
            return CacheEntry.model_validate_json(plaintext)
        except (OSError, SreqError, PydanticValidationError) as e:
            log.debug("cache_entry_unreadable", path=str(path), error=str(e))
            return None

    def _discard(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            log.warning("cache_entry_delete_failed", path=str(path), error=str(e))


def _check_name(kind: str, name: str) -> None:
    """Reject names that would place an entry outside the cache directory."""
    separators = {"/", os.sep, os.altsep or "/"}
    if name in ("", ".", "..") or any(sep in name for sep in separators):
        raise ValidationError(
            f"Invalid cache {kind} name: '{name}'",
            suggestion="Names must be non-empty and must not contain path separators or be '.' or '..'",
        )


def _remove_tree(path: Path) -> None:
    """Delete a directory tree, ignoring a missing root."""
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return
    except OSError as e:
        raise EncryptionError(f"Failed to remove cache directory: {path}", cause=e) from e
