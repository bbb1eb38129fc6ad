"""Encrypted local cache for resolved credentials."""

from sreq.cache.cache import (
    CacheEntry,
    CacheEntryInfo,
    CacheStatus,
    CredentialCache,
    is_cache_disabled,
)
from sreq.cache.encryption import decrypt, encrypt, ensure_key, generate_key, load_key, save_key

__all__ = [
    "CacheEntry",
    "CacheEntryInfo",
    "CacheStatus",
    "CredentialCache",
    "decrypt",
    "encrypt",
    "ensure_key",
    "generate_key",
    "is_cache_disabled",
    "load_key",
    "save_key",
]
