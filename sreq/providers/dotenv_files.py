"""Dotenv file provider for local development credentials."""

import threading
from collections.abc import Mapping
from pathlib import Path

import structlog
from dotenv import dotenv_values

from sreq.exceptions import ProviderError, secret_not_found
from sreq.paths import resolve_env_path
from sreq.providers.base import BaseProvider

log = structlog.get_logger(__name__)

DEFAULT_FILES = (".env",)


class DotenvProvider(BaseProvider):
    """Backend reading ``KEY=value`` pairs from one or more .env files.

    Files are loaded lazily on first access, in order, with later files
    overriding earlier ones. Missing files are skipped. Parsing (``export``
    prefixes, quoting, escapes, comments) is delegated to python-dotenv.

    Example:
        >>> provider = DotenvProvider(files=[".env", ".env.local"])
        >>> provider.get("AUTH_API_KEY")
    """

    name = "dotenv"

    def __init__(self, files: list[str] | None = None, file: str | None = None) -> None:
        """Initialize dotenv provider.

        Args:
            files: Files to load, later files override earlier ones
            file: Single file loaded before ``files``
        """
        file_list = list(files or [])
        if file:
            file_list.insert(0, file)
        self.files = file_list or list(DEFAULT_FILES)

        self._values: dict[str, str] = {}
        self._loaded = False
        self._lock = threading.Lock()

    @staticmethod
    def _expand(file: str) -> Path:
        return Path(file).expanduser() if file.startswith("~/") else Path(file)

    def _load_files(self) -> None:
        with self._lock:
            if self._loaded:
                return

            values: dict[str, str] = {}
            for file in self.files:
                path = self._expand(file)
                if not path.is_file():
                    log.debug("dotenv_file_skipped", path=str(path))
                    continue
                try:
                    parsed = dotenv_values(path)
                except OSError as e:
                    raise ProviderError(f"Failed to load .env file: {path}", cause=e) from e
                values.update({key: value for key, value in parsed.items() if value is not None})
                log.debug("dotenv_file_loaded", path=str(path), keys=len(parsed))

            self._values = values
            self._loaded = True

    def get(self, key: str) -> str:
        """Retrieve a value, trying the upper-cased key first, then the key as given.

        Raises:
            NotFoundError: If no loaded file defines the key
        """
        self._load_files()

        for candidate in (key.upper(), key):
            if candidate in self._values:
                return self._values[candidate]
        raise secret_not_found("dotenv", key)

    def get_all(self) -> dict[str, str]:
        """Return a copy of every loaded key/value pair."""
        self._load_files()
        return dict(self._values)

    def reload(self) -> None:
        """Discard loaded values and read the files again."""
        with self._lock:
            self._loaded = False
            self._values = {}
        self._load_files()

    def health(self) -> None:
        """Succeed when at least one configured file exists."""
        if any(self._expand(file).is_file() for file in self.files):
            return
        raise ProviderError(
            f"No .env files found: {', '.join(self.files)}",
            suggestion="Create one of the configured files or update providers.dotenv.files",
        )

    def resolve_template(self, template: str, variables: Mapping[str, str]) -> str:
        return resolve_env_path(template, variables)
