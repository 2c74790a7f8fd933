"""Persistent credential cache with optional encryption at rest.

The cache memoizes operator answers, generated secrets and derived values
between runs of the installer, so each question is asked at most once.

Storage Model:
- One backing file, by default ``platform-workspace/.credentials.cache``
- Plaintext content is newline-separated ``KEY=VALUE`` lines
- Encrypted content is the same text encrypted as a whole (see cipher.py)
- Every write re-serializes the full content into a scratch file and
  atomically renames it over the backing file
- No locking: concurrent writers are not supported
"""

import logging
import os
from pathlib import Path

from platform_setup.exceptions import ConfigurationError

from .cipher import CacheCipher, is_encrypted
from .exceptions import AuthenticationError, CacheFormatError, CacheIOError
from .prompting import Prompter

logger = logging.getLogger(__name__)

PASSWORD_ATTEMPTS = 3


class CredentialStore:
    """Flat key/value cache backed by a single file.

    The store is an explicit handle: its path, whether it is encrypted and
    the passphrase all live on the instance, never in module globals.

    Example:
        >>> store = CredentialStore.open(Path("platform-workspace/.credentials.cache"))
        >>> store.set("AUTH_TYPE", "ssh")
        >>> store.get("AUTH_TYPE")
        'ssh'
        >>> store.delete("AUTH_TYPE")
        True
    """

    def __init__(
        self,
        path: Path,
        passphrase: str | None = None,
        encrypted: bool = False,
    ) -> None:
        """Initialize the store handle.

        Args:
            path: Backing file
            passphrase: Cache password (required to read or write an encrypted cache)
            encrypted: Whether new content is written encrypted
        """
        self.path = path
        self.passphrase = passphrase
        self.encrypted = encrypted or passphrase is not None

        self._cipher: CacheCipher | None = CacheCipher(passphrase) if passphrase else None
        self._entries: dict[str, str] | None = None

    @classmethod
    def open(
        cls,
        path: Path,
        force_reset: bool = False,
        prompter: Prompter | None = None,
        passphrase: str | None = None,
    ) -> "CredentialStore":
        """Open (or create) the cache at ``path``.

        - ``force_reset`` deletes any existing file and starts empty, without prompting.
        - An existing encrypted file requires a passphrase; it is requested from
          the prompter unless one was supplied (asked again while empty), and
          verified immediately.
        - When no file exists the prompter is asked once whether to encrypt.

        Args:
            path: Backing file
            force_reset: Wipe the cache before use
            prompter: Source of interactive answers (None for non-interactive use)
            passphrase: Cache password supplied by configuration

        Returns:
            An open store handle

        Raises:
            AuthenticationError: If the passphrase is empty or does not decrypt the existing cache
            CacheIOError: If the file cannot be read or created
        """
        if force_reset:
            logger.warning(f"Ignoring cache, removing {path}")
            store = cls(path, passphrase=passphrase)
            store.reset()
            return store

        if path.exists():
            raw = cls._read_file(path)
            if not is_encrypted(raw):
                return cls(path)

            if passphrase is None and prompter is not None:
                passphrase = cls._ask_password(prompter, "Enter cache password")

            store = cls(path, passphrase=passphrase or None, encrypted=True)
            if store.passphrase is not None:
                # Fail now rather than on the first read
                store._load()
            return store

        if passphrase is None and prompter is not None:
            if prompter.confirm("Encrypt credential cache? (recommended)", default=True):
                passphrase = cls._ask_password(prompter, "Create cache password")

        store = cls(path, passphrase=passphrase)
        store._save({})
        logger.info(f"Created {'encrypted' if store.encrypted else 'plaintext'} cache at {path}")
        return store

    @staticmethod
    def _ask_password(prompter: Prompter, label: str) -> str:
        for _ in range(PASSWORD_ATTEMPTS):
            password = prompter.ask(label, secret=True)
            if password:
                return password
        raise AuthenticationError(
            "Cache password cannot be empty",
            suggestion="Set PLATFORM_SETUP_CACHE_PASSWORD or run with --no-cache to start over",
        )

    @staticmethod
    def _read_file(path: Path) -> bytes:
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return b""
        except OSError as e:
            raise CacheIOError(f"Cannot read cache file {path}: {e}") from e

    @property
    def locked(self) -> bool:
        """True when the cache is encrypted and no passphrase is available."""
        return self.encrypted and self._cipher is None

    def _load(self) -> dict[str, str] | None:
        """Load and parse the cache content.

        Returns:
            Mapping of key to value, or None if the cache is locked

        Raises:
            AuthenticationError: If decryption fails
            CacheFormatError: If plaintext content is not valid UTF-8
        """
        if self._entries is not None:
            return self._entries

        raw = self._read_file(self.path)

        if is_encrypted(raw):
            self.encrypted = True
            if self._cipher is None:
                return None
            text = self._cipher.decrypt(raw)
        else:
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise CacheFormatError(f"Cache file {self.path} is not valid text") from e

        self._entries = self._parse(text)
        return self._entries

    def _parse(self, text: str) -> dict[str, str]:
        entries: dict[str, str] = {}
        for line in text.splitlines():
            if not line:
                continue
            key, sep, value = line.partition("=")
            if not sep:
                logger.warning(f"Skipping malformed line in {self.path}")
                continue
            # Later lines win, matching grep | tail -1
            entries.pop(key, None)
            entries[key] = value
        return entries

    @staticmethod
    def _serialize(entries: dict[str, str]) -> str:
        return "".join(f"{key}={value}\n" for key, value in entries.items())

    def _save(self, entries: dict[str, str]) -> None:
        """Serialize, optionally encrypt, and atomically write the cache.

        Raises:
            AuthenticationError: If the cache is encrypted but locked
            CacheIOError: If the file cannot be written
        """
        text = self._serialize(entries)

        if self.encrypted:
            if self._cipher is None:
                raise AuthenticationError(
                    "Cache is encrypted but no password was provided",
                    suggestion="Re-run and enter the cache password",
                )
            data = self._cipher.encrypt(text)
        else:
            data = text.encode("utf-8")

        self._write_atomic(data)
        self._entries = entries

    def _write_atomic(self, data: bytes) -> None:
        temp_file = self.path.with_name(f"{self.path.name}.tmp")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            with open(temp_file, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())

            # Restrict permissions before moving
            try:
                temp_file.chmod(0o600)
            except OSError as e:
                logger.warning(f"Could not set cache file permissions: {e}")

            temp_file.replace(self.path)

        except OSError as e:
            temp_file.unlink(missing_ok=True)
            raise CacheIOError(f"Failed to write cache file {self.path}: {e}") from e

        logger.debug(f"Saved cache to {self.path}")

    @staticmethod
    def _validate(key: str, value: str) -> None:
        if not key or "=" in key or "\n" in key:
            raise ConfigurationError(f"Invalid cache key: {key!r}")
        if not value:
            raise ConfigurationError("Cache value cannot be empty")
        if "\n" in value or "\r" in value:
            raise ConfigurationError("Cache value cannot contain line breaks")

    def get(self, key: str) -> str | None:
        """Retrieve a cached value.

        Args:
            key: Cache key (e.g., 'GITHUB_TOKEN')

        Returns:
            The value, or None if the key is absent or the cache is locked

        Raises:
            AuthenticationError: If decryption fails
        """
        entries = self._load()
        if entries is None:
            logger.debug(f"Cache is locked, treating {key} as not cached")
            return None
        return entries.get(key)

    def set(self, key: str, value: str) -> None:
        """Insert or replace a cached value.

        Args:
            key: Cache key
            value: Non-empty value without line breaks

        Raises:
            ConfigurationError: If the key or value cannot be stored
            AuthenticationError: If the cache is encrypted but locked
            CacheIOError: If the file cannot be written
        """
        self._validate(key, value)

        entries = self._load()
        if entries is None:
            raise AuthenticationError("Cannot write to a locked cache", key=key)

        updated = dict(entries)
        updated.pop(key, None)
        updated[key] = value

        self._save(updated)
        logger.debug(f"Cached {key}")

    def delete(self, key: str) -> bool:
        """Remove a cached value.

        Args:
            key: Cache key

        Returns:
            True if deleted, False if not found

        Raises:
            AuthenticationError: If the cache is encrypted but locked
            CacheIOError: If the file cannot be written
        """
        entries = self._load()
        if entries is None:
            raise AuthenticationError("Cannot write to a locked cache", key=key)

        if key not in entries:
            return False

        updated = {k: v for k, v in entries.items() if k != key}
        self._save(updated)
        logger.info(f"Deleted {key} from cache")
        return True

    def items(self) -> list[tuple[str, str]]:
        """Enumerate all entries in file order.

        Values are returned unmasked; callers displaying them should apply
        ``platform_setup.credentials.masking``.

        Raises:
            AuthenticationError: If the cache is encrypted but locked
        """
        entries = self._load()
        if entries is None:
            raise AuthenticationError(
                "Cache is encrypted but no password was provided",
                suggestion="Re-run and enter the cache password",
            )
        return list(entries.items())

    def reset(self) -> None:
        """Delete the backing file and start with an empty cache."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise CacheIOError(f"Cannot remove cache file {self.path}: {e}") from e

        self._entries = None
        self._save({})
