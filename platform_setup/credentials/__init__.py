"""Credential cache: persistent, optionally encrypted memoization of setup values.

Key Exports:
    CredentialStore: The cache handle (open/get/set/delete/items)
    ValueResolver: Read-through resolution with env-file, generation and prompt fallbacks
    CacheCipher: Whole-file encryption
    ClickPrompter / Prompter: Interactive prompt surface
"""

from .cipher import CacheCipher, is_encrypted
from .env_file import read_key_from_env_file
from .exceptions import (
    AuthenticationError,
    CacheFormatError,
    CacheIOError,
    CredentialError,
)
from .masking import display_value, is_sensitive, mask_value
from .prompting import ClickPrompter, Prompter
from .resolver import ValueResolver, generate_token
from .store import CredentialStore

__all__ = [
    "AuthenticationError",
    "CacheCipher",
    "CacheFormatError",
    "CacheIOError",
    "ClickPrompter",
    "CredentialError",
    "CredentialStore",
    "Prompter",
    "ValueResolver",
    "display_value",
    "generate_token",
    "is_encrypted",
    "is_sensitive",
    "mask_value",
    "read_key_from_env_file",
]
