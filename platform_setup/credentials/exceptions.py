"""Credential cache exceptions.

This module re-exports credential exceptions from platform_setup.exceptions
so the credentials package can be used on its own. New code may import
directly from platform_setup.exceptions.
"""

from platform_setup.exceptions import (
    AuthenticationError,
    CacheFormatError,
    CacheIOError,
    CredentialError,
)

__all__ = [
    "CredentialError",
    "AuthenticationError",
    "CacheIOError",
    "CacheFormatError",
]
