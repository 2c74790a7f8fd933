"""Masking rules for displaying cached values."""

SENSITIVE_MARKERS = ("PASSWORD", "TOKEN", "KEY", "SECRET")


def is_sensitive(key: str) -> bool:
    """Check whether a cache key names a secret.

    Matching is a case-insensitive substring test, so ``CADDY_PASSWORD_HASH``
    and ``apollo_api_key`` are both sensitive.
    """
    upper = key.upper()
    return any(marker in upper for marker in SENSITIVE_MARKERS)


def mask_value(value: str) -> str:
    """Mask a value, keeping the first and last four characters of long values.

    Example:
        >>> mask_value("ghp_abcdefgh1234")
        'ghp_********1234'
        >>> mask_value("short")
        '*****'
    """
    if len(value) > 8:
        return value[:4] + "*" * (len(value) - 8) + value[-4:]
    return "*" * len(value)


def display_value(key: str, value: str, show_secrets: bool = False) -> str:
    """Return the value as it should be shown to the operator."""
    if show_secrets or not is_sensitive(key):
        return value
    return mask_value(value)
