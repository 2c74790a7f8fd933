"""Helpers for reading values back out of generated ``.env`` files."""

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)


def read_key_from_env_file(path: Path, key: str) -> str | None:
    """Scrape a ``KEY=value`` line from an env file.

    Only lines that start exactly with ``KEY=`` match; commented-out lines
    are ignored. When the key appears more than once the last line wins.

    Args:
        path: Path to the env file
        key: Variable name to look up

    Returns:
        The value, or None if the file or the key is missing or the value is empty
    """
    if not path.is_file():
        return None

    pattern = re.compile(rf"^{re.escape(key)}=(.*)$", re.MULTILINE)
    matches = pattern.findall(path.read_text(encoding="utf-8"))

    if not matches or not matches[-1]:
        return None

    logger.debug(f"Found {key} in {path}")
    return matches[-1]
