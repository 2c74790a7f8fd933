"""Read-through resolution of configuration values.

A value is looked up in this order, and whichever source answers first is
written back to the cache:

1. The credential cache
2. An existing env file generated by a previous run (if given)
3. A freshly generated random secret (if requested)
4. The operator, via an interactive prompt

After the first run every lookup is a single cache hit.
"""

import logging
import secrets
from collections.abc import Callable
from pathlib import Path

from .env_file import read_key_from_env_file
from .prompting import ClickPrompter, Prompter
from .store import CredentialStore

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


def generate_token(n_bytes: int = TOKEN_BYTES) -> str:
    """Generate a random hex secret (64 characters for the default size)."""
    return secrets.token_hex(n_bytes)


class ValueResolver:
    """Resolve configuration values through the cache, env files, generation and prompts.

    Example:
        >>> resolver = ValueResolver(store)
        >>> password = resolver.resolve(
        ...     "DATAINDEX_POSTGRES_PASSWORD",
        ...     "PostgreSQL password for DataIndex",
        ...     secret=True,
        ...     auto_generate=True,
        ...     env_file=Path("platform-workspace/dataindex/.env"),
        ... )
    """

    def __init__(
        self,
        store: CredentialStore,
        prompter: Prompter | None = None,
        token_factory: Callable[[], str] = generate_token,
    ) -> None:
        """Initialize resolver.

        Args:
            store: Open credential cache
            prompter: Source of interactive answers (defaults to click prompts)
            token_factory: Generator for auto-generated secrets
        """
        self.store = store
        self.prompter = prompter or ClickPrompter()
        self.token_factory = token_factory

    def resolve(
        self,
        name: str,
        label: str,
        default: str = "",
        secret: bool = False,
        auto_generate: bool = False,
        env_file: Path | None = None,
    ) -> str:
        """Return the value for ``name``, asking at most once across runs.

        Args:
            name: Cache key / variable name (e.g., 'SELF_EMAIL')
            label: Question shown to the operator
            default: Value used when the operator enters nothing
            secret: Suppress echo while typing
            auto_generate: Generate a random secret instead of prompting
            env_file: Previously generated env file to scrape first

        Returns:
            The resolved value; may be empty if the operator skipped an
            optional question without a default
        """
        cached = self.store.get(name)
        if cached:
            logger.info(f"Using cached value for {name}")
            return cached

        if env_file is not None:
            existing = read_key_from_env_file(env_file, name)
            if existing:
                logger.info(f"Using existing value from {env_file} for {name}")
                self.store.set(name, existing)
                return existing

        if auto_generate:
            generated = self.token_factory()
            logger.info(f"Auto-generated {name}")
            self.store.set(name, generated)
            return generated

        value = self.prompter.ask(label, default=default, secret=secret) or default
        if value:
            self.store.set(name, value)
        return value

