"""Shared state and error handling for CLI commands."""

import functools
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

import click
import structlog

from platform_setup.config import SetupSettings
from platform_setup.credentials import ClickPrompter, CredentialStore, Prompter, ValueResolver
from platform_setup.exceptions import PlatformSetupError

log = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


@dataclass
class SetupContext:
    """Object stored on ``click.Context.obj``.

    The credential cache is opened on first use, so commands that never touch
    it (and ``--help``) never ask for the cache password.
    """

    settings: SetupSettings
    reset_cache: bool = False
    prompter: Prompter = field(default_factory=ClickPrompter)
    _store: CredentialStore | None = field(default=None, repr=False)
    _resolver: ValueResolver | None = field(default=None, repr=False)

    @property
    def store(self) -> CredentialStore:
        if self._store is None:
            self._store = CredentialStore.open(
                self.settings.cache_file,
                force_reset=self.reset_cache,
                prompter=self.prompter,
                passphrase=self.settings.passphrase(),
            )
        return self._store

    @property
    def resolver(self) -> ValueResolver:
        if self._resolver is None:
            self._resolver = ValueResolver(self.store, self.prompter)
        return self._resolver


pass_setup = click.make_pass_decorator(SetupContext)


def echo_error(error: PlatformSetupError) -> None:
    click.echo(click.style(f"Error: {error.message}", fg="red"), err=True)
    if error.suggestion:
        click.echo(click.style(f"Suggestion: {error.suggestion}", fg="yellow"), err=True)


def handle_errors(func: F) -> F:
    """Turn installer errors into a red message and a non-zero exit status."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except PlatformSetupError as e:
            echo_error(e)
            log.debug("command_failed", exc_info=True)
            sys.exit(1)
        except KeyboardInterrupt:
            click.echo("\nInterrupted by user", err=True)
            sys.exit(130)

    return wrapper  # type: ignore[return-value]
