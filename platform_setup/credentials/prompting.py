"""Interactive prompting surface used by the cache and the resolver."""

from typing import Protocol

import click


class Prompter(Protocol):
    """Protocol for asking the operator questions.

    The cache and resolver only talk to this interface, so tests and
    non-interactive callers can supply scripted answers.
    """

    def ask(self, label: str, default: str = "", secret: bool = False) -> str:
        """Ask for one line of input.

        Args:
            label: Text shown to the operator
            default: Value returned when the operator enters nothing
            secret: Suppress echo while typing

        Returns:
            The entered value, or ``default`` for empty input
        """
        ...

    def confirm(self, label: str, default: bool = True) -> bool:
        """Ask a yes/no question."""
        ...


class ClickPrompter:
    """Prompter backed by ``click.prompt`` and ``click.confirm``."""

    def ask(self, label: str, default: str = "", secret: bool = False) -> str:
        if default:
            label = f"{label} [{default}]"

        value = click.prompt(
            click.style(label, fg="yellow"),
            default="",
            show_default=False,
            hide_input=secret,
        )
        return value or default

    def confirm(self, label: str, default: bool = True) -> bool:
        return click.confirm(click.style(label, fg="yellow"), default=default)
