"""CLI commands for inspecting and editing the credential cache.

Commands:
    - show: List every cached entry (secrets masked by default)
    - get: Print one cached value
    - set: Store a value
    - delete: Remove a value so it is asked again on the next run
    - reset: Wipe the cache

Example::

    $ platform-setup cache show
    $ platform-setup cache delete SELF_EMAIL
    $ platform-setup cache get GITHUB_TOKEN --show-value
"""

import sys

import click

from platform_setup.cli.context import SetupContext, handle_errors, pass_setup
from platform_setup.credentials import CredentialStore, display_value, is_sensitive


@click.group(name="cache")
def cache_group() -> None:
    """Inspect and edit the credential cache.

    Every answer, generated password and derived URL is kept in the cache so
    reruns never ask twice. Delete an entry to be asked for it again.
    """


@cache_group.command(name="show")
@click.option("--show-values", is_flag=True, help="Show secret values unmasked")
@pass_setup
@handle_errors
def show_cache(setup: SetupContext, show_values: bool) -> None:
    """List all cached entries."""
    store = setup.store
    entries = store.items()

    click.echo(f"Cache: {store.path} ({'encrypted' if store.encrypted else 'plaintext'})")
    if not entries:
        click.echo(click.style("Cache is empty", fg="yellow"))
        return

    click.echo()
    width = max(len(key) for key, _ in entries)
    for key, value in entries:
        click.echo(f"  {key.ljust(width)}  {display_value(key, value, show_values)}")

    if not show_values and any(is_sensitive(key) for key, _ in entries):
        click.echo()
        click.echo(click.style("Use --show-values to display secret values", fg="yellow"))


@cache_group.command(name="get")
@click.argument("key")
@click.option("--show-value", is_flag=True, help="Show full value (default: masked for secrets)")
@pass_setup
@handle_errors
def get_value(setup: SetupContext, key: str, show_value: bool) -> None:
    """Print one cached value.

    Exits with status 1 if KEY is not cached.
    """
    value = setup.store.get(key)
    if value is None:
        click.echo(click.style(f"Not cached: {key}", fg="yellow"), err=True)
        sys.exit(1)

    click.echo(display_value(key, value, show_value))


@cache_group.command(name="set")
@click.argument("key")
@click.option("--value", prompt=True, hide_input=True, help="Value to store (will prompt if not provided)")
@pass_setup
@handle_errors
def set_value(setup: SetupContext, key: str, value: str) -> None:
    """Store a value in the cache."""
    setup.store.set(key, value)
    click.echo(click.style(f"Cached {key}", fg="green"))


@cache_group.command(name="delete")
@click.argument("key")
@pass_setup
@handle_errors
def delete_value(setup: SetupContext, key: str) -> None:
    """Remove a cached value so it is asked again."""
    if setup.store.delete(key):
        click.echo(click.style(f"Deleted {key}", fg="green"))
    else:
        click.echo(click.style(f"Not cached: {key}", fg="yellow"))


@cache_group.command(name="reset")
@click.confirmation_option(prompt="Delete every cached answer and generated password?")
@pass_setup
@handle_errors
def reset_cache(setup: SetupContext) -> None:
    """Wipe the cache.

    The cache is recreated empty; it stays encrypted only when a cache
    password is configured through PLATFORM_SETUP_CACHE_PASSWORD.
    """
    CredentialStore.open(setup.settings.cache_file, force_reset=True, passphrase=setup.settings.passphrase())
    click.echo(click.style("Cache reset", fg="green"))
