"""CLI commands for the Caddy reverse proxy."""

import click

from platform_setup.cli.context import SetupContext, handle_errors, pass_setup
from platform_setup.proxy import ProxyGenerator, show_password_banner


@click.group(name="proxy")
def proxy_group() -> None:
    """Configure the Caddy reverse proxy."""


@proxy_group.command(name="configure")
@click.option("--force", is_flag=True, help="Regenerate files even if already configured")
@pass_setup
@handle_errors
def configure_proxy(setup: SetupContext, force: bool) -> None:
    """Generate the Caddyfile and docker-compose.yml.

    Enter a bare domain (example.com) for automatic HTTPS, an http:// URL
    with an optional port for plain HTTP, or nothing for http://localhost.
    """
    generator = ProxyGenerator(setup.store, setup.resolver, setup.settings)
    result = generator.configure(force=force)

    if result.new_password:
        show_password_banner(result.new_password)

    if result.caddyfile is None:
        click.echo(click.style("Proxy already configured (use --force to regenerate)", fg="yellow"))
    else:
        click.echo(click.style(f"Wrote {result.caddyfile}", fg="green"))
        click.echo(click.style(f"Wrote {result.compose_file}", fg="green"))

    click.echo(f"Public base URL: {result.public_base_url}")


@proxy_group.command(name="new-password")
@pass_setup
@handle_errors
def new_password(setup: SetupContext) -> None:
    """Replace the basic-auth password and rewrite the Caddyfile.

    Restart the proxy afterwards for the new password to take effect.
    """
    generator = ProxyGenerator(setup.store, setup.resolver, setup.settings)
    result = generator.regenerate_password()

    show_password_banner(result.new_password or "", title="NEW CADDY PASSWORD - SAVE THIS NOW!")
    click.echo(click.style(f"Wrote {result.caddyfile}", fg="green"))
