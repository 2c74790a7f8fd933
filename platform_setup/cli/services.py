"""CLI commands for choosing services and generating their env files."""

import click
import structlog

from platform_setup.cli.context import SetupContext, handle_errors, pass_setup
from platform_setup.credentials import mask_value
from platform_setup.proxy import ProxyGenerator, show_password_banner
from platform_setup.services import (
    SERVICES,
    EnvironmentMaterializer,
    disable_service,
    enable_service,
    get_service,
    prepare_git_url,
    resolve_github_auth,
    select_services,
    selected_optional_ids,
)

log = structlog.get_logger(__name__)


@click.group(name="services")
def services_group() -> None:
    """List, enable and disable platform services."""


@services_group.command(name="list")
@click.option("--clone-urls", is_flag=True, help="Show the clone URL used for each service")
@pass_setup
@handle_errors
def list_services(setup: SetupContext, clone_urls: bool) -> None:
    """Show every service and whether it is enabled."""
    enabled = set(selected_optional_ids(setup.store))

    auth_type, token = ("none", None)
    if clone_urls:
        auth_type, token = resolve_github_auth(setup.resolver)

    for service in SERVICES:
        if service.mandatory:
            status = click.style("mandatory", fg="cyan")
        elif service.id in enabled:
            status = click.style("enabled", fg="green")
        else:
            status = click.style("disabled", fg="yellow")

        click.echo(f"  {service.id:<14} {status:<20} {service.description}")
        if clone_urls:
            # Token is masked: the real one is only ever passed to git
            url = prepare_git_url(service.repo_url, auth_type, mask_value(token) if token else None)
            click.echo(f"  {'':<14} {url} ({service.branch})")


@services_group.command(name="enable")
@click.argument("service_id")
@pass_setup
@handle_errors
def enable(setup: SetupContext, service_id: str) -> None:
    """Enable an optional service."""
    if enable_service(setup.store, service_id):
        click.echo(click.style(f"Enabled {service_id}", fg="green"))
        click.echo(f"Run 'platform-setup configure {service_id}' to generate its configuration")
    else:
        click.echo(click.style(f"{service_id} is already enabled", fg="yellow"))


@services_group.command(name="disable")
@click.argument("service_id")
@pass_setup
@handle_errors
def disable(setup: SetupContext, service_id: str) -> None:
    """Disable an optional service."""
    if disable_service(setup.store, service_id):
        click.echo(click.style(f"Disabled {service_id}", fg="green"))
    else:
        click.echo(click.style(f"{service_id} is not enabled", fg="yellow"))


@click.command(name="configure")
@click.argument("service", default="all")
@pass_setup
@handle_errors
def configure_command(setup: SetupContext, service: str) -> None:
    """Generate env files for SERVICE, or for every selected service.

    With 'all' (the default) the service selection and the reverse proxy are
    set up first, since service URLs depend on the proxy's public address.
    Values already in the cache are reused without asking.
    """
    materializer = EnvironmentMaterializer(setup.store, setup.resolver, setup.settings)

    if service == "all":
        service_ids = [s.id for s in select_services(setup.store, setup.prompter)]

        result = ProxyGenerator(setup.store, setup.resolver, setup.settings).configure()
        if result.new_password:
            show_password_banner(result.new_password)
    else:
        service_ids = [get_service(service).id]

    for path in materializer.configure_all(service_ids):
        click.echo(click.style(f"Wrote {path}", fg="green"))

    log.info("configure_complete", services=service_ids)
