"""Service, ingestor and authentication choices, memoized in the credential cache."""

from collections.abc import Sequence
from typing import TypeVar

import click
import structlog

from platform_setup.credentials import CredentialStore, Prompter, ValueResolver
from platform_setup.exceptions import ConfigurationError
from platform_setup.services.registry import (
    BABELFISH_INGESTOR,
    INGESTORS,
    IngestorDefinition,
    ServiceDefinition,
    get_ingestor,
    get_service,
    mandatory_services,
    optional_services,
)

log = structlog.get_logger(__name__)

OPTIONAL_SERVICES_KEY = "SELECTED_OPTIONAL_SERVICES"
INGESTORS_KEY = "SELECTED_INGESTORS"
NONE_MARKER = "none"

AUTH_TYPES = ("ssh", "token", "none")

T = TypeVar("T")


def _split(cached: str) -> list[str]:
    if cached == NONE_MARKER:
        return []
    return [item.strip() for item in cached.split(",") if item.strip()]


def _cached_ingestor_ids(cached: str) -> list[str]:
    """Return ingestor ids from a cached selection.

    Older installers cached whole `id|name|prefix` records, and names may
    contain commas, so record pieces whose first field is not a known id
    are dropped.
    """
    known = {ingestor.id for ingestor in INGESTORS}
    ids: list[str] = []
    for piece in _split(cached):
        if "|" in piece:
            piece = piece.split("|", 1)[0].strip()
            if piece not in known:
                continue
        if piece not in ids:
            ids.append(piece)
    return ids


def _join(ids: Sequence[str]) -> str:
    return ",".join(ids) if ids else NONE_MARKER


def _pick(answer: str, choices: Sequence[T]) -> list[T]:
    """Translate a '1,3' style answer into the chosen items."""
    if answer.strip().lower() == NONE_MARKER:
        return []

    picked: list[T] = []
    for raw in answer.split(","):
        raw = raw.strip()
        if not raw:
            continue
        if not raw.isdigit() or not 1 <= int(raw) <= len(choices):
            raise ConfigurationError(
                f"Invalid selection: {raw}",
                suggestion=f"Enter numbers between 1 and {len(choices)}, or 'none'",
            )
        item = choices[int(raw) - 1]
        if item not in picked:
            picked.append(item)
    return picked


def select_services(store: CredentialStore, prompter: Prompter) -> list[ServiceDefinition]:
    """Return mandatory services followed by the chosen optional ones.

    The optional choice is asked once and cached as a comma-separated list
    of ids (or ``none``).
    """
    selected = mandatory_services()

    cached = store.get(OPTIONAL_SERVICES_KEY)
    if cached:
        selected.extend(get_service(service_id) for service_id in _split(cached))
        log.info("service_selection_cached", services=[s.id for s in selected])
        return selected

    choices = optional_services()
    click.echo(f"Mandatory services: {', '.join(s.id for s in selected)}")
    click.echo("\nOptional services:\n")
    for index, service in enumerate(choices, start=1):
        click.echo(f"  {index}. {service.description} ({service.id})")
    click.echo()

    answer = prompter.ask("Enter optional service numbers (comma-separated) or 'none'", default=NONE_MARKER)
    picked = _pick(answer, choices)

    store.set(OPTIONAL_SERVICES_KEY, _join([s.id for s in picked]))
    selected.extend(picked)

    log.info("services_selected", services=[s.id for s in selected])
    return selected


def select_ingestors(
    store: CredentialStore,
    prompter: Prompter,
    include_babelfish: bool = False,
) -> list[IngestorDefinition]:
    """Return the DataIndex ingestors to configure.

    Args:
        store: Open credential cache
        prompter: Source of interactive answers
        include_babelfish: Append the auto-configured babelfish ingestor
    """
    cached = store.get(INGESTORS_KEY)
    if cached:
        ids = _cached_ingestor_ids(cached)
        ingestors = [get_ingestor(ingestor_id) for ingestor_id in ids]
        if _join(ids) != cached:
            store.set(INGESTORS_KEY, _join(ids))
            log.info("ingestor_selection_migrated", ingestors=ids)
        log.info("ingestor_selection_cached", count=len(ingestors))
    else:
        click.echo("Available ingestors:\n")
        for index, ingestor in enumerate(INGESTORS, start=1):
            click.echo(f"  {index}. {ingestor.name}")
        click.echo()

        answer = prompter.ask("Enter ingestor numbers (comma-separated) or 'none'", default=NONE_MARKER)
        ingestors = _pick(answer, INGESTORS)
        store.set(INGESTORS_KEY, _join([i.id for i in ingestors]))
        log.info("ingestors_selected", count=len(ingestors))

    if include_babelfish and BABELFISH_INGESTOR not in ingestors:
        ingestors.append(BABELFISH_INGESTOR)
        log.info("babelfish_ingestor_added")

    return ingestors


def selected_optional_ids(store: CredentialStore) -> list[str]:
    """Return the cached optional service ids (empty if nothing is cached)."""
    cached = store.get(OPTIONAL_SERVICES_KEY)
    return _split(cached) if cached else []


def enable_service(store: CredentialStore, service_id: str) -> bool:
    """Add an optional service to the cached selection.

    Returns:
        True if the selection changed

    Raises:
        ServiceNotFoundError: If the service is unknown
    """
    service = get_service(service_id)
    if service.mandatory:
        return False

    current = selected_optional_ids(store)
    if service_id in current:
        return False

    store.set(OPTIONAL_SERVICES_KEY, _join([*current, service_id]))
    log.info("service_enabled", service=service_id)
    return True


def disable_service(store: CredentialStore, service_id: str) -> bool:
    """Remove an optional service from the cached selection.

    Returns:
        True if the selection changed

    Raises:
        ServiceNotFoundError: If the service is unknown
        ConfigurationError: If the service is mandatory
    """
    service = get_service(service_id)
    if service.mandatory:
        raise ConfigurationError(f"Cannot disable mandatory service: {service_id}")

    current = selected_optional_ids(store)
    if service_id not in current:
        return False

    store.set(OPTIONAL_SERVICES_KEY, _join([s for s in current if s != service_id]))
    log.info("service_disabled", service=service_id)
    return True


def resolve_github_auth(resolver: ValueResolver) -> tuple[str, str | None]:
    """Return the cached (or newly chosen) GitHub authentication method and token.

    Raises:
        ConfigurationError: If the method is unknown or token mode has no token
    """
    auth_type = resolver.resolve("AUTH_TYPE", "Authentication method (ssh/token/none)", default="ssh")
    if auth_type not in AUTH_TYPES:
        raise ConfigurationError(
            f"Invalid auth type: {auth_type}",
            suggestion="Run 'platform-setup cache delete AUTH_TYPE' and choose ssh, token or none",
        )

    if auth_type != "token":
        log.info("github_auth", method=auth_type)
        return auth_type, None

    token = resolver.resolve("GITHUB_TOKEN", "GitHub Personal Access Token", secret=True)
    if not token:
        raise ConfigurationError(
            "GitHub token is required",
            suggestion="Create a token at https://github.com/settings/tokens",
        )

    log.info("github_auth", method=auth_type)
    return auth_type, token
